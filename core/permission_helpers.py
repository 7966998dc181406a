from dataclasses import dataclass
from typing import Optional

from fastapi import Depends

from core.errors import AccessRestrictedError
from core.permissions import ROLE_PERMISSIONS, STAFF_ROLES, ADMIN_ROLES


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: str

    def __bool__(self) -> bool:
        return self.allowed


# -----------------------------------------------------
# Effective permissions for a role
# -----------------------------------------------------
def get_effective_permissions(role: Optional[str]) -> set:
    if role is None:
        return set()
    return set(ROLE_PERMISSIONS.get(str(role), []))


# -----------------------------------------------------
# The single capability check every gated view consults
# -----------------------------------------------------
def check_capability(role: Optional[str], capability: str) -> AccessDecision:
    if role is None:
        return AccessDecision(False, "Sign in required")

    role = str(role)
    if role not in ROLE_PERMISSIONS:
        return AccessDecision(False, f"Unknown role '{role}'")

    effective = get_effective_permissions(role)

    # Wildcard grants everything
    if "*" in effective:
        return AccessDecision(True, f"Granted to role '{role}'")

    if capability in effective:
        return AccessDecision(True, f"Granted to role '{role}'")

    return AccessDecision(False, f"Role '{role}' lacks '{capability}'")


def has_permission(role: Optional[str], capability: str) -> bool:
    return check_capability(role, capability).allowed


def is_admin(role: Optional[str]) -> bool:
    """Admin console access (admin or super_admin)."""
    return role is not None and str(role) in ADMIN_ROLES


def is_staff(role: Optional[str]) -> bool:
    return role is not None and str(role) in STAFF_ROLES


# -----------------------------------------------------
# FastAPI dependency wrapper
# -----------------------------------------------------
def requires_permission(permission: str, target: str = "Portal", message: str = "Your role does not have access to this area."):
    """
    Usage:
        @router.get("/", dependencies=[Depends(requires_permission("users:read"))])
    """
    from dependencies.auth import AppContext, get_signed_in_context

    def dependency(ctx: AppContext = Depends(get_signed_in_context)):
        decision = check_capability(ctx.role, permission)
        if not decision.allowed:
            raise AccessRestrictedError(target, message, reason=decision.reason)
        return ctx

    return dependency
