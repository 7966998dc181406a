# routers/admin.py

from typing import Any, List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from core.access_policies import ACCESS_POLICIES_SQL
from core.logging_config import logger
from core.permission_helpers import requires_permission
from core.session import AppContext
from models.records import ExternalAppCreate, RoleUpdate
from services.gated_views import (
    AppDirectoryView,
    MarketFeedView,
    UsersView,
    WorkLogLedgerView,
)


ADMIN_ONLY = "Administrator access is required for the admin console."

admin_context = requires_permission("admin:access", target="Admin Console", message=ADMIN_ONLY)

router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    dependencies=[Depends(admin_context)],
)


# -----------------------------------------------------
# Payloads
# -----------------------------------------------------
class SectionUpdate(BaseModel):
    data: Union[dict, List[Any]]


class StatUpdate(BaseModel):
    value: Any


class BankCreate(BaseModel):
    name: str


# ============================================================
# SITE EDITOR
# ============================================================
@router.get("/site-config", summary="Current site configuration")
def read_site_config(ctx: AppContext = Depends(admin_context)):
    return {"config": ctx.config.config, "theme": ctx.config.theme_vars}


@router.patch(
    "/site-config/{section}",
    summary="Update one config section",
    dependencies=[Depends(requires_permission("site_config:write", target="Site Editor", message=ADMIN_ONLY))],
)
def update_site_config(section: str, payload: SectionUpdate, ctx: AppContext = Depends(admin_context)):
    """
    Lists replace the section; objects merge into it.
    """
    try:
        config = ctx.config.update_config(section, payload.data)
    except KeyError:
        raise HTTPException(404, f"Unknown config section: {section}")
    except (ValueError, TypeError) as e:
        raise HTTPException(400, f"Invalid {section} update: {e}")

    logger.info(f"Site config section '{section}' updated by {ctx.identity.normalized_email}")
    return {"config": config, "theme": ctx.config.theme_vars}


@router.put("/site-config/stats/{key}", summary="Set one headline stat")
def update_stat(key: str, payload: StatUpdate, ctx: AppContext = Depends(admin_context)):
    try:
        config = ctx.config.set_stat(key, payload.value)
    except ValueError as e:
        raise HTTPException(400, str(e))
    return {"config": config}


@router.post("/site-config/banks", summary="Add a partner bank")
def add_bank(payload: BankCreate, ctx: AppContext = Depends(admin_context)):
    return {"banks": ctx.config.add_bank(payload.name)["banks"]}


@router.delete("/site-config/banks/{name}", summary="Remove a partner bank")
def remove_bank(name: str, ctx: AppContext = Depends(admin_context)):
    return {"banks": ctx.config.remove_bank(name)["banks"]}


@router.post("/site-config/reset", summary="Restore default site configuration")
def reset_site_config(ctx: AppContext = Depends(admin_context)):
    logger.info(f"Site config reset by {ctx.identity.normalized_email}")
    return {"config": ctx.config.reset_config(), "theme": ctx.config.theme_vars}


# ============================================================
# APP DIRECTORY
# ============================================================
@router.get("/apps", summary="External app directory")
def list_apps(ctx: AppContext = Depends(admin_context)):
    return AppDirectoryView(ctx).load().render_or_raise()


@router.post("/apps", summary="Add an external app", status_code=201)
def create_app_link(payload: ExternalAppCreate, ctx: AppContext = Depends(admin_context)):
    return AppDirectoryView(ctx).add_app(payload)


@router.delete("/apps/{app_id}", summary="Remove an external app")
def delete_app_link(app_id: str, ctx: AppContext = Depends(admin_context)):
    AppDirectoryView(ctx).delete(app_id)
    return {"success": True}


# ============================================================
# ACTIVITY LEDGER
# ============================================================
@router.get("/work-logs", summary="Staff work log ledger")
def list_work_logs(ctx: AppContext = Depends(admin_context)):
    return WorkLogLedgerView(ctx).load().render_or_raise()


@router.delete("/work-logs/{log_id}", summary="Delete a work log")
def delete_work_log(log_id: str, ctx: AppContext = Depends(admin_context)):
    WorkLogLedgerView(ctx).delete(log_id)
    return {"success": True}


# ============================================================
# FIELD HISTORY
# ============================================================
@router.get("/market-entries", summary="Market intelligence history")
def list_market_entries(
    search: Optional[str] = Query(None, description="Filter by area name"),
    ctx: AppContext = Depends(admin_context),
):
    return MarketFeedView(ctx, search=search or "").load().render_or_raise()


@router.delete("/market-entries/{entry_id}", summary="Delete a market entry")
def delete_market_entry(entry_id: str, ctx: AppContext = Depends(admin_context)):
    MarketFeedView(ctx).delete(entry_id)
    return {"success": True}


# ============================================================
# ACCESS MATRIX
# ============================================================
@router.get("/users", summary="User permission records")
def list_users(ctx: AppContext = Depends(admin_context)):
    return UsersView(ctx).load().render_or_raise()


@router.patch("/users/{email}/role", summary="Change a user's role")
def update_user_role(email: str, payload: RoleUpdate, ctx: AppContext = Depends(admin_context)):
    try:
        return UsersView(ctx).update_role(email, payload.role.value)
    except LookupError as e:
        raise HTTPException(404, str(e))
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.delete("/users/{email}", summary="Delete a user's permission record")
def delete_user(email: str, ctx: AppContext = Depends(admin_context)):
    try:
        UsersView(ctx).delete(email)
    except LookupError as e:
        raise HTTPException(404, str(e))
    return {"success": True}


# ============================================================
# SECURITY KERNEL
# ============================================================
@router.get(
    "/security/rules",
    response_class=PlainTextResponse,
    summary="Row-level security policies",
    dependencies=[Depends(requires_permission("security:read", target="Security Kernel", message=ADMIN_ONLY))],
)
def read_security_rules():
    return PlainTextResponse(ACCESS_POLICIES_SQL, media_type="text/plain")
