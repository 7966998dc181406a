from fastapi import APIRouter, HTTPException, Depends, Request
from pydantic import BaseModel

from core.rate_limiter import require_rate_limit, client_identifier
from core.session import AppContext, Identity
from core.site_config import ConfigStore
from core.supabase_client import get_supabase_client
from core.logging_config import logger
from dependencies.auth import (
    CurrentUser,
    build_context,
    get_config_store,
    get_device_id,
    get_signed_in_context,
)
from services.chat_widget import close_chat_widget


router = APIRouter(
    prefix="/auth",
    tags=["Auth"],
)


# ============================================================
# MODELS
# ============================================================
class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: CurrentUser


# ============================================================
# NAVIGATION (role-gated menu entries)
# ============================================================
def dashboard_navigation(ctx: AppContext) -> list:
    items = [
        {"id": "dashboard", "label": "Work Overview"},
        {"id": "apps", "label": "App Gallery"},
        {"id": "tools", "label": "Utilities"},
        {"id": "profile", "label": "Account Identity"},
    ]
    if ctx.is_staff:
        items.insert(2, {"id": "market-intelligence", "label": "Intelligence Map"})
    return items


def admin_navigation(ctx: AppContext) -> list:
    if not ctx.is_admin:
        return []
    return [
        {"id": "dashboard", "label": "Executive Core"},
        {"id": "site-settings", "label": "Site Editor"},
        {"id": "market-entries", "label": "Field History"},
        {"id": "work-logs", "label": "Activity Ledger"},
        {"id": "users", "label": "Access Matrix"},
        {"id": "app-directory", "label": "App Manager"},
        {"id": "security", "label": "Security Kernel"},
    ]


# ============================================================
# LOGIN (SUPABASE AUTH)
# ============================================================
@router.post("/login", response_model=TokenResponse, summary="Authenticate user")
def login(
    payload: LoginRequest,
    request: Request,
    device_id: str = Depends(get_device_id),
    config: ConfigStore = Depends(get_config_store),
):
    require_rate_limit(request, f"login:{client_identifier(request)}", max_requests=10, window_seconds=60)

    email = payload.email.strip().lower()

    client = get_supabase_client()
    if not client:
        raise HTTPException(500, "Supabase client not configured")

    try:
        response = client.auth.sign_in_with_password(
            {"email": email, "password": payload.password}
        )
    except Exception as e:
        logger.warning(f"Login attempt failed for {email}: {type(e).__name__}")
        raise HTTPException(
            status_code=401,
            detail="Invalid email or password"
        )

    if not response.session or not response.session.access_token:
        raise HTTPException(401, "Invalid email or password")

    user = response.user or getattr(response.session, "user", None)
    metadata = (getattr(user, "user_metadata", None) or {}) if user else {}

    identity = Identity(
        uid=user.id if user else "",
        email=(user.email if user and user.email else email),
        display_name=metadata.get("full_name") or metadata.get("name"),
        access_token=response.session.access_token,
    )

    # First sign-in creates the client record; later ones touch last_login
    ctx = build_context(identity, config, device_id, touch_login=True)
    try:
        return TokenResponse(
            access_token=response.session.access_token,
            user=CurrentUser.from_context(ctx),
        )
    finally:
        ctx.teardown()


# ============================================================
# CURRENT USER
# ============================================================
@router.get("/me", summary="Current user, role and navigation")
def read_me(ctx: AppContext = Depends(get_signed_in_context)):
    return {
        "user": CurrentUser.from_context(ctx),
        "dashboard_navigation": dashboard_navigation(ctx),
        "admin_navigation": admin_navigation(ctx),
    }


# ============================================================
# LOGOUT
# ============================================================
@router.post("/logout", summary="Sign out and release live state")
def logout(ctx: AppContext = Depends(get_signed_in_context)):
    email = ctx.identity.normalized_email
    token = ctx.identity.access_token

    ctx.sign_out()
    close_chat_widget(ctx.device_id)

    client = get_supabase_client()
    if client:
        try:
            client.auth.admin.sign_out(token)
        except Exception as e:
            logger.warning(f"Supabase sign-out failed for {email}: {e}")

    return {"success": True}
