import uuid
from typing import Generator, Optional

from fastapi import Cookie, Depends, Header, HTTPException, Response, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel

from core.config import settings
from core.local_store import LocalStore, SITE_NAMESPACE
from core.session import AppContext, Identity, SessionResolver
from core.site_config import ConfigStore, SiteConfigMirror
from core.supabase_client import get_supabase_client, get_user_client


bearer_scheme = HTTPBearer(auto_error=False)


# ============================================================
# Current User Model (what the front end needs to gate views)
# ============================================================
class CurrentUser(BaseModel):
    uid: str
    email: str
    display_name: str
    role: Optional[str] = None
    is_admin: bool = False
    is_staff: bool = False

    @classmethod
    def from_context(cls, ctx: AppContext) -> "CurrentUser":
        return cls(
            uid=ctx.identity.uid,
            email=ctx.identity.normalized_email,
            display_name=ctx.identity.name,
            role=ctx.role.value if ctx.role else None,
            is_admin=ctx.is_admin,
            is_staff=ctx.is_staff,
        )


# ============================================================
# Device + config
# ============================================================
DEVICE_COOKIE = "abs_device_id"
DEVICE_COOKIE_MAX_AGE = 60 * 60 * 24 * 365


def get_device_id(
    response: Response,
    x_device_id: Optional[str] = Header(None),
    device_cookie: Optional[str] = Cookie(None, alias=DEVICE_COOKIE),
) -> str:
    """
    The browser's own id: the X-Device-Id header, else the device cookie.
    A browser with neither is issued a fresh id in the cookie.
    """
    device_id = (x_device_id or "").strip() or (device_cookie or "").strip()
    if not device_id:
        device_id = uuid.uuid4().hex
        response.set_cookie(
            DEVICE_COOKIE,
            device_id,
            max_age=DEVICE_COOKIE_MAX_AGE,
            httponly=True,
            samesite="lax",
        )
    return device_id


def get_config_store() -> ConfigStore:
    mirror = None
    if settings.SITE_CONFIG_MIRROR:
        client = get_supabase_client()
        if client:
            mirror = SiteConfigMirror(client)
    return ConfigStore(LocalStore(SITE_NAMESPACE), mirror)


# ============================================================
# AUTH DECODING (Supabase: validates JWT)
# ============================================================
def authenticate(token: str) -> Identity:
    unauthorized = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired authentication token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    client = get_supabase_client()
    if not client:
        raise HTTPException(500, "Supabase client not configured")

    try:
        auth_resp = client.auth.get_user(token)
        if not auth_resp or not auth_resp.user:
            raise unauthorized
        auth_user = auth_resp.user
    except HTTPException:
        raise
    except Exception:
        raise unauthorized

    if not auth_user.email:
        raise unauthorized

    metadata = auth_user.user_metadata or {}

    return Identity(
        uid=auth_user.id,
        email=auth_user.email,
        display_name=metadata.get("full_name") or metadata.get("name"),
        access_token=token,
    )


def build_context(identity: Identity, config: ConfigStore, device_id: str, *, touch_login: bool = False) -> AppContext:
    client = get_user_client(identity.access_token)
    if not client:
        raise HTTPException(500, "Supabase client not configured")

    role = SessionResolver(client).resolve(identity, touch_login=touch_login)
    return AppContext(identity=identity, role=role, config=config, client=client, device_id=device_id)


# ============================================================
# APPLICATION CONTEXT (one per request, torn down afterwards)
# ============================================================
def get_app_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    device_id: str = Depends(get_device_id),
    config: ConfigStore = Depends(get_config_store),
) -> Generator[AppContext, None, None]:
    if credentials is None:
        ctx = AppContext(identity=None, role=None, config=config, device_id=device_id)
    else:
        ctx = build_context(authenticate(credentials.credentials), config, device_id)

    try:
        yield ctx
    finally:
        ctx.teardown()


def get_signed_in_context(ctx: AppContext = Depends(get_app_context)) -> AppContext:
    if not ctx.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sign in required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return ctx
