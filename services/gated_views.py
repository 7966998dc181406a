# services/gated_views.py

"""
Permission-gated list views for the admin console and the dashboard.

A view checks the caller's capability, reads its table (once, or live),
and renders either its rows or the "Access Restricted" fallback. Once the
database has rejected a read, the view refuses writes until `retry()`.
"""

from datetime import date, datetime, timezone
from typing import Callable, List, Optional, Type

from pydantic import BaseModel

from core.errors import (
    AccessRestrictedError,
    WriteFailedError,
    extract_supabase_error,
    is_permission_denied,
)
from core.live_query import LiveQuery, Subscription
from core.logging_config import logger
from core.permission_helpers import check_capability
from core.permissions import ASSIGNABLE_ROLES
from core.session import AppContext
from models.enums import Role
from models.records import (
    ExternalApp,
    ExternalAppCreate,
    PropertyRecord,
    UserPermission,
    WorkLogCreate,
    WorkLogEntry,
    decode_documents,
)


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def indian_date(d: Optional[date] = None) -> str:
    d = d or date.today()
    return f"{d.day}/{d.month}/{d.year}"


class GatedListView:
    table: str
    model: Type[BaseModel]
    target: str
    restricted_message: str
    read_capability: str
    write_capability: Optional[str] = None
    delete_capability: Optional[str] = None
    write_alert: str = "Action Blocked: Check Admin Matrix permissions."
    key: str = "id"
    order_by: Optional[str] = None
    descending: bool = True
    limit: Optional[int] = None

    def __init__(self, ctx: AppContext, *, scheduler=None):
        self.ctx = ctx
        self.scheduler = scheduler
        self.rows: List[BaseModel] = []
        self.quarantined = 0
        self.loading = True
        self.error: Optional[str] = None
        self.permission_denied = False
        self.denial_reason: Optional[str] = None
        self.subscription: Optional[Subscription] = None
        self._listeners: List[Callable[["GatedListView"], None]] = []

    # -----------------------------------------------------
    # Reading
    # -----------------------------------------------------
    def filters(self) -> dict:
        return {}

    def build_query(self) -> LiveQuery:
        return LiveQuery(
            self.ctx.client,
            self.table,
            filters=self.filters(),
            order_by=self.order_by,
            descending=self.descending,
            limit=self.limit,
        )

    def _can_read(self) -> bool:
        decision = check_capability(self.ctx.role, self.read_capability)
        if not decision.allowed:
            self._deny(decision.reason)
            return False
        return True

    def load(self) -> "GatedListView":
        """Take a single snapshot."""
        if not self._can_read():
            return self
        try:
            rows = self.build_query().fetch()
        except Exception as e:
            self._on_error(e)
            return self
        self._on_next(rows)
        return self

    def open(self) -> "GatedListView":
        """Follow the table live until close()."""
        if not self._can_read():
            return self
        self.subscription = self.ctx.track(
            self.build_query().subscribe(self._on_next, self._on_error, scheduler=self.scheduler)
        )
        return self

    def close(self):
        if self.subscription:
            self.subscription.cancel()
            self.subscription = None

    def retry(self) -> "GatedListView":
        live = self.subscription is not None
        self.close()
        self.permission_denied = False
        self.denial_reason = None
        self.error = None
        self.loading = True
        return self.open() if live else self.load()

    def on_change(self, listener: Callable[["GatedListView"], None]):
        self._listeners.append(listener)

    def _notify(self):
        for listener in self._listeners:
            listener(self)

    def _on_next(self, rows: list):
        decoded = decode_documents(self.model, rows)
        self.rows = decoded.records
        self.quarantined = len(decoded.quarantined)
        self.loading = False
        self.error = None
        self.permission_denied = False
        self.denial_reason = None
        self._notify()

    def _on_error(self, error: Exception):
        self.loading = False
        if is_permission_denied(error):
            self._deny("permission-denied")
        else:
            self.error = extract_supabase_error(error)
            logger.error(f"{self.target} sync error: {self.error}")
        self._notify()

    def _deny(self, reason: str):
        self.permission_denied = True
        self.denial_reason = reason
        self.rows = []
        self.loading = False

    # -----------------------------------------------------
    # Rendering
    # -----------------------------------------------------
    def restricted(self) -> AccessRestrictedError:
        return AccessRestrictedError(
            self.target, self.restricted_message, reason=self.denial_reason or "permission-denied"
        )

    def visible_rows(self) -> List[BaseModel]:
        return self.rows

    def render(self) -> dict:
        if self.permission_denied:
            return self.restricted().render()
        rows = self.visible_rows()
        return {
            "status": "ok",
            "target": self.target,
            "loading": self.loading,
            "error": self.error,
            "count": len(rows),
            "quarantined": self.quarantined,
            "rows": [r.model_dump(mode="json") for r in rows],
        }

    def render_or_raise(self) -> dict:
        if self.permission_denied:
            raise self.restricted()
        return self.render()

    # -----------------------------------------------------
    # Writing
    # -----------------------------------------------------
    def _guard_write(self, capability: Optional[str]):
        if self.permission_denied:
            raise self.restricted()
        decision = check_capability(self.ctx.role, capability or self.read_capability)
        if not decision.allowed:
            raise AccessRestrictedError(self.target, self.restricted_message, reason=decision.reason)

    def create(self, data: dict) -> dict:
        self._guard_write(self.write_capability)
        try:
            res = self.ctx.client.table(self.table).insert(data).execute()
        except Exception as e:
            logger.warning(f"{self.target} create failed: {extract_supabase_error(e)}")
            raise WriteFailedError(self.write_alert, e)
        return res.data[0] if res.data else data

    def delete(self, key_value: str):
        self._guard_write(self.delete_capability)
        try:
            self.ctx.client.table(self.table).delete().eq(self.key, key_value).execute()
        except Exception as e:
            logger.warning(f"{self.target} delete failed: {extract_supabase_error(e)}")
            raise WriteFailedError(self.write_alert, e)


# ============================================================
# Admin console
# ============================================================

class AppDirectoryView(GatedListView):
    table = "external_apps"
    model = ExternalApp
    target = "App Directory"
    restricted_message = "Administrative privileges required to modify external connections."
    read_capability = "admin:access"
    write_capability = "external_apps:write"
    delete_capability = "external_apps:write"
    order_by = "created_at"

    def add_app(self, payload: ExternalAppCreate) -> dict:
        return self.create({**payload.model_dump(), "created_at": utcnow_iso()})


class WorkLogLedgerView(GatedListView):
    table = "daily_work_logs"
    model = WorkLogEntry
    target = "Activity Ledger"
    restricted_message = "Administrator access is required to view the staff work history ledger."
    read_capability = "work_logs:read"
    delete_capability = "work_logs:delete"
    order_by = "timestamp"
    limit = 200


class MarketFeedView(GatedListView):
    table = "market_intelligence"
    model = PropertyRecord
    target = "Intelligence Feed"
    restricted_message = "Verified admin status required for survey data access."
    read_capability = "market:read"
    delete_capability = "market:delete"
    order_by = "timestamp"
    limit = 100

    def __init__(self, ctx: AppContext, *, search: str = "", scheduler=None):
        super().__init__(ctx, scheduler=scheduler)
        self.search = search or ""

    def visible_rows(self) -> List[PropertyRecord]:
        term = self.search.strip().lower()
        if not term:
            return self.rows
        return [r for r in self.rows if term in (r.area_name or "").lower()]


class UsersView(GatedListView):
    table = "user_permissions"
    model = UserPermission
    target = "Access Matrix"
    restricted_message = "Administrator access is required to manage user roles."
    read_capability = "users:read"
    write_capability = "users:write"
    delete_capability = "users:delete"
    write_alert = "Matrix Error: Check Security Kernel."
    key = "email"
    order_by = "email"
    descending = False

    PROTECTED_MESSAGE = "Super admin records cannot be changed from the portal."

    def _record(self, email: str) -> UserPermission:
        try:
            res = (
                self.ctx.client.table(self.table)
                .select("*")
                .eq("email", email)
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise WriteFailedError(self.write_alert, e)
        decoded = decode_documents(UserPermission, res.data)
        if not decoded.records:
            raise LookupError(f"No permission record for {email}")
        return decoded.records[0]

    def _guard_protected(self, email: str):
        if self._record(email).role == Role.super_admin:
            raise AccessRestrictedError(self.target, self.PROTECTED_MESSAGE, reason="protected-record")

    def update_role(self, email: str, role: str) -> dict:
        email = email.strip().lower()
        if role not in ASSIGNABLE_ROLES:
            raise ValueError(f"Role must be one of {ASSIGNABLE_ROLES}")

        self._guard_write(self.write_capability)
        self._guard_protected(email)

        try:
            res = (
                self.ctx.client.table(self.table)
                .update({"role": role})
                .eq("email", email)
                .execute()
            )
        except Exception as e:
            logger.warning(f"Role update failed for {email}: {extract_supabase_error(e)}")
            raise WriteFailedError(self.write_alert, e)

        logger.info(f"Role for {email} set to {role}")
        return res.data[0] if res.data else {"email": email, "role": role}

    def delete(self, email: str):
        email = email.strip().lower()
        self._guard_write(self.delete_capability)
        self._guard_protected(email)
        super().delete(email)


# ============================================================
# Dashboard
# ============================================================

class UserAppsView(GatedListView):
    table = "external_apps"
    model = ExternalApp
    target = "App Gallery"
    restricted_message = "Connected apps are not available to your account yet."
    read_capability = "external_apps:read"
    order_by = "created_at"

    def system_apps(self) -> List[dict]:
        apps = [{"id": "work-log", "name": "Activity Log", "description": "Institutional log for site visits."}]
        if self.ctx.is_staff:
            apps.append({"id": "market-data", "name": "Intelligence", "description": "Real-time property rate mapping."})
        return apps

    def render(self) -> dict:
        # System apps stay usable even when the directory read is refused
        return {"system_apps": self.system_apps(), "external_apps": super().render()}


class MarketRecordsView(GatedListView):
    table = "market_intelligence"
    model = PropertyRecord
    target = "Market Intelligence"
    restricted_message = "Survey records are not available to your account."
    read_capability = "market:read_own"
    write_capability = "market:create"
    write_alert = "Submission Blocked: Verify permissions."
    order_by = "timestamp"
    limit = 1000

    def filters(self) -> dict:
        if self.ctx.is_staff:
            return {}
        return {"user_id": self.ctx.identity.uid if self.ctx.identity else None}


WORK_LOG_ALERT = (
    "PERMISSION ERROR: The database rules prevented this submission. "
    "If you are the owner, apply the access policies from the Admin Panel to your database."
)


def submit_work_log(ctx: AppContext, payload: WorkLogCreate) -> dict:
    """Any authenticated user may add to the activity ledger."""
    if not payload.reason.strip():
        raise ValueError("Please describe your activity.")
    if not ctx.identity:
        raise AccessRestrictedError("Activity Log", "Session expired. Please log in again.", reason="signed-out")

    decision = check_capability(ctx.role, "work_logs:create")
    if not decision.allowed:
        raise AccessRestrictedError("Activity Log", "Your role cannot submit work logs.", reason=decision.reason)

    entry = {
        "name": (payload.name or "").strip() or ctx.identity.name,
        "reason": payload.reason.strip(),
        "user_id": ctx.identity.uid,
        "recorded_by": ctx.identity.normalized_email,
        "timestamp": utcnow_iso(),
        "date": indian_date(),
    }

    try:
        res = ctx.client.table("daily_work_logs").insert(entry).execute()
    except Exception as e:
        logger.error(f"Ledger Sync Error: {extract_supabase_error(e)}")
        raise WriteFailedError(WORK_LOG_ALERT, e)

    return res.data[0] if res.data else entry
