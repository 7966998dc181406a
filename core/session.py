# core/session.py

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from core.live_query import LiveQuery, Subscription
from core.logging_config import logger
from core.permission_helpers import is_admin, is_staff
from core.site_config import ConfigStore
from models.enums import Role
from models.records import UserPermission, decode_documents


PERMISSIONS_TABLE = "user_permissions"


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Identity:
    """The signed-in user as reported by Supabase Auth."""
    uid: str
    email: str
    display_name: Optional[str] = None
    access_token: Optional[str] = None

    @property
    def normalized_email(self) -> str:
        return self.email.strip().lower()

    @property
    def name(self) -> str:
        return self.display_name or self.normalized_email.split("@")[0]


# ============================================================
# Role resolution against user_permissions
# ============================================================

class SessionResolver:
    """
    Looks up (or creates) the permission record for a signed-in email.
    Failures never block the user: they degrade to the client role.
    """

    def __init__(self, client):
        self.client = client

    def resolve(self, identity: Identity, *, touch_login: bool = False) -> Role:
        email = identity.normalized_email

        try:
            res = (
                self.client.table(PERMISSIONS_TABLE)
                .select("*")
                .eq("email", email)
                .limit(1)
                .execute()
            )
            rows = res.data or []

            if not rows:
                self.create_default(identity)
                return Role.client

            decoded = decode_documents(UserPermission, rows)
            if not decoded.records:
                logger.warning(f"Permission record for {email} is malformed; using client role")
                return Role.client

            if touch_login:
                self.touch_last_login(email)

            return decoded.records[0].role

        except Exception as e:
            logger.warning(f"Role resolution failed for {email}, falling back to client: {e}")
            return Role.client

    def create_default(self, identity: Identity):
        """Idempotent: an existing record (and its role) is left alone."""
        now = utcnow_iso()
        self.client.table(PERMISSIONS_TABLE).upsert(
            {
                "email": identity.normalized_email,
                "role": Role.client.value,
                "uid": identity.uid,
                "display_name": identity.name,
                "created_at": now,
                "last_login": now,
            },
            on_conflict="email",
            ignore_duplicates=True,
        ).execute()
        logger.info(f"Created client permission record for {identity.normalized_email}")

    def touch_last_login(self, email: str):
        try:
            (
                self.client.table(PERMISSIONS_TABLE)
                .update({"last_login": utcnow_iso()})
                .eq("email", email)
                .execute()
            )
        except Exception as e:
            logger.warning(f"Could not update last_login for {email}: {e}")

    def watch(self, identity: Identity, on_role: Callable[[Role], None], *, scheduler=None) -> Subscription:
        """Follow role edits made to this user's permission record."""
        query = LiveQuery(
            self.client,
            PERMISSIONS_TABLE,
            filters={"email": identity.normalized_email},
            limit=1,
        )

        def on_next(rows: list):
            decoded = decode_documents(UserPermission, rows)
            on_role(decoded.records[0].role if decoded.records else Role.client)

        def on_error(error: Exception):
            on_role(Role.client)

        return query.subscribe(on_next, on_error, scheduler=scheduler)


# ============================================================
# Application context injected into every route
# ============================================================

@dataclass
class AppContext:
    identity: Optional[Identity]
    role: Optional[Role]
    config: ConfigStore
    client: Any = None
    device_id: str = "default"
    subscriptions: List[Subscription] = field(default_factory=list)

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and is_admin(self.role)

    @property
    def is_staff(self) -> bool:
        return self.is_authenticated and is_staff(self.role)

    def track(self, subscription: Subscription) -> Subscription:
        self.subscriptions.append(subscription)
        return subscription

    def watch_role(self, resolver: SessionResolver, *, scheduler=None) -> Optional[Subscription]:
        if not self.identity:
            return None

        def set_role(role: Role):
            self.role = role

        return self.track(resolver.watch(self.identity, set_role, scheduler=scheduler))

    def teardown(self):
        """Release every live subscription held by this context."""
        while self.subscriptions:
            self.subscriptions.pop().cancel()

    def sign_out(self):
        self.teardown()
        self.role = None
        self.identity = None
