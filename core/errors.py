# core/errors.py

from typing import Optional


# Postgres insufficient_privilege
PERMISSION_DENIED_CODES = {"42501"}

PERMISSION_DENIED_MARKERS = (
    "permission denied",
    "row-level security",
    "insufficient_privilege",
)


class AccessRestrictedError(Exception):
    """
    Raised when a gated view may not be read or written.
    Rendered as the "Access Restricted" fallback (HTTP 403).
    """

    def __init__(self, target: str, message: str, reason: str = "permission-denied"):
        super().__init__(message)
        self.target = target
        self.message = message
        self.reason = reason

    def render(self) -> dict:
        return {
            "status": "restricted",
            "title": "Access Restricted",
            "target": self.target,
            "message": self.message,
            "reason": self.reason,
        }


class WriteFailedError(Exception):
    """A user-submitted write was rejected; `alert` is shown to the user."""

    def __init__(self, alert: str, cause: Optional[Exception] = None):
        super().__init__(alert)
        self.alert = alert
        self.cause = cause


def extract_supabase_error(error: Exception) -> str:
    """
    Safely extract readable details from Supabase Python client errors.
    Handles:
      • PostgREST errors
      • GoTrue (Auth) errors
      • Generic Python exceptions
    """

    # Case 1: PostgREST / GoTrue errors expose .message
    if hasattr(error, "message"):
        try:
            return str(error.message)
        except Exception:
            pass

    # Case 2: errors with args (common)
    if hasattr(error, "args") and error.args:
        try:
            return str(error.args[0])
        except Exception:
            pass

    # Case 3: Plain string fallback
    try:
        return str(error)
    except Exception:
        return "Unknown Supabase error"


def is_permission_denied(error: Exception) -> bool:
    """
    True when the database rejected the request because of its access
    policies (Postgres 42501 or a row-level security violation).
    """
    code = getattr(error, "code", None)
    if code is not None and str(code) in PERMISSION_DENIED_CODES:
        return True

    detail = extract_supabase_error(error).lower()
    return any(marker in detail for marker in PERMISSION_DENIED_MARKERS)

