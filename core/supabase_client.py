# core/supabase_client.py

from typing import Optional

from supabase import create_client, Client
from core.config import settings
from core.logging_config import logger


PORTAL_TABLES = [
    "user_permissions",
    "external_apps",
    "market_intelligence",
    "daily_work_logs",
]


# ============================================================
# Service-role client (token validation, first sign-in upserts)
# ============================================================

def get_supabase_client() -> Optional[Client]:
    """
    Creates a Supabase client using the SERVICE ROLE KEY.
    Bypasses row-level security, so it is only used for:
        - validating access tokens (auth.get_user)
        - signing users in with email/password
        - health checks
    """
    try:
        supabase_url = settings.SUPABASE_URL
        supabase_key = settings.SUPABASE_SERVICE_ROLE_KEY

        if not supabase_url or not supabase_key:
            logger.error("Missing Supabase credentials")
            logger.error(f"   URL: {supabase_url}")
            logger.error(f"   SERVICE ROLE KEY: {'SET' if supabase_key else 'MISSING'}")
            return None

        return create_client(supabase_url, supabase_key)

    except Exception as e:
        logger.error(f"Supabase Init Error: {e}", exc_info=True)
        return None


# ============================================================
# User-scoped client (row-level security applies)
# ============================================================

def get_user_client(access_token: str) -> Optional[Client]:
    """
    Creates an anon-key client that forwards the user's JWT to PostgREST,
    so every read and write is checked by the table policies.
    """
    try:
        supabase_url = settings.SUPABASE_URL
        anon_key = settings.SUPABASE_ANON_KEY

        if not supabase_url or not anon_key:
            logger.error("Missing Supabase anon credentials")
            return None

        client = create_client(supabase_url, anon_key)
        client.postgrest.auth(access_token)
        return client

    except Exception as e:
        logger.error(f"Supabase User Client Error: {e}", exc_info=True)
        return None


# ============================================================
# Ping Supabase for health checks
# ============================================================

def ping_supabase() -> dict:
    """
    Simple connectivity check across the portal tables.
    """
    try:
        client = get_supabase_client()
        if client is None:
            return {"service": "Supabase", "status": "not_configured"}

        results = {}

        for t in PORTAL_TABLES:
            try:
                res = client.table(t).select("*").limit(1).execute()
                results[t] = {
                    "status": "ok",
                    "rows_found": len(res.data or [])
                }
            except Exception as err:
                results[t] = {"status": "error", "detail": str(err)}

        return {
            "service": "Supabase",
            "status": "ok",
            "tables": results,
        }

    except Exception as e:
        logger.error(f"Supabase Ping Error: {e}", exc_info=True)
        return {"service": "Supabase", "status": "error", "detail": str(e)}
