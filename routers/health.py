# routers/health.py

from fastapi import APIRouter

from core.config import settings
from core.live_query import get_scheduler
from core.supabase_client import ping_supabase

router = APIRouter(
    prefix="/health",
    tags=["Health"],
)


# -----------------------------------------------------
# GET /health/db
# Portal tables reachable with the service key
# -----------------------------------------------------
@router.get("/db", summary="Supabase / DB health check")
def health_db():
    """
    Queries one row from each portal table and reports per-table status.
    No auth required.
    """
    status = ping_supabase()
    return {
        "service": "Supabase",
        "status": status.get("status", "unknown"),
        "details": status,
    }


# -----------------------------------------------------
# GET /health/live
# Polling jobs backing live subscriptions
# -----------------------------------------------------
@router.get("/live", summary="Live subscription scheduler")
def health_live():
    scheduler = get_scheduler()
    return {
        "service": "Live queries",
        "status": "ok" if scheduler.running else "stopped",
        "interval_seconds": settings.LIVE_QUERY_INTERVAL_SECONDS,
        "active_jobs": len(scheduler.get_jobs()),
    }


# -----------------------------------------------------
# GET /health/app
# -----------------------------------------------------
@router.get("/app", summary="App health check")
def health_app():
    return {
        "service": "ABS Portal",
        "status": "ok",
        "assistant_configured": bool(settings.GEMINI_API_KEY),
    }
