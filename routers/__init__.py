# routers/__init__.py

from fastapi import APIRouter

from .public import router as public_router
from .auth import router as auth_router
from .admin import router as admin_router
from .dashboard import router as dashboard_router
from .tools import router as tools_router
from .chat import router as chat_router
from .live import router as live_router
from .health import router as health_router


api_router = APIRouter()

# Public marketing site
api_router.include_router(public_router)
api_router.include_router(chat_router)

# Auth + portal
api_router.include_router(auth_router)
api_router.include_router(dashboard_router)
api_router.include_router(tools_router)
api_router.include_router(live_router)

# Admin console
api_router.include_router(admin_router)

api_router.include_router(health_router)

__all__ = ["api_router"]
