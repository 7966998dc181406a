# routers/public.py

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from dependencies.auth import get_config_store
from core.site_config import ConfigStore, theme_css
from services.site_content import build_site_content


router = APIRouter(
    prefix="/site",
    tags=["Public Site"],
)


# -----------------------------------------------------
# GET /site/config
# -----------------------------------------------------
@router.get("/config", summary="Merged site configuration")
def read_site_config(store: ConfigStore = Depends(get_config_store)):
    return {
        "config": store.config,
        "theme": store.theme_vars,
    }


# -----------------------------------------------------
# GET /site/content
# Everything the marketing pages render
# -----------------------------------------------------
@router.get("/content", summary="Marketing page content")
def read_site_content(store: ConfigStore = Depends(get_config_store)):
    return build_site_content(store.model())


# -----------------------------------------------------
# GET /site/theme.css
# -----------------------------------------------------
@router.get("/theme.css", response_class=PlainTextResponse, summary="Theme CSS variables")
def read_theme_css(store: ConfigStore = Depends(get_config_store)):
    return PlainTextResponse(theme_css(store.theme_vars), media_type="text/css")
