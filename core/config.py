from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=True, extra="ignore")

    # -------------------------------------------------
    # General
    # -------------------------------------------------
    PROJECT_NAME: str = "ABS Portal API"
    ENV: str = "development"

    # -------------------------------------------------
    # Frontend Domains
    # -------------------------------------------------
    FRONTEND_DOMAINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    # -------------------------------------------------
    # CORS (auto-built below)
    # -------------------------------------------------
    BACKEND_CORS_ORIGINS: List[str] = []

    # -------------------------------------------------
    # Supabase (Document DB & Auth)
    # -------------------------------------------------
    SUPABASE_URL: Optional[str] = None
    SUPABASE_ANON_KEY: Optional[str] = None
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None

    # Mirror the site config into the `site_config` table
    SITE_CONFIG_MIRROR: bool = False

    # -------------------------------------------------
    # Live queries
    # -------------------------------------------------
    LIVE_QUERY_INTERVAL_SECONDS: int = Field(
        5, description="Polling interval for live query subscriptions"
    )

    # -------------------------------------------------
    # Gemini (AI assistant)
    # -------------------------------------------------
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_ENABLE_MAPS: bool = False

    # Chat submissions allowed per device per minute
    CHAT_RATE_LIMIT: int = 20

    # Idle chat widgets kept in memory before the oldest is released
    CHAT_WIDGET_CACHE_SIZE: int = 256

    # -------------------------------------------------
    # Reverse geocoding (Nominatim)
    # -------------------------------------------------
    GEOCODER_URL: str = "https://nominatim.openstreetmap.org"
    GEOCODER_USER_AGENT: str = "abs-portal/1.0"
    GEOCODER_TIMEOUT_SECONDS: int = 10

    # -------------------------------------------------
    # Device-local storage
    # -------------------------------------------------
    LOCAL_STATE_DIR: str = ".abs_state"


# Instantiate settings
settings = Settings()

# -------------------------------------------------
# Build CORS list dynamically after loading settings
# -------------------------------------------------
settings.BACKEND_CORS_ORIGINS = sorted(
    {d.rstrip("/") for d in settings.FRONTEND_DOMAINS}
)
