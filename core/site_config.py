# core/site_config.py

import copy
import math
from typing import Any, Optional

from core.local_store import LocalStore, SITE_CONFIG_KEY
from core.logging_config import logger
from models.site_config import SiteConfig


DEFAULT_CONFIG = {
    "hero": {
        "badge": "IBBI Registered Valuer",
        "title_line1": "Precision in Every",
        "title_line2": "Valuation",
        "description": (
            "Professional surveyors delivering accurate valuations and expert property advice. "
            "Trusted by homeowners and investors for over 20 years."
        ),
        "background_image": "https://images.unsplash.com/photo-1486406146926-c627a92ad1ab?w=1800&q=80",
    },
    "seo": {
        "title": "Aaditya Building Solution | Professional Surveying & Valuation",
        "description": "Professional IBBI Registered Valuers offering residential & commercial valuations.",
        "keywords": "surveyors, valuers, IBBI, property valuation, building survey",
    },
    "theme": {
        "primary_color": "#2563eb",
        "dark_mode": False,
    },
    "contact": {
        "phone": "+91 98371 79179",
        "email": "vr.arpitagarwal@gmail.com",
        "address": "Santoshi Mata Mandir Wali Gali, Cheema Chauraha, Ramnagar Road, Kashipur, Uttarakhand",
        "google_maps_link": "https://maps.google.com/?q=Santoshi+Mata+Mandir+Wali+Gali+Cheema+Chauraha+Kashipur",
        "socials": {
            "facebook": "#",
            "twitter": "#",
            "linkedin": "#",
            "instagram": "#",
        },
    },
    "features": {
        "enable_ai": True,
        "show_testimonials": True,
    },
    "stats": {
        "years": 20,
        "properties": 5000,
        "clients": 1000,
    },
    "banks": [
        "Bank of Baroda", "Bank of India", "Indian Bank", "Bank of Maharashtra",
        "Punjab National Bank", "Indian Overseas Bank", "UCO Bank", "Canara Bank",
        "Uttarakhand Gramin Bank", "State Bank of India", "U.S. Nagar Distt Cooperative Bank",
        "Yes Bank", "Kashipur Urban Cooperative Bank", "Axis Bank", "Jammu & Kashmir Bank",
        "Nainital Bank",
    ],
}

SECTIONS = list(DEFAULT_CONFIG.keys())

LIGHT_SHADE_PERCENT = 40
DARK_SHADE_PERCENT = -30


# ============================================================
# Theme shades
# ============================================================

def adjust_color(hex_color: str, percent: float) -> str:
    """
    Scale each RGB channel by (1 + percent/100), flooring and capping at 255.
    """
    channels = []
    for i in (1, 3, 5):
        value = int(hex_color[i:i + 2], 16)
        value = math.floor(value * (1 + percent / 100))
        channels.append(max(0, min(value, 255)))
    return "#" + "".join(f"{c:02x}" for c in channels)


def theme_variables(primary: str) -> dict:
    return {
        "--color-primary": primary,
        "--color-primary-light": adjust_color(primary, LIGHT_SHADE_PERCENT),
        "--color-primary-dark": adjust_color(primary, DARK_SHADE_PERCENT),
    }


def theme_css(variables: dict) -> str:
    lines = [f"  {name}: {value};" for name, value in variables.items()]
    return ":root {\n" + "\n".join(lines) + "\n}\n"


def merge_with_defaults(stored: Any) -> dict:
    """Overlay a stored override on the defaults, section by section."""
    if not isinstance(stored, dict):
        raise TypeError("stored site config must be an object")
    merged = copy.deepcopy(DEFAULT_CONFIG)
    for section in SECTIONS:
        if section in stored:
            merged[section] = copy.deepcopy(stored[section])
    return merged


# ============================================================
# Optional mirror into Supabase
# ============================================================

class SiteConfigMirror:
    """Keeps a copy of the site config in the `site_config` table."""

    TABLE = "site_config"
    ROW_ID = "default"

    def __init__(self, client):
        self.client = client

    def load(self) -> Optional[dict]:
        try:
            res = (
                self.client.table(self.TABLE)
                .select("data")
                .eq("id", self.ROW_ID)
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.warning(f"Site config mirror read failed: {e}")
            return None
        if not res.data:
            return None
        return res.data[0].get("data")

    def save(self, config: dict):
        try:
            self.client.table(self.TABLE).upsert(
                {"id": self.ROW_ID, "data": config}, on_conflict="id"
            ).execute()
        except Exception as e:
            logger.warning(f"Site config mirror write failed: {e}")


# ============================================================
# Config store
# ============================================================

class ConfigStore:
    """
    Holds the merged site configuration. Every mutation persists to the
    device-local store (and the mirror, when configured) and recomputes the
    theme shades.
    """

    def __init__(self, store: LocalStore, mirror: Optional[SiteConfigMirror] = None):
        self.store = store
        self.mirror = mirror
        self._config = self._load()
        self.theme_vars = theme_variables(self._config["theme"]["primary_color"])

    def _load(self) -> dict:
        stored = self.mirror.load() if self.mirror else None
        if stored is None:
            stored = self.store.get(SITE_CONFIG_KEY)
        if stored is None:
            return copy.deepcopy(DEFAULT_CONFIG)

        try:
            merged = SiteConfig.model_validate(merge_with_defaults(stored)).model_dump()
        except (ValueError, TypeError) as e:
            logger.warning(f"Discarding stored site config: {e}")
            self.store.delete(SITE_CONFIG_KEY)
            return copy.deepcopy(DEFAULT_CONFIG)

        return merged

    @property
    def config(self) -> dict:
        return copy.deepcopy(self._config)

    def model(self) -> SiteConfig:
        return SiteConfig.model_validate(self._config)

    def section(self, name: str) -> Any:
        if name not in SECTIONS:
            raise KeyError(f"Unknown config section: {name}")
        return copy.deepcopy(self._config[name])

    def _commit(self, config: dict):
        self._config = config
        self.store.set(SITE_CONFIG_KEY, config)
        if self.mirror:
            self.mirror.save(config)
        self.theme_vars = theme_variables(config["theme"]["primary_color"])

    def update_config(self, section: str, data: Any) -> dict:
        """
        Lists replace the section wholesale; dicts shallow-merge into it.
        Raises KeyError for unknown sections and ValueError when the result
        does not validate (nothing is persisted in that case).
        """
        if section not in SECTIONS:
            raise KeyError(f"Unknown config section: {section}")

        current = self._config[section]
        if isinstance(data, list):
            value = list(data)
        elif isinstance(data, dict) and isinstance(current, dict):
            value = {**current, **data}
        else:
            raise TypeError(f"Section '{section}' cannot be updated with {type(data).__name__}")

        candidate = {**self._config, section: value}
        # Persist the coerced values; unknown keys are dropped
        normalized = SiteConfig.model_validate(candidate).model_dump()

        self._commit(normalized)
        return self.config

    def reset_config(self) -> dict:
        self._commit(copy.deepcopy(DEFAULT_CONFIG))
        return self.config

    # -----------------------------------------------------
    # Site editor helpers
    # -----------------------------------------------------
    def set_stat(self, key: str, value: Any) -> dict:
        try:
            number = int(float(str(value).strip()))
        except (ValueError, OverflowError):
            number = 0
        return self.update_config("stats", {key: number})

    def add_bank(self, name: str) -> dict:
        name = (name or "").strip()
        if not name:
            return self.config
        return self.update_config("banks", self._config["banks"] + [name])

    def remove_bank(self, name: str) -> dict:
        return self.update_config("banks", [b for b in self._config["banks"] if b != name])
