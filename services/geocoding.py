# services/geocoding.py

from dataclasses import dataclass
from typing import Optional

import requests

from core.config import settings
from core.logging_config import logger


class GeocodingError(Exception):
    pass


@dataclass
class PlaceLabels:
    area_name: str
    city: str


def labels_from_address(address: Optional[dict]) -> PlaceLabels:
    a = address or {}
    return PlaceLabels(
        area_name=a.get("suburb") or a.get("road") or "Point Location",
        city=a.get("city") or a.get("town") or "Unknown",
    )


def reverse_geocode(lat: float, lng: float, session: Optional[requests.Session] = None) -> PlaceLabels:
    """
    GET {GEOCODER_URL}/reverse?format=json&lat=..&lon=..
    Raises GeocodingError on network or decoding failures.
    """
    http = session or requests
    try:
        resp = http.get(
            f"{settings.GEOCODER_URL.rstrip('/')}/reverse",
            params={"format": "json", "lat": lat, "lon": lng},
            headers={"User-Agent": settings.GEOCODER_USER_AGENT},
            timeout=settings.GEOCODER_TIMEOUT_SECONDS,
        )
        resp.raise_for_status()
        payload = resp.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning(f"Reverse geocode failed for ({lat}, {lng}): {e}")
        raise GeocodingError(str(e)) from e

    return labels_from_address(payload.get("address"))
