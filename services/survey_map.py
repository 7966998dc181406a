# services/survey_map.py

"""
Map-based survey tool: click a point, get its area/city labels from the
reverse geocoder, then file a PropertyRecord there.
"""

from dataclasses import dataclass, asdict
from threading import Lock
from typing import Callable, List, Optional

from core.errors import AccessRestrictedError
from core.logging_config import logger
from core.session import AppContext
from models.enums import PropertyType
from models.records import PropertyRecord, PropertyRecordCreate
from services.gated_views import MarketRecordsView, utcnow_iso
from services.geocoding import GeocodingError, PlaceLabels, reverse_geocode


DEFAULT_CENTER = (29.2104, 78.9619)
DEFAULT_ZOOM = 13
TILE_URL = "https://{s}.basemaps.cartocdn.com/rastertiles/voyager/{z}/{x}/{y}{r}.png"

LOCATING = "Locating..."

MARKER_COLORS = {
    PropertyType.commercial: "#3b82f6",
}
DEFAULT_MARKER_COLOR = "#10b981"


def viewport() -> dict:
    return {
        "center": {"lat": DEFAULT_CENTER[0], "lng": DEFAULT_CENTER[1]},
        "zoom": DEFAULT_ZOOM,
        "tile_url": TILE_URL,
    }


def marker_for(record: PropertyRecord) -> dict:
    color = MARKER_COLORS.get(record.type, DEFAULT_MARKER_COLOR)
    return {
        "id": record.id,
        "lat": record.lat,
        "lng": record.lng,
        "radius": 10,
        "color": color,
        "fill_color": color,
        "fill_opacity": 0.6,
        "weight": 3,
        "popup": f"<strong>{record.type.value}</strong><br/>₹{record.rate:g}",
    }


def markers(records: List[PropertyRecord]) -> List[dict]:
    return [marker_for(r) for r in records]


@dataclass
class SurveyDraft:
    lat: float
    lng: float
    type: str = PropertyType.residential.value
    area_name: str = LOCATING
    city: str = LOCATING


class MapSurveyTool:
    """
    Holds the current draft. Each click supersedes the previous one, so a
    geocode result that arrives for an older click is ignored.
    """

    def __init__(
        self,
        ctx: AppContext,
        geocoder: Callable[[float, float], PlaceLabels] = reverse_geocode,
        *,
        scheduler=None,
    ):
        self.ctx = ctx
        self.geocoder = geocoder
        self.records = MarketRecordsView(ctx, scheduler=scheduler)
        self.draft: Optional[SurveyDraft] = None
        self._click = 0
        self._lock = Lock()

    def locate(self, lat: float, lng: float) -> SurveyDraft:
        with self._lock:
            self._click += 1
            click = self._click
            self.draft = SurveyDraft(lat=lat, lng=lng)

        try:
            labels = self.geocoder(lat, lng)
        except GeocodingError:
            return self.draft

        with self._lock:
            if click != self._click:
                logger.info(f"Ignoring geocode result for superseded click ({lat}, {lng})")
                return self.draft
            self.draft.area_name = labels.area_name
            self.draft.city = labels.city
            return self.draft

    def start_draft(self, lat: float, lng: float, *, area_name: Optional[str] = None, city: Optional[str] = None) -> SurveyDraft:
        """Resume a draft whose labels the browser already holds."""
        with self._lock:
            self._click += 1
            self.draft = SurveyDraft(
                lat=lat,
                lng=lng,
                area_name=area_name or LOCATING,
                city=city or LOCATING,
            )
            return self.draft

    def submit(
        self,
        rate: float,
        property_type: str = PropertyType.residential.value,
        *,
        area_name: Optional[str] = None,
        city: Optional[str] = None,
    ) -> dict:
        if self.draft is None:
            raise ValueError("Select a location on the map first")
        if not self.ctx.identity:
            raise AccessRestrictedError("Market Intelligence", "Session expired. Please log in again.", reason="signed-out")

        record = PropertyRecordCreate(
            lat=self.draft.lat,
            lng=self.draft.lng,
            type=property_type,
            rate=rate,
            area_name=area_name or self.draft.area_name,
            city=city or self.draft.city,
        )
        saved = self.records.create({
            **record.model_dump(mode="json"),
            "recorded_by": self.ctx.identity.normalized_email,
            "user_id": self.ctx.identity.uid,
            "timestamp": utcnow_iso(),
        })
        self.draft = None
        return saved

    def render(self) -> dict:
        listing = self.records.render()
        if listing.get("status") == "ok":
            listing["markers"] = markers(self.records.visible_rows())
        return {
            "viewport": viewport(),
            "draft": asdict(self.draft) if self.draft else None,
            "records": listing,
        }
