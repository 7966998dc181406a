# routers/dashboard.py

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, ValidationError

from core.session import AppContext
from dependencies.auth import get_signed_in_context
from models.enums import PropertyType
from models.records import WorkLogCreate
from services.gated_views import UserAppsView, submit_work_log
from services.survey_map import MapSurveyTool


router = APIRouter(
    prefix="/dashboard",
    tags=["Dashboard"],
)


class LocateRequest(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    # Browser-side click counter, echoed so a superseded result can be dropped
    click: Optional[int] = None


class SurveySubmission(BaseModel):
    lat: float
    lng: float
    rate: float
    type: PropertyType = PropertyType.residential
    area_name: Optional[str] = None
    city: Optional[str] = None


# -----------------------------------------------------
# App gallery
# -----------------------------------------------------
@router.get("/apps", summary="System and external apps for the signed-in user")
def read_apps(ctx: AppContext = Depends(get_signed_in_context)):
    return UserAppsView(ctx).load().render()


# -----------------------------------------------------
# Work log
# -----------------------------------------------------
@router.post("/work-logs", summary="Add an entry to the activity ledger", status_code=201)
def create_work_log(payload: WorkLogCreate, ctx: AppContext = Depends(get_signed_in_context)):
    try:
        return submit_work_log(ctx, payload)
    except ValueError as e:
        raise HTTPException(400, str(e))


# -----------------------------------------------------
# Market intelligence map
# -----------------------------------------------------
@router.get("/market", summary="Survey map viewport and visible records")
def read_market(ctx: AppContext = Depends(get_signed_in_context)):
    tool = MapSurveyTool(ctx)
    tool.records.load()
    return tool.render()


@router.post("/market/locate", summary="Reverse-geocode a clicked point")
def locate_point(payload: LocateRequest, ctx: AppContext = Depends(get_signed_in_context)):
    draft = MapSurveyTool(ctx).locate(payload.lat, payload.lng)
    return {
        "lat": draft.lat,
        "lng": draft.lng,
        "type": draft.type,
        "area_name": draft.area_name,
        "city": draft.city,
        "click": payload.click,
    }


@router.post("/market/records", summary="File a property rate record", status_code=201)
def create_market_record(payload: SurveySubmission, ctx: AppContext = Depends(get_signed_in_context)):
    tool = MapSurveyTool(ctx)
    tool.start_draft(payload.lat, payload.lng, area_name=payload.area_name, city=payload.city)
    try:
        return tool.submit(payload.rate, payload.type.value)
    except ValidationError as e:
        raise HTTPException(400, f"Invalid survey record: {e.errors()[0]['msg']}")
    except ValueError as e:
        raise HTTPException(400, str(e))
