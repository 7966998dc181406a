# routers/tools.py

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from core.local_store import LocalStore
from dependencies.auth import get_device_id
from services.calculators import AREA_UNITS, describe_conversion, estimate_emi
from services.survey_pad import SurveyPad


router = APIRouter(
    prefix="/tools",
    tags=["Utilities"],
)


class AreaConversionRequest(BaseModel):
    amount: float
    from_unit: str = "Square Feet"
    to_unit: str = "Square Yard"


class EmiRequest(BaseModel):
    principal: float = Field(5000000, ge=0)
    annual_rate: float = Field(8.5, ge=0)
    years: float = Field(20, gt=0)


class NoteCreate(BaseModel):
    note: str


@router.get("/area-units", summary="Supported land-area units")
def list_area_units():
    return {"units": list(AREA_UNITS)}


@router.post("/area-conversion", summary="Convert between land-area units")
def convert(payload: AreaConversionRequest):
    try:
        return describe_conversion(payload.amount, payload.from_unit, payload.to_unit)
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.post("/emi", summary="Monthly EMI estimate")
def emi(payload: EmiRequest):
    try:
        return estimate_emi(payload.principal, payload.annual_rate, payload.years)
    except ValueError as e:
        raise HTTPException(400, str(e))


# -----------------------------------------------------
# Survey pad (field notes kept per device)
# -----------------------------------------------------
@router.get("/notes", summary="Field notes for this device")
def read_notes(device_id: str = Depends(get_device_id)):
    return {"notes": SurveyPad(LocalStore.for_device(device_id)).notes}


@router.post("/notes", summary="Add a field note")
def add_note(payload: NoteCreate, device_id: str = Depends(get_device_id)):
    return {"notes": SurveyPad(LocalStore.for_device(device_id)).add(payload.note)}
