# models/records.py

"""
Record variants for the portal tables.

Rows coming back from Supabase are decoded through these models at the
boundary; rows that fail validation are quarantined instead of rendered.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator

from models.enums import Role, PropertyType


# ===============================================================
# user_permissions (keyed by lowercased email)
# ===============================================================

class UserPermission(BaseModel):
    email: str
    role: Role = Role.client
    display_name: Optional[str] = None
    uid: Optional[str] = None
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("email must contain '@'")
        return v


class RoleUpdate(BaseModel):
    role: Role


# ===============================================================
# external_apps
# ===============================================================

class ExternalApp(BaseModel):
    id: str
    name: str
    url: str
    description: str = ""
    category: str = "Utility"
    created_at: Optional[datetime] = None


class ExternalAppCreate(BaseModel):
    name: str
    url: str
    description: str = ""
    category: str = "Utility"

    @field_validator("name", "url")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


# ===============================================================
# market_intelligence
# ===============================================================

class PropertyRecord(BaseModel):
    id: str
    lat: float
    lng: float
    type: PropertyType
    rate: float
    area_name: str = ""
    city: str = ""
    recorded_by: Optional[str] = None
    user_id: str
    timestamp: Optional[datetime] = None


class PropertyRecordCreate(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    type: PropertyType = PropertyType.residential
    rate: float = Field(gt=0)
    area_name: str = "Point Location"
    city: str = "Unknown"


# ===============================================================
# daily_work_logs
# ===============================================================

class WorkLogEntry(BaseModel):
    id: str
    name: str
    reason: str
    user_id: str
    recorded_by: Optional[str] = None
    timestamp: Optional[datetime] = None
    date: Optional[str] = None


class WorkLogCreate(BaseModel):
    name: Optional[str] = None
    reason: str


# ===============================================================
# Decoding
# ===============================================================

R = TypeVar("R", bound=BaseModel)


@dataclass
class DecodeResult(Generic[R]):
    records: List[R] = field(default_factory=list)
    quarantined: List[dict] = field(default_factory=list)


def decode_documents(model: Type[R], rows: Optional[list]) -> DecodeResult[R]:
    """Validate raw rows against `model`; malformed rows are set aside."""
    from core.logging_config import logger

    result: DecodeResult[R] = DecodeResult()

    for row in rows or []:
        if not isinstance(row, dict):
            result.quarantined.append({"row": row, "error": "not an object"})
            continue
        try:
            result.records.append(model.model_validate(row))
        except ValidationError as e:
            result.quarantined.append({"row": row, "error": str(e)})

    if result.quarantined:
        logger.warning(
            f"Quarantined {len(result.quarantined)} malformed {model.__name__} row(s)"
        )

    return result
