"""마커 스키마"""
import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, HttpUrl, field_validator

from app.schemas.trip_schemas import PlannedDates


class MarkerBase(PlannedDates):
    name: str = Field(..., min_length=1, max_length=255)
    type: str = Field(..., min_length=1, max_length=100)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    notes: str | None = None
    url: HttpUrl | None = None
    is_unesco: bool = False
    ai_enriched: bool = False


class MarkerCreate(MarkerBase):
    id: uuid.UUID | None = None
    trip_id: int | None = None
    tour_id: int | None = None


class MarkerUpdate(PlannedDates):
    name: str | None = Field(None, min_length=1, max_length=255)
    type: str | None = Field(None, min_length=1, max_length=100)
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)
    notes: str | None = None
    url: HttpUrl | None = None
    is_unesco: bool | None = None
    ai_enriched: bool | None = None

    @field_validator("name", "type", "latitude", "longitude", "is_unesco", "ai_enriched")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("This field may not be null")
        return v


class MarkerResponse(PlannedDates):
    id: str
    name: str
    type: str
    latitude: float
    longitude: float
    notes: str | None = None
    url: str | None = None
    is_unesco: bool
    ai_enriched: bool
    trip_id: int
    user_id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class MarkerTypeOption(BaseModel):
    value: str
    label: str
