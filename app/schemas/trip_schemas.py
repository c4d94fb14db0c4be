"""여행 스키마"""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.models import CollaborationRole
from app.schemas.auth_schemas import UserSummary


class PlannedDates(BaseModel):
    """계획 일정 필드 (연/월/일 각각 선택)"""
    planned_start_year: int | None = Field(None, ge=1000, le=9999)
    planned_start_month: int | None = Field(None, ge=1, le=12)
    planned_start_day: int | None = Field(None, ge=1, le=31)
    planned_end_year: int | None = Field(None, ge=1000, le=9999)
    planned_end_month: int | None = Field(None, ge=1, le=12)
    planned_end_day: int | None = Field(None, ge=1, le=31)
    planned_duration_days: int | None = Field(None, ge=1, le=9999)


class TripCreate(PlannedDates):
    name: str = Field(..., min_length=1, max_length=255)
    country: str | None = Field(None, min_length=2, max_length=2)
    notes: str | None = None
    viewport_latitude: float | None = Field(None, ge=-90, le=90)
    viewport_longitude: float | None = Field(None, ge=-180, le=180)
    viewport_zoom: float | None = Field(None, ge=0, le=22)

    @field_validator("country")
    @classmethod
    def upper_country(cls, v: str | None) -> str | None:
        return v.upper() if v else v


class TripUpdate(TripCreate):
    """부분 수정, 전달된 필드만 반영"""
    name: str | None = Field(None, min_length=1, max_length=255)


class TripResponse(PlannedDates):
    id: int
    name: str
    user_id: int
    country: str | None = None
    notes: str | None = None
    viewport_latitude: float | None = None
    viewport_longitude: float | None = None
    viewport_zoom: float | None = None
    viewport_static_image_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class TripDetailResponse(TripResponse):
    owner: UserSummary
    is_owner: bool = False
    can_delete: bool = False


class InvitationTokenResponse(BaseModel):
    token: str
    url: str


class TripPreviewMarker(BaseModel):
    id: str
    name: str
    type: str
    latitude: float
    longitude: float

    model_config = ConfigDict(from_attributes=True)


class TripPreviewResponse(BaseModel):
    trip: TripResponse
    owner: UserSummary
    markers: list[TripPreviewMarker]
    is_collaborator: bool


class CollaboratorAdd(BaseModel):
    email: EmailStr
    role: CollaborationRole = CollaborationRole.EDITOR

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class CollaboratorResponse(BaseModel):
    id: int
    name: str
    email: str
    collaboration_role: str
    joined_at: datetime | None = None
