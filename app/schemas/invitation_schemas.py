"""사용자 초대 스키마"""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator

from app.models import UserRole
from app.schemas.auth_schemas import Token, UserResponse


class InvitationCreate(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class InviterSummary(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class InvitationResponse(BaseModel):
    id: int
    email: str
    role: UserRole
    invited_by: int
    accepted_at: datetime | None = None
    expires_at: datetime
    created_at: datetime | None = None
    updated_at: datetime | None = None
    inviter: InviterSummary | None = None

    model_config = ConfigDict(from_attributes=True)


class InvitationPage(BaseModel):
    """초대 토큰 조회 결과 (SPA 페이지 props)"""
    component: str
    props: dict


class InvitationAccept(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=8)
    password_confirmation: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("password_confirmation")
    @classmethod
    def passwords_match(cls, v: str, info: ValidationInfo) -> str:
        if "password" in info.data and v != info.data["password"]:
            raise ValueError("The password confirmation does not match")
        return v


class InvitationAcceptResponse(BaseModel):
    user: UserResponse
    token: Token
