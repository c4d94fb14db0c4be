from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

from app.models import UserRole


class UserLogin(BaseModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    role: UserRole
    email_verified_at: datetime | None = None
    last_login_at: datetime | None = None
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class UserSummary(BaseModel):
    id: int
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class Token(BaseModel):
    access_token: str
    refresh_token: str | None = None
    token_type: str = "bearer"


class LoginResponse(BaseModel):
    user: UserResponse
    token: Token


class RefreshTokenRequest(BaseModel):
    refresh_token: str
