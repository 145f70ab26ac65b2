from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import date, datetime


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72)


class GoogleAuthRequest(BaseModel):
    id_token: str = Field(..., min_length=1)


class AppleAuthRequest(BaseModel):
    identity_token: str = Field(..., min_length=1)
    full_name: Optional[str] = None  # Apple only sends the name on the first sign-in


class UserResponse(BaseModel):
    """Account view returned to clients. Has no password hash field by construction."""

    id: int
    email: str
    full_name: Optional[str] = None
    birth_date: Optional[date] = None
    relationship_status: Optional[str] = None
    profession: Optional[str] = None
    credits: int
    is_premium: bool
    premium_expires_at: Optional[datetime] = None
    onboarding_completed: bool
    has_google: bool = False
    has_apple: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_user(cls, user) -> "UserResponse":
        view = cls.model_validate(user)
        view.has_google = bool(user.google_id)
        view.has_apple = bool(user.apple_id)
        return view


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse
