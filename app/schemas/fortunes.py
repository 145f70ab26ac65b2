from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from app.core.config import MAX_FORTUNE_PHOTOS, MAX_PHOTO_BYTES


class GuestData(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    gender: str = Field(..., min_length=1, max_length=40)
    birth_date: str = Field(..., min_length=1, max_length=40)
    relationship_status: str = Field(..., min_length=1, max_length=40)
    profession: str = Field(..., min_length=1, max_length=120)


class FortuneCreate(BaseModel):
    photos: List[str] = Field(..., min_length=1, max_length=MAX_FORTUNE_PHOTOS)
    for_self: bool
    guest_data: Optional[GuestData] = None

    @field_validator("photos")
    @classmethod
    def check_photos(cls, photos: List[str]) -> List[str]:
        for photo in photos:
            if not photo or not photo.strip():
                raise ValueError("Photos must not be empty")
            if len(photo) > MAX_PHOTO_BYTES:
                raise ValueError("Photo is too large")
        return photos


class FortuneResponse(BaseModel):
    id: int
    photos: List[str]
    for_self: bool
    guest_name: Optional[str] = None
    guest_gender: Optional[str] = None
    guest_birth_date: Optional[str] = None
    guest_relationship_status: Optional[str] = None
    guest_profession: Optional[str] = None
    interpretation: str
    created_at: datetime

    class Config:
        from_attributes = True


class FortuneSummary(BaseModel):
    id: int
    created_at: datetime
    for_self: bool
    guest_name: Optional[str] = None
    preview: str
