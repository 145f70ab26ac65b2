from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field

RelationshipStatus = Literal["single", "married", "relationship", "other"]


class OnboardingRequest(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=120)
    birth_date: date
    relationship_status: RelationshipStatus
    profession: str = Field(..., min_length=1, max_length=120)

    class Config:
        str_strip_whitespace = True


class ProfileUpdate(BaseModel):
    relationship_status: Optional[RelationshipStatus] = None
    profession: Optional[str] = Field(None, min_length=1, max_length=120)

    class Config:
        extra = "forbid"
        str_strip_whitespace = True
