from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.dependencies.auth import get_current_user_id
from app.schemas.auth import UserResponse
from app.schemas.users import OnboardingRequest, ProfileUpdate
from app.services import users as user_service

router = APIRouter()


@router.post("/onboarding", response_model=UserResponse)
def complete_onboarding(
    data: OnboardingRequest,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """First-time profile completion; grants the signup bonus credits."""
    user = user_service.complete_onboarding(
        db,
        user_id,
        full_name=data.full_name,
        birth_date=data.birth_date,
        relationship_status=data.relationship_status,
        profession=data.profession,
    )
    return UserResponse.from_user(user)


@router.get("/profile", response_model=UserResponse)
def get_profile(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    return UserResponse.from_user(user_service.get_user(db, user_id))


@router.patch("/profile", response_model=UserResponse)
def update_profile(
    data: ProfileUpdate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """Update relationship status and/or profession."""
    user = user_service.update_profile(
        db,
        user_id,
        relationship_status=data.relationship_status,
        profession=data.profession,
    )
    return UserResponse.from_user(user)
