from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.dependencies.auth import get_current_user_id
from app.schemas.fortunes import FortuneCreate, FortuneResponse, FortuneSummary
from app.services import fortunes as fortune_service
from app.services.interpretation import InterpretationClient, get_interpretation_client

router = APIRouter()


@router.post("", response_model=FortuneResponse, status_code=status.HTTP_201_CREATED)
def create_fortune(
    data: FortuneCreate,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
    client: InterpretationClient = Depends(get_interpretation_client),
):
    """
    Read up to 5 coffee cup photos for the user or a guest.
    Costs 3 credits, charged only when the reading is stored.
    """
    return fortune_service.create_fortune(
        db,
        user_id,
        photos=data.photos,
        for_self=data.for_self,
        client=client,
        guest=data.guest_data,
    )


@router.get("", response_model=List[FortuneSummary])
def list_fortunes(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    """Fortune history, newest first."""
    return fortune_service.list_fortunes(db, user_id)


@router.get("/{fortune_id}", response_model=FortuneResponse)
def get_fortune(
    fortune_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    return fortune_service.get_fortune(db, user_id, fortune_id)
