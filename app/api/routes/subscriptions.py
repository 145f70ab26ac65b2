from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.dependencies.auth import get_current_user_id
from app.schemas.subscriptions import (
    MessageResponse,
    SubscribeRequest,
    SubscribeResponse,
    SubscriptionPlanResponse,
    SubscriptionStatusResponse,
)
from app.services import subscriptions as subscription_service

router = APIRouter()


@router.get("/plans", response_model=List[SubscriptionPlanResponse])
def get_plans():
    """Subscription plan catalog. No auth required."""
    return subscription_service.list_plans()


@router.post("/subscribe", response_model=SubscribeResponse)
def subscribe(
    data: SubscribeRequest,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    return subscription_service.subscribe(db, user_id, data.plan_type)


@router.get("/status", response_model=SubscriptionStatusResponse)
def get_status(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    return subscription_service.get_status(db, user_id)


@router.post("/cancel", response_model=MessageResponse)
def cancel(
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id)
):
    return subscription_service.cancel(db, user_id)
