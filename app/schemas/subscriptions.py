from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel


class SubscriptionPlanResponse(BaseModel):
    id: str
    plan_type: str
    name: str
    credits: int
    price: float
    currency: str
    features: List[str]


class SubscribeRequest(BaseModel):
    plan_type: Literal["weekly", "monthly", "yearly"]


class SubscriptionResponse(BaseModel):
    id: int
    plan_type: str
    status: str
    start_date: datetime
    end_date: datetime

    class Config:
        from_attributes = True


class SubscribeResponse(BaseModel):
    subscription: SubscriptionResponse
    credits_granted: int
    message: str


class SubscriptionStatusResponse(BaseModel):
    is_premium: bool
    premium_expires_at: Optional[datetime] = None
    credits: int
    active_subscription: Optional[SubscriptionResponse] = None


class MessageResponse(BaseModel):
    message: str
