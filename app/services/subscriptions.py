"""
Simulated subscription plans.

Subscribing creates a subscription row, marks the account premium until the
plan's end date and grants the plan's credits, all in one commit. At most one
active, unexpired subscription per account is kept by this module: an
existing one is cancelled before a new one starts.
"""
import logging
from datetime import datetime

from sqlalchemy.orm import Session

from app.core.catalog import SUBSCRIPTION_PLANS, get_subscription_plan
from app.core.errors import BusinessRuleError, ValidationError
from app.models.subscription import Subscription, SUBSCRIPTION_ACTIVE, SUBSCRIPTION_CANCELLED
from app.services import credit_ledger
from app.services.users import get_user

logger = logging.getLogger(__name__)


def list_plans() -> list:
    return [p.to_dict() for p in SUBSCRIPTION_PLANS.values()]


def get_active_subscription(db: Session, user_id: int):
    now = datetime.utcnow()
    return (
        db.query(Subscription)
        .filter(
            Subscription.user_id == user_id,
            Subscription.status == SUBSCRIPTION_ACTIVE,
            Subscription.end_date >= now,
        )
        .order_by(Subscription.created_at.desc(), Subscription.id.desc())
        .first()
    )


def subscribe(db: Session, user_id: int, plan_type: str) -> dict:
    plan = get_subscription_plan(plan_type)
    if not plan:
        raise ValidationError("Invalid plan type.")

    get_user(db, user_id)

    start_date = datetime.utcnow()
    end_date = start_date + plan.duration

    try:
        previous = get_active_subscription(db, user_id)
        if previous:
            previous.status = SUBSCRIPTION_CANCELLED
            logger.info("[SUBSCRIPTION] Replacing active %s subscription %s for user %s",
                        previous.plan_type, previous.id, user_id)

        subscription = Subscription(
            user_id=user_id,
            plan_type=plan.plan_type,
            status=SUBSCRIPTION_ACTIVE,
            start_date=start_date,
            end_date=end_date,
        )
        db.add(subscription)
        db.flush()
        credit_ledger.set_premium(db, user_id, end_date, commit=False)
        credit_ledger.credit(db, user_id, plan.credits, commit=False)
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(subscription)
    logger.info("[SUBSCRIPTION] User %s subscribed to %s plan until %s (+%s credits)",
                user_id, plan.plan_type, end_date.isoformat(), plan.credits)
    return {
        "subscription": subscription,
        "credits_granted": plan.credits,
        "message": f"You are now subscribed to {plan.name}. {plan.credits} credits were added to your account.",
    }


def get_status(db: Session, user_id: int) -> dict:
    user = get_user(db, user_id)

    # Premium lapses on its own once the end date passes
    now = datetime.utcnow()
    if user.is_premium and user.premium_expires_at and user.premium_expires_at < now:
        if credit_ledger.lapse_premium(db, user_id, now):
            logger.info("[SUBSCRIPTION] Premium expired for user %s", user_id)
        db.refresh(user)

    return {
        "is_premium": bool(user.is_premium),
        "premium_expires_at": user.premium_expires_at,
        "credits": user.credits,
        "active_subscription": get_active_subscription(db, user_id),
    }


def cancel(db: Session, user_id: int) -> dict:
    active = get_active_subscription(db, user_id)
    if not active:
        raise BusinessRuleError("No active subscription found.")

    try:
        active.status = SUBSCRIPTION_CANCELLED
        credit_ledger.clear_premium(db, user_id, commit=False)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("[SUBSCRIPTION] User %s cancelled subscription %s", user_id, active.id)
    return {"message": "Your subscription has been cancelled."}
