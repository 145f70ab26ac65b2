import logging
from datetime import date
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.config import ONBOARDING_BONUS_CREDITS
from app.core.errors import BusinessRuleError, NotFound
from app.models.user import User
from app.services import credit_ledger

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")
    return user


def complete_onboarding(
    db: Session,
    user_id: int,
    full_name: str,
    birth_date: date,
    relationship_status: str,
    profession: str,
) -> User:
    """First-time profile completion. Grants the signup bonus exactly once."""
    # Flip the flag conditionally so two concurrent submissions cannot both get the bonus
    result = db.execute(
        update(User)
        .where(User.id == user_id, User.onboarding_completed.is_(False))
        .values(
            full_name=full_name,
            birth_date=birth_date,
            relationship_status=relationship_status,
            profession=profession,
            onboarding_completed=True,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        get_user(db, user_id)
        raise BusinessRuleError("Onboarding has already been completed.")

    credit_ledger.credit(db, user_id, ONBOARDING_BONUS_CREDITS, commit=False)
    db.commit()
    logger.info("Onboarding completed for user %s, awarded %s credits", user_id, ONBOARDING_BONUS_CREDITS)
    return get_user(db, user_id)


def update_profile(
    db: Session,
    user_id: int,
    relationship_status: Optional[str] = None,
    profession: Optional[str] = None,
) -> User:
    """Only relationship status and profession can be changed after onboarding."""
    user = get_user(db, user_id)
    if relationship_status is not None:
        user.relationship_status = relationship_status
    if profession is not None:
        user.profession = profession
    db.commit()
    db.refresh(user)
    logger.info("Profile updated for user %s", user_id)
    return user
