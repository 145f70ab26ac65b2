"""
Credit balance and premium state of an account.

Every balance change is a single UPDATE evaluated by the database
(credits = credits +/- n), never a write-back of a value read earlier, so
concurrent requests for the same account cannot lose updates. Debits carry
the affordability check in the WHERE clause: when it matches no row the
account could not pay and nothing changes.
"""
import logging
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.errors import InsufficientFunds, NotFound, ValidationError
from app.models.user import User

logger = logging.getLogger(__name__)


def _check_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise ValidationError("Credit amount must be a positive integer.")


def _current_balance(db: Session, user_id: int) -> int:
    row = db.query(User.credits).filter(User.id == user_id).first()
    if row is None:
        raise NotFound("User not found")
    return row[0]


def get_balance(db: Session, user_id: int) -> int:
    return _current_balance(db, user_id)


def debit(db: Session, user_id: int, amount: int, commit: bool = True) -> int:
    """
    Take `amount` credits from the account and return the new balance.
    Raises InsufficientFunds (and changes nothing) when the balance is below `amount`.
    With commit=False the caller owns the transaction.
    """
    _check_amount(amount)
    result = db.execute(
        update(User)
        .where(User.id == user_id, User.credits >= amount)
        .values(credits=User.credits - amount)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        # Tell "no such account" apart from "cannot afford it"
        balance = _current_balance(db, user_id)
        if commit:
            db.rollback()
        logger.info("[LEDGER] Debit of %s refused for user %s (balance %s)", amount, user_id, balance)
        raise InsufficientFunds()

    new_balance = _current_balance(db, user_id)
    if commit:
        db.commit()
    logger.info("[LEDGER] Debited %s credits from user %s, balance now %s", amount, user_id, new_balance)
    return new_balance


def credit(db: Session, user_id: int, amount: int, commit: bool = True) -> int:
    """Add `amount` credits and return the new balance. No upper bound."""
    _check_amount(amount)
    result = db.execute(
        update(User)
        .where(User.id == user_id)
        .values(credits=User.credits + amount)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        if commit:
            db.rollback()
        raise NotFound("User not found")

    new_balance = _current_balance(db, user_id)
    if commit:
        db.commit()
    logger.info("[LEDGER] Credited %s credits to user %s, balance now %s", amount, user_id, new_balance)
    return new_balance


def set_premium(db: Session, user_id: int, expires_at: datetime, commit: bool = True) -> None:
    result = db.execute(
        update(User)
        .where(User.id == user_id)
        .values(is_premium=True, premium_expires_at=expires_at)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        if commit:
            db.rollback()
        raise NotFound("User not found")
    if commit:
        db.commit()


def clear_premium(db: Session, user_id: int, commit: bool = True) -> None:
    result = db.execute(
        update(User)
        .where(User.id == user_id)
        .values(is_premium=False, premium_expires_at=None)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        if commit:
            db.rollback()
        raise NotFound("User not found")
    if commit:
        db.commit()


def lapse_premium(db: Session, user_id: int, now: datetime, commit: bool = True) -> bool:
    """
    Clear premium only while the stored expiry is still before `now`.
    Returns False when nothing changed, e.g. a subscription renewed it in the meantime.
    """
    result = db.execute(
        update(User)
        .where(
            User.id == user_id,
            User.is_premium.is_(True),
            User.premium_expires_at < now,
        )
        .values(is_premium=False, premium_expires_at=None)
        .execution_options(synchronize_session=False)
    )
    if commit:
        db.commit()
    return result.rowcount == 1
