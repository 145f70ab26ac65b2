"""
Fortune workflow: check credits, resolve who the reading is for, ask the LLM,
then store the reading and take the credits in one transaction.

No lock is held while the LLM call is running. The balance check before the
call is only a fast rejection; the debit after it is a conditional UPDATE in
the same transaction as the insert, so two concurrent requests can never both
spend the same credits. A failed generation stores nothing and charges nothing.
"""
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.config import FORTUNE_COST, FORTUNE_PREVIEW_LENGTH, UNKNOWN
from app.core.errors import (
    Forbidden,
    GenerationFailed,
    InsufficientFunds,
    MissingGuestData,
    NotFound,
)
from app.models.fortune import Fortune
from app.models.user import User
from app.services import credit_ledger
from app.services.interpretation import InterpretationClient, PersonAttributes

logger = logging.getLogger(__name__)


def resolve_subject(user: User, for_self: bool, guest=None) -> PersonAttributes:
    """
    Attributes of the person the fortune is about.
    Self: taken from the profile, missing fields become UNKNOWN.
    Guest: the full guest payload is required.
    """
    if for_self:
        return PersonAttributes(
            name=user.full_name or UNKNOWN,
            birth_date=user.birth_date.isoformat() if user.birth_date else UNKNOWN,
            relationship_status=user.relationship_status or UNKNOWN,
            profession=user.profession or UNKNOWN,
        )

    if guest is None:
        raise MissingGuestData()
    return PersonAttributes(
        name=guest.name,
        birth_date=guest.birth_date,
        relationship_status=guest.relationship_status,
        profession=guest.profession,
        gender=guest.gender,
    )


def create_fortune(
    db: Session,
    user_id: int,
    photos: List[str],
    for_self: bool,
    client: InterpretationClient,
    guest=None,
) -> Fortune:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFound("User not found")
    if user.credits < FORTUNE_COST:
        logger.info("[FORTUNE] User %s has %s credits, needs %s", user_id, user.credits, FORTUNE_COST)
        raise InsufficientFunds()

    subject = resolve_subject(user, for_self, guest)
    # End the read transaction so no connection or lock is held during the LLM call
    db.rollback()

    logger.info("[FORTUNE] Creating fortune for user %s (for_self=%s, photos=%d)", user_id, for_self, len(photos))
    result = client.generate(photos, subject)
    if not result.ok:
        logger.warning("[FORTUNE] Generation failed for user %s: %s (provider status %s)",
                       user_id, result.error.value, result.provider_status)
        raise GenerationFailed(result.error.value, provider_status=result.provider_status)

    fortune = Fortune(
        user_id=user_id,
        photos=list(photos),
        for_self=for_self,
        interpretation=result.text,
    )
    if not for_self:
        fortune.guest_name = guest.name
        fortune.guest_gender = guest.gender
        fortune.guest_birth_date = guest.birth_date
        fortune.guest_relationship_status = guest.relationship_status
        fortune.guest_profession = guest.profession

    try:
        new_balance = credit_ledger.debit(db, user_id, FORTUNE_COST, commit=False)
        db.add(fortune)
        db.commit()
    except InsufficientFunds:
        # Another request spent the credits while the reading was being generated
        db.rollback()
        logger.warning("[FORTUNE] User %s lost the race for credits; reading discarded", user_id)
        raise
    except Exception:
        db.rollback()
        logger.exception("[FORTUNE] Failed to store fortune for user %s; nothing was charged", user_id)
        raise

    db.refresh(fortune)
    logger.info("[FORTUNE] Fortune %s created for user %s, balance now %s", fortune.id, user_id, new_balance)
    return fortune


def make_preview(text: str, length: int = FORTUNE_PREVIEW_LENGTH) -> str:
    if len(text) <= length:
        return text
    return text[:length] + "..."


def list_fortunes(db: Session, user_id: int) -> list:
    rows = (
        db.query(Fortune.id, Fortune.created_at, Fortune.for_self, Fortune.guest_name, Fortune.interpretation)
        .filter(Fortune.user_id == user_id)
        .order_by(Fortune.created_at.desc(), Fortune.id.desc())
        .all()
    )
    return [
        {
            "id": row.id,
            "created_at": row.created_at,
            "for_self": row.for_self,
            "guest_name": row.guest_name,
            "preview": make_preview(row.interpretation),
        }
        for row in rows
    ]


def get_fortune(db: Session, user_id: int, fortune_id: int) -> Fortune:
    """NotFound if the fortune does not exist, Forbidden if it belongs to someone else."""
    fortune = db.query(Fortune).filter(Fortune.id == fortune_id).first()
    if not fortune:
        raise NotFound("Fortune not found.")
    if fortune.user_id != user_id:
        logger.warning("[FORTUNE] User %s tried to read fortune %s of user %s", user_id, fortune_id, fortune.user_id)
        raise Forbidden("You do not have access to this fortune.")
    return fortune


def count_fortunes(db: Session, user_id: Optional[int] = None) -> int:
    query = db.query(Fortune)
    if user_id is not None:
        query = query.filter(Fortune.user_id == user_id)
    return query.count()
