import logging

from sqlalchemy.orm import Session

from app.core.catalog import CREDIT_PACKAGES, get_credit_package
from app.core.errors import ValidationError
from app.services import credit_ledger

logger = logging.getLogger(__name__)


def list_packages() -> list:
    return [p.to_dict() for p in CREDIT_PACKAGES.values()]


def simulate_purchase(db: Session, user_id: int, package_id: str) -> dict:
    """Credit a catalog package to the account. No payment is taken."""
    package = get_credit_package(package_id)
    if not package:
        raise ValidationError("Invalid package id.")

    new_balance = credit_ledger.credit(db, user_id, package.credits)
    logger.info("[LEDGER] Simulated purchase: user %s bought %s (+%s credits)", user_id, package.id, package.credits)
    return {
        "success": True,
        "package": package.to_dict(),
        "new_balance": new_balance,
    }
