"""
Account identity: email/password registration and login, and the
find-or-create-or-link step for Google and Apple sign-in.

Accounts are keyed by email. A provider id is attached to the account that
owns the email and never replaces one that is already linked.
"""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import Conflict, InvalidCredentials, ValidationError
from app.models.user import User
from app.services.federated import FederatedClaims, GOOGLE, APPLE
from app.utils.auth import hash_password, verify_password

logger = logging.getLogger(__name__)

PROVIDER_COLUMNS = {
    GOOGLE: "google_id",
    APPLE: "apple_id",
}


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def get_user_by_email(db: Session, email: str):
    return db.query(User).filter(User.email == normalize_email(email)).first()


def register(db: Session, email: str, password: str) -> User:
    email = normalize_email(email)
    if get_user_by_email(db, email):
        raise Conflict()

    user = User(email=email, hashed_password=hash_password(password))
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Another request registered the same email between the check and the insert
        db.rollback()
        raise Conflict()
    db.refresh(user)
    logger.info("[AUTH] User registered: %s (id=%s)", email, user.id)
    return user


def login(db: Session, email: str, password: str) -> User:
    """Unknown email and wrong password raise the same error."""
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.hashed_password):
        logger.info("[AUTH] Failed login for %s", normalize_email(email))
        raise InvalidCredentials()
    logger.info("[AUTH] User logged in: %s (id=%s)", user.email, user.id)
    return user


def authenticate_federated(db: Session, provider: str, claims: FederatedClaims) -> User:
    """
    Map verified provider claims onto a local account:
      - no account with this email: create one (no password, provider id, display name)
      - account without an id for this provider: link it
      - account already linked to a different id: keep the existing one (first-linked wins)
    """
    column = PROVIDER_COLUMNS.get(provider)
    if column is None:
        raise ValidationError("Unsupported sign-in provider.")

    email = normalize_email(claims.email)
    user = get_user_by_email(db, email)

    if user is None:
        user = User(
            email=email,
            hashed_password="",
            full_name=claims.display_name or None,
        )
        setattr(user, column, claims.subject)
        db.add(user)
        try:
            db.commit()
            db.refresh(user)
            logger.info("[AUTH] New user registered via %s: %s (id=%s)", provider, email, user.id)
            return user
        except IntegrityError:
            # Concurrent sign-in created the account first; fall through to linking
            db.rollback()
            user = get_user_by_email(db, email)
            if user is None:
                raise
            logger.info("[AUTH] %s account for %s created concurrently, re-read it", provider, email)

    linked = getattr(user, column)
    if not linked:
        setattr(user, column, claims.subject)
        try:
            db.commit()
        except IntegrityError:
            # Provider id already belongs to another account; sign in without linking
            db.rollback()
            logger.warning("[AUTH] %s id for %s already linked to another account", provider, email)
        db.refresh(user)
        logger.info("[AUTH] %s account linked for user %s", provider, user.id)
    elif linked != claims.subject:
        logger.warning(
            "[AUTH] User %s already linked to a different %s id; keeping the first one",
            user.id, provider,
        )

    return user
