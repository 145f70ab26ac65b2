from fastapi import Header, Depends, Request
from sqlalchemy.orm import Session
from typing import Optional
import logging

from app.db.session import get_db
from app.core.errors import Unauthenticated
from app.models.user import User
from app.utils.auth import TokenIdentity, verify_access_token

logger = logging.getLogger(__name__)


def get_token_identity(
    request: Request,
    authorization: Optional[str] = Header(None),
) -> TokenIdentity:
    """
    Verifies the bearer token issued by this API.
    Returns (user_id, email). Missing or bad tokens raise Unauthenticated (401).
    """
    if not authorization:
        logger.info("[AUTH] Missing authorization header on %s %s", request.method, request.url.path)
        raise Unauthenticated()

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        logger.info("[AUTH] Invalid authorization header format")
        raise Unauthenticated()

    identity = verify_access_token(token.strip())
    # Lets the error handlers log the account id for failures further down
    request.state.user_id = identity.user_id
    return identity


def get_current_user_id(
    identity: TokenIdentity = Depends(get_token_identity),
    db: Session = Depends(get_db),
) -> int:
    """
    FastAPI dependency used by protected routes.
    Tokens for accounts that no longer exist are treated like invalid tokens.
    """
    exists = db.query(User.id).filter(User.id == identity.user_id).first()
    if not exists:
        logger.warning("[AUTH] Token for unknown user %s", identity.user_id)
        raise Unauthenticated()
    return identity.user_id
