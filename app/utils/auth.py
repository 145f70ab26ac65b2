import logging
from datetime import datetime, timedelta
from typing import NamedTuple, Optional

from jose import jwt, JWTError
from passlib.context import CryptContext

from app.core.config import (
    JWT_SECRET,
    JWT_ALGORITHM,
    ACCESS_TOKEN_EXPIRE_DAYS,
    BCRYPT_ROUNDS,
)
from app.core.errors import Unauthenticated

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)

ACCESS_TOKEN_TYPE = "access"


class TokenIdentity(NamedTuple):
    user_id: int
    email: str


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    # Federated-only accounts store an empty hash and can never log in with a password
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError):
        return False


def create_access_token(user_id: int, email: str, expires_delta: Optional[timedelta] = None) -> str:
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS)
    to_encode = {
        "sub": str(user_id),
        "email": email,
        "type": ACCESS_TOKEN_TYPE,
        "exp": expire,
    }
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


def verify_access_token(token: Optional[str]) -> TokenIdentity:
    """
    Verify a token issued by this API and return who it belongs to.

    Every failure (missing, malformed, expired, bad signature, wrong type,
    bad subject) raises the same Unauthenticated error; the actual cause is
    only logged.
    """
    if not token or token.lower() in ("null", "undefined", "none"):
        logger.info("[AUTH] Rejected empty token")
        raise Unauthenticated()

    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.info("[AUTH] Token verification failed: %s", e)
        raise Unauthenticated()

    if payload.get("type") != ACCESS_TOKEN_TYPE:
        logger.info("[AUTH] Rejected token of type %r", payload.get("type"))
        raise Unauthenticated()

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        logger.info("[AUTH] Token has invalid subject")
        raise Unauthenticated()

    email = payload.get("email")
    if not email:
        logger.info("[AUTH] Token missing email claim")
        raise Unauthenticated()

    return TokenIdentity(user_id=user_id, email=email)
