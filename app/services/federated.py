"""
Verification of Google and Apple sign-in proofs.

Both flows only establish who the caller is at the provider; the routes then
find/create/link the local account and issue our own access token.
"""
import logging
import time
import threading
from typing import NamedTuple, Optional

import jwt  # PyJWT
import requests

from app.core import config
from app.core.errors import Unauthenticated

logger = logging.getLogger(__name__)

GOOGLE = "google"
APPLE = "apple"


class FederatedClaims(NamedTuple):
    email: str
    subject: str
    display_name: Optional[str] = None


def verify_google_token(id_token: str) -> FederatedClaims:
    """
    Validate a Google ID token with Google's tokeninfo endpoint.
    The email is trusted only if the call succeeds and an email claim is present.
    """
    if not id_token:
        raise Unauthenticated()

    try:
        r = requests.get(
            config.GOOGLE_TOKENINFO_URL,
            params={"id_token": id_token},
            timeout=10,
        )
    except requests.exceptions.RequestException as e:
        logger.warning("[AUTH] Google tokeninfo request failed: %s", e)
        raise Unauthenticated()

    if r.status_code != 200:
        logger.info("[AUTH] Google tokeninfo rejected token (status %s)", r.status_code)
        raise Unauthenticated()

    try:
        data = r.json()
    except ValueError:
        logger.warning("[AUTH] Google tokeninfo returned a non-JSON body")
        raise Unauthenticated()

    email = (data.get("email") or "").strip().lower()
    subject = data.get("sub")
    if not email or not subject:
        logger.info("[AUTH] Google token missing email or sub claim")
        raise Unauthenticated()

    if str(data.get("email_verified", "")).lower() != "true":
        logger.info("[AUTH] Google token email is not verified")
        raise Unauthenticated()

    if config.GOOGLE_CLIENT_ID and data.get("aud") != config.GOOGLE_CLIENT_ID:
        logger.warning("[AUTH] Google token issued for another client: %s", data.get("aud"))
        raise Unauthenticated()

    return FederatedClaims(email=email, subject=str(subject), display_name=data.get("name"))


# Cache for Apple's signing keys, keyed by key id (kid)
APPLE_KEYS_CACHE = {}
APPLE_KEYS_CACHE_TIMESTAMP = None
_apple_keys_lock = threading.Lock()


def get_apple_keys(force_refresh: bool = False) -> dict:
    """
    Return Apple's current signing keys as {kid: jwk}.
    Only successful fetches are cached, so a failed fetch is retried on the next sign-in.
    """
    global APPLE_KEYS_CACHE, APPLE_KEYS_CACHE_TIMESTAMP

    with _apple_keys_lock:
        if APPLE_KEYS_CACHE and not force_refresh and APPLE_KEYS_CACHE_TIMESTAMP:
            age = time.time() - APPLE_KEYS_CACHE_TIMESTAMP
            if age < config.APPLE_KEYS_CACHE_TTL:
                return APPLE_KEYS_CACHE

        try:
            r = requests.get(config.APPLE_KEYS_URL, timeout=10)
            r.raise_for_status()
            keys = {k["kid"]: k for k in r.json().get("keys", []) if k.get("kid")}
        except (requests.exceptions.RequestException, ValueError, KeyError) as e:
            logger.warning("[AUTH] Failed to fetch Apple signing keys: %s", e)
            return APPLE_KEYS_CACHE

        APPLE_KEYS_CACHE = keys
        APPLE_KEYS_CACHE_TIMESTAMP = time.time()
        logger.info("[AUTH] Fetched %d Apple signing keys", len(keys))
        return APPLE_KEYS_CACHE


def clear_apple_keys_cache() -> None:
    global APPLE_KEYS_CACHE, APPLE_KEYS_CACHE_TIMESTAMP
    with _apple_keys_lock:
        APPLE_KEYS_CACHE = {}
        APPLE_KEYS_CACHE_TIMESTAMP = None


def _find_apple_key(kid: str) -> Optional[dict]:
    jwk = get_apple_keys().get(kid)
    if jwk is None:
        # Apple rotates keys; a kid we have not seen yet means the cache is stale
        jwk = get_apple_keys(force_refresh=True).get(kid)
    return jwk


def verify_apple_token(identity_token: str, full_name: Optional[str] = None) -> FederatedClaims:
    """
    Validate an Apple identity token: the key matching the token's kid must be
    in Apple's key set, and signature, algorithm (RS256) and issuer must check out.
    """
    if not identity_token:
        raise Unauthenticated()

    try:
        header = jwt.get_unverified_header(identity_token)
    except jwt.PyJWTError as e:
        logger.info("[AUTH] Apple token header could not be decoded: %s", e)
        raise Unauthenticated()

    kid = header.get("kid")
    if not kid:
        logger.info("[AUTH] Apple token has no key id")
        raise Unauthenticated()

    jwk = _find_apple_key(kid)
    if jwk is None:
        logger.warning("[AUTH] No Apple signing key for kid %s", kid)
        raise Unauthenticated()

    decode_kwargs = {"algorithms": ["RS256"], "issuer": config.APPLE_ISSUER}
    if config.APPLE_CLIENT_ID:
        decode_kwargs["audience"] = config.APPLE_CLIENT_ID
    else:
        decode_kwargs["options"] = {"verify_aud": False}

    try:
        signing_key = jwt.PyJWK(jwk, algorithm="RS256")
        payload = jwt.decode(identity_token, signing_key.key, **decode_kwargs)
    except jwt.PyJWTError as e:
        logger.info("[AUTH] Apple token verification failed: %s", e)
        raise Unauthenticated()

    email = (payload.get("email") or "").strip().lower()
    subject = payload.get("sub")
    if not email or not subject:
        logger.info("[AUTH] Apple token missing email or sub claim")
        raise Unauthenticated()

    return FederatedClaims(email=email, subject=str(subject), display_name=full_name or None)
