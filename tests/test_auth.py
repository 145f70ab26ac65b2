import json
import time
from datetime import timedelta

import jwt as pyjwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from jwt.algorithms import RSAAlgorithm

from app.core import config
from app.core.errors import Unauthenticated
from app.models.user import User
from app.services.federated import (
    FederatedClaims,
    GOOGLE,
    APPLE,
    get_apple_keys,
    verify_apple_token,
    verify_google_token,
)
from app.services.identity import authenticate_federated
from app.utils.auth import create_access_token, verify_access_token, hash_password, verify_password


# ---------- local tokens ----------

def test_access_token_round_trip():
    token = create_access_token(42, "a@example.com")
    identity = verify_access_token(token)
    assert identity.user_id == 42
    assert identity.email == "a@example.com"


@pytest.mark.parametrize("token", [None, "", "null", "not-a-jwt"])
def test_malformed_tokens_are_unauthenticated(token):
    with pytest.raises(Unauthenticated):
        verify_access_token(token)


def test_expired_token_is_unauthenticated():
    token = create_access_token(1, "a@example.com", expires_delta=timedelta(seconds=-5))
    with pytest.raises(Unauthenticated):
        verify_access_token(token)


def test_token_signed_with_other_secret_is_unauthenticated():
    from jose import jwt as jose_jwt

    token = jose_jwt.encode({"sub": "1", "email": "a@example.com", "type": "access"}, "other", algorithm="HS256")
    with pytest.raises(Unauthenticated):
        verify_access_token(token)


def test_password_hashing():
    hashed = hash_password("secret123")
    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("secret123", "")


# ---------- email/password routes ----------

def test_register_then_login(client):
    r = client.post("/auth/register", json={"email": "New@Example.com", "password": "secret123"})
    assert r.status_code == 201
    body = r.json()
    account_id = body["user"]["id"]
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == "new@example.com"
    assert body["user"]["credits"] == 0
    assert body["user"]["onboarding_completed"] is False
    assert "hashed_password" not in body["user"]

    r = client.post("/auth/login", json={"email": "new@example.com", "password": "secret123"})
    assert r.status_code == 200
    assert r.json()["user"]["id"] == account_id
    token = r.json()["access_token"]

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == "new@example.com"


def test_register_duplicate_email_conflicts(client, make_user):
    make_user(email="taken@example.com")
    r = client.post("/auth/register", json={"email": "TAKEN@example.com", "password": "secret123"})
    assert r.status_code == 409
    assert r.json()["code"] == "conflict"


def test_register_short_password_is_rejected(client):
    r = client.post("/auth/register", json={"email": "a@example.com", "password": "123"})
    assert r.status_code == 422


def test_login_errors_do_not_reveal_which_part_was_wrong(client, make_user):
    make_user(email="known@example.com", password="secret123")
    wrong_password = client.post("/auth/login", json={"email": "known@example.com", "password": "nope"})
    unknown_email = client.post("/auth/login", json={"email": "ghost@example.com", "password": "secret123"})
    assert wrong_password.status_code == unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()
    assert wrong_password.json()["code"] == "invalid_credentials"


def test_federated_only_account_cannot_use_password_login(client, make_user):
    make_user(email="google@example.com", password=None, google_id="g-1")
    r = client.post("/auth/login", json={"email": "google@example.com", "password": "anything"})
    assert r.status_code == 401


@pytest.mark.parametrize("header", [None, "Token abc", "Bearer", "Bearer garbage"])
def test_protected_route_requires_valid_bearer(client, header):
    headers = {"Authorization": header} if header else {}
    r = client.get("/auth/me", headers=headers)
    assert r.status_code == 401
    assert r.json()["code"] == "unauthenticated"


def test_token_for_deleted_user_is_rejected(client, db, make_user, headers_for):
    user = make_user()
    headers = headers_for(user)
    db.delete(user)
    db.commit()
    assert client.get("/auth/me", headers=headers).status_code == 401


# ---------- Google ----------

def _google_response(mocker, status_code=200, payload=None):
    response = mocker.Mock()
    response.status_code = status_code
    response.json.return_value = payload or {}
    return mocker.patch("app.services.federated.requests.get", return_value=response)


def test_google_token_verified(mocker):
    get = _google_response(mocker, payload={"email": "G@Example.com", "email_verified": "true", "sub": "123", "name": "G User"})
    claims = verify_google_token("id-token")
    assert claims == FederatedClaims(email="g@example.com", subject="123", display_name="G User")
    assert get.call_args.kwargs["params"] == {"id_token": "id-token"}


def test_google_rejects_non_200(mocker):
    _google_response(mocker, status_code=400, payload={"error": "invalid_token"})
    with pytest.raises(Unauthenticated):
        verify_google_token("bad")


def test_google_rejects_missing_email(mocker):
    _google_response(mocker, payload={"sub": "123"})
    with pytest.raises(Unauthenticated):
        verify_google_token("id-token")


def test_google_rejects_unverified_email(mocker):
    _google_response(mocker, payload={"email": "g@example.com", "email_verified": "false", "sub": "1"})
    with pytest.raises(Unauthenticated):
        verify_google_token("id-token")

    _google_response(mocker, payload={"email": "g@example.com", "sub": "1"})
    with pytest.raises(Unauthenticated):
        verify_google_token("id-token")


def test_google_checks_audience_when_configured(mocker, monkeypatch):
    monkeypatch.setattr(config, "GOOGLE_CLIENT_ID", "our-client")
    _google_response(mocker, payload={"email": "g@example.com", "email_verified": "true", "sub": "1", "aud": "someone-else"})
    with pytest.raises(Unauthenticated):
        verify_google_token("id-token")


def test_google_network_error_is_unauthenticated(mocker):
    import requests

    mocker.patch("app.services.federated.requests.get", side_effect=requests.exceptions.ConnectionError("down"))
    with pytest.raises(Unauthenticated):
        verify_google_token("id-token")


def test_google_route_creates_account_once(client, db, mocker):
    _google_response(mocker, payload={"email": "g@example.com", "email_verified": "true", "sub": "g-1", "name": "G User"})
    first = client.post("/auth/google", json={"id_token": "t"})
    second = client.post("/auth/google", json={"id_token": "t"})
    assert first.status_code == second.status_code == 200
    assert first.json()["user"]["id"] == second.json()["user"]["id"]
    assert first.json()["user"]["has_google"] is True
    assert first.json()["user"]["full_name"] == "G User"
    assert db.query(User).count() == 1


def test_google_route_rejects_invalid_token(client, mocker):
    _google_response(mocker, status_code=400)
    r = client.post("/auth/google", json={"id_token": "t"})
    assert r.status_code == 401


# ---------- account linking ----------

def test_federated_sign_in_links_existing_email_account(db, make_user):
    user = make_user(email="both@example.com")
    linked = authenticate_federated(db, GOOGLE, FederatedClaims("Both@Example.com", "g-9"))
    assert linked.id == user.id
    assert linked.google_id == "g-9"
    # password login still works for a linked account
    assert verify_password("secret123", linked.hashed_password)


def test_first_linked_provider_id_wins(db, make_user):
    make_user(email="linked@example.com", apple_id="apple-original")
    user = authenticate_federated(db, APPLE, FederatedClaims("linked@example.com", "apple-other"))
    assert user.apple_id == "apple-original"


def test_new_federated_account_has_no_password(db):
    user = authenticate_federated(db, APPLE, FederatedClaims("new@example.com", "a-1", "New Person"))
    assert user.hashed_password == ""
    assert user.apple_id == "a-1"
    assert user.full_name == "New Person"
    assert user.credits == 0


# ---------- Apple ----------

@pytest.fixture
def apple_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def _jwk(private_key, kid):
    jwk = json.loads(RSAAlgorithm.to_jwk(private_key.public_key()))
    jwk.update({"kid": kid, "alg": "RS256", "use": "sig"})
    return jwk


def _apple_token(private_key, kid="kid-1", **claims):
    payload = {
        "iss": config.APPLE_ISSUER,
        "aud": "com.falgoritma.app",
        "sub": "apple-sub-1",
        "email": "apple@example.com",
        "iat": int(time.time()),
        "exp": int(time.time()) + 600,
    }
    payload.update(claims)
    return pyjwt.encode(payload, private_key, algorithm="RS256", headers={"kid": kid})


def _apple_keys_endpoint(mocker, *jwks):
    response = mocker.Mock()
    response.raise_for_status.return_value = None
    response.json.return_value = {"keys": list(jwks)}
    return mocker.patch("app.services.federated.requests.get", return_value=response)


def test_apple_token_verified(mocker, apple_key):
    _apple_keys_endpoint(mocker, _jwk(apple_key, "kid-1"))
    claims = verify_apple_token(_apple_token(apple_key), full_name="Apple Person")
    assert claims.email == "apple@example.com"
    assert claims.subject == "apple-sub-1"
    assert claims.display_name == "Apple Person"


def test_apple_checks_audience_when_configured(mocker, monkeypatch, apple_key):
    monkeypatch.setattr(config, "APPLE_CLIENT_ID", "com.falgoritma.app")
    _apple_keys_endpoint(mocker, _jwk(apple_key, "kid-1"))
    assert verify_apple_token(_apple_token(apple_key)).subject == "apple-sub-1"
    with pytest.raises(Unauthenticated):
        verify_apple_token(_apple_token(apple_key, aud="com.other.app"))


def test_apple_rejects_wrong_issuer(mocker, apple_key):
    _apple_keys_endpoint(mocker, _jwk(apple_key, "kid-1"))
    with pytest.raises(Unauthenticated):
        verify_apple_token(_apple_token(apple_key, iss="https://evil.example.com"))


def test_apple_rejects_expired_token(mocker, apple_key):
    _apple_keys_endpoint(mocker, _jwk(apple_key, "kid-1"))
    with pytest.raises(Unauthenticated):
        verify_apple_token(_apple_token(apple_key, exp=int(time.time()) - 60))


def test_apple_rejects_signature_from_other_key(mocker, apple_key):
    other = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    _apple_keys_endpoint(mocker, _jwk(apple_key, "kid-1"))
    with pytest.raises(Unauthenticated):
        verify_apple_token(_apple_token(other, kid="kid-1"))


def test_apple_unknown_kid_refreshes_keys_once(mocker, apple_key):
    get = _apple_keys_endpoint(mocker, _jwk(apple_key, "kid-1"))
    get_apple_keys()
    assert get.call_count == 1
    with pytest.raises(Unauthenticated):
        verify_apple_token(_apple_token(apple_key, kid="kid-unknown"))
    assert get.call_count == 2


def test_apple_keys_are_cached(mocker, apple_key):
    get = _apple_keys_endpoint(mocker, _jwk(apple_key, "kid-1"))
    verify_apple_token(_apple_token(apple_key))
    verify_apple_token(_apple_token(apple_key))
    assert get.call_count == 1


def test_apple_route_signs_in(client, mocker, apple_key):
    _apple_keys_endpoint(mocker, _jwk(apple_key, "kid-1"))
    r = client.post("/auth/apple", json={"identity_token": _apple_token(apple_key), "full_name": "Apple Person"})
    assert r.status_code == 200
    user = r.json()["user"]
    assert user["email"] == "apple@example.com"
    assert user["has_apple"] is True
    assert user["full_name"] == "Apple Person"
