from datetime import datetime, timedelta

import pytest

from app.core.catalog import CREDIT_PACKAGES, SUBSCRIPTION_PLANS, get_credit_package
from app.core.errors import InsufficientFunds, NotFound, ValidationError
from app.services import credit_ledger


def test_debit_takes_credits(db, make_user):
    user = make_user(credits=10)
    assert credit_ledger.debit(db, user.id, 3) == 7
    assert credit_ledger.get_balance(db, user.id) == 7


def test_debit_of_entire_balance_reaches_zero(db, make_user):
    user = make_user(credits=3)
    assert credit_ledger.debit(db, user.id, 3) == 0


def test_debit_refused_when_balance_too_low(db, make_user):
    user = make_user(credits=2)
    with pytest.raises(InsufficientFunds):
        credit_ledger.debit(db, user.id, 3)
    assert credit_ledger.get_balance(db, user.id) == 2


def test_debit_unknown_user(db):
    with pytest.raises(NotFound):
        credit_ledger.debit(db, 999, 1)


@pytest.mark.parametrize("amount", [0, -1, 1.5, True])
def test_amount_must_be_positive_integer(db, make_user, amount):
    user = make_user(credits=10)
    with pytest.raises(ValidationError):
        credit_ledger.debit(db, user.id, amount)
    with pytest.raises(ValidationError):
        credit_ledger.credit(db, user.id, amount)


def test_credit_adds(db, make_user):
    user = make_user(credits=1)
    assert credit_ledger.credit(db, user.id, 12) == 13


def test_debit_without_commit_is_undone_by_rollback(db, make_user):
    user = make_user(credits=5)
    credit_ledger.debit(db, user.id, 3, commit=False)
    db.rollback()
    assert credit_ledger.get_balance(db, user.id) == 5


def test_premium_set_and_cleared(db, make_user):
    user = make_user()
    expires = datetime.utcnow() + timedelta(days=7)
    credit_ledger.set_premium(db, user.id, expires)
    db.refresh(user)
    assert user.is_premium is True
    assert user.premium_expires_at is not None

    credit_ledger.clear_premium(db, user.id)
    db.refresh(user)
    assert user.is_premium is False
    assert user.premium_expires_at is None


def test_catalog_contents():
    assert {p.id: (p.credits, p.price) for p in CREDIT_PACKAGES.values()} == {
        "mini": (6, 39),
        "standart": (12, 69),
        "avantajli": (18, 89),
        "power": (30, 169),
    }
    assert {p.plan_type: p.credits for p in SUBSCRIPTION_PLANS.values()} == {
        "weekly": 15,
        "monthly": 50,
        "yearly": 500,
    }
    assert get_credit_package("nope") is None


def test_catalog_is_read_only():
    with pytest.raises(TypeError):
        CREDIT_PACKAGES["free"] = None


def test_packages_route_is_public(client):
    r = client.get("/credits/packages")
    assert r.status_code == 200
    assert [p["id"] for p in r.json()] == ["mini", "standart", "avantajli", "power"]


def test_balance_route(client, make_user, headers_for):
    user = make_user(credits=9)
    headers = headers_for(user)
    first = client.get("/credits/balance", headers=headers).json()
    second = client.get("/credits/balance", headers=headers).json()
    assert first == second
    assert first == {"credits": 9}


def test_balance_requires_auth(client):
    assert client.get("/credits/balance").status_code == 401


def test_simulate_purchase(client, make_user, headers_for):
    user = make_user(credits=1)
    r = client.post("/credits/simulate-purchase", json={"package_id": "standart"}, headers=headers_for(user))
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["new_balance"] == 13
    assert body["package"]["id"] == "standart"


def test_simulate_purchase_unknown_package(client, make_user, headers_for):
    user = make_user(credits=1)
    r = client.post("/credits/simulate-purchase", json={"package_id": "mega"}, headers=headers_for(user))
    assert r.status_code == 400
    assert r.json()["code"] == "validation_error"
