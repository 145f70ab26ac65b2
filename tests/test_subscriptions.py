from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

from app.models.subscription import Subscription, SUBSCRIPTION_ACTIVE, SUBSCRIPTION_CANCELLED
from app.services import credit_ledger
from app.services import subscriptions as subscription_service


def test_plans_route_is_public(client):
    r = client.get("/subscriptions/plans")
    assert r.status_code == 200
    assert [p["id"] for p in r.json()] == ["weekly", "monthly", "yearly"]


def test_subscribe_grants_premium_and_credits(client, make_user, headers_for):
    user = make_user(credits=1)
    headers = headers_for(user)
    r = client.post("/subscriptions/subscribe", json={"plan_type": "monthly"}, headers=headers)
    assert r.status_code == 200
    body = r.json()
    assert body["credits_granted"] == 50
    assert body["subscription"]["plan_type"] == "monthly"
    assert body["subscription"]["status"] == SUBSCRIPTION_ACTIVE

    status = client.get("/subscriptions/status", headers=headers).json()
    assert status["is_premium"] is True
    assert status["credits"] == 51
    assert status["active_subscription"]["plan_type"] == "monthly"

    expires = datetime.fromisoformat(status["premium_expires_at"])
    assert abs(expires - (datetime.utcnow() + relativedelta(months=1))) < timedelta(minutes=1)


def test_subscribe_unknown_plan(client, make_user, headers_for):
    user = make_user()
    r = client.post("/subscriptions/subscribe", json={"plan_type": "daily"}, headers=headers_for(user))
    assert r.status_code == 422


def test_new_subscription_replaces_active_one(db, make_user):
    user = make_user()
    first = subscription_service.subscribe(db, user.id, "weekly")["subscription"]
    second = subscription_service.subscribe(db, user.id, "yearly")["subscription"]

    db.refresh(first)
    assert first.status == SUBSCRIPTION_CANCELLED
    assert subscription_service.get_active_subscription(db, user.id).id == second.id
    db.refresh(user)
    assert user.credits == 15 + 500


def test_cancel(client, make_user, headers_for):
    user = make_user()
    headers = headers_for(user)
    client.post("/subscriptions/subscribe", json={"plan_type": "weekly"}, headers=headers)

    r = client.post("/subscriptions/cancel", headers=headers)
    assert r.status_code == 200
    assert "message" in r.json()

    status = client.get("/subscriptions/status", headers=headers).json()
    assert status["is_premium"] is False
    assert status["active_subscription"] is None
    # credits already granted are kept
    assert status["credits"] == 15


def test_cancel_without_subscription(client, make_user, headers_for):
    user = make_user()
    r = client.post("/subscriptions/cancel", headers=headers_for(user))
    assert r.status_code == 400
    assert r.json()["code"] == "business_rule"


def test_expired_premium_lapses_on_status(db, make_user):
    past = datetime.utcnow() - timedelta(days=1)
    user = make_user(is_premium=True, premium_expires_at=past)
    db.add(Subscription(
        user_id=user.id,
        plan_type="weekly",
        status=SUBSCRIPTION_ACTIVE,
        start_date=past - timedelta(weeks=1),
        end_date=past,
    ))
    db.commit()

    status = subscription_service.get_status(db, user.id)
    assert status["is_premium"] is False
    assert status["premium_expires_at"] is None
    assert status["active_subscription"] is None


def test_lapse_does_not_undo_a_subscription_made_meanwhile(db, session_factory, make_user, mocker):
    past = datetime.utcnow() - timedelta(days=1)
    user = make_user(is_premium=True, premium_expires_at=past)
    real_lapse = credit_ledger.lapse_premium

    def subscribe_then_lapse(session, user_id, now, commit=True):
        # Another request subscribes after the expiry was read but before it is cleared
        other = session_factory()
        try:
            subscription_service.subscribe(other, user_id, "monthly")
        finally:
            other.close()
        return real_lapse(session, user_id, now, commit=commit)

    mocker.patch.object(credit_ledger, "lapse_premium", side_effect=subscribe_then_lapse)

    status = subscription_service.get_status(db, user.id)
    assert status["is_premium"] is True
    assert status["premium_expires_at"] > datetime.utcnow()
    assert status["active_subscription"].plan_type == "monthly"


def test_lapse_premium_only_clears_expired(db, make_user):
    now = datetime.utcnow()
    current = make_user(is_premium=True, premium_expires_at=now + timedelta(days=3))
    expired = make_user(is_premium=True, premium_expires_at=now - timedelta(days=3))

    assert credit_ledger.lapse_premium(db, current.id, now) is False
    assert credit_ledger.lapse_premium(db, expired.id, now) is True
    db.refresh(current)
    db.refresh(expired)
    assert current.is_premium is True
    assert expired.is_premium is False
    assert expired.premium_expires_at is None
