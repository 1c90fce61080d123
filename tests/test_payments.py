from datetime import timedelta

from conftest import TODAY, auth_headers, make_deadline, make_user, subscribe


def test_checkout_session_creates_and_reuses_customer(client, session, gateway):
    user = make_user(session)
    body = {"priceKey": "pro_monthly", "successUrl": "https://app.test/ok", "cancelUrl": "https://app.test/cancel"}

    first = client.post("/payments/create-checkout-session", json=body, headers=auth_headers(user))
    assert first.status_code == 200
    assert first.json() == {"sessionId": "cs_test_1", "url": "https://checkout.stripe.test/cs_test_1"}

    second = client.post("/payments/create-checkout-session", json=body, headers=auth_headers(user))
    assert second.status_code == 200

    assert len(gateway.customers) == 1
    session.refresh(user)
    assert user.stripe_customer_id == "cus_1"
    assert [c["customer"] for c in gateway.checkouts] == ["cus_1", "cus_1"]
    assert gateway.checkouts[0]["price"] == "price_pro_monthly"
    assert gateway.checkouts[0]["trial_period_days"] == 14
    assert gateway.checkouts[0]["user_id"] == user.id


def test_checkout_rejects_unknown_price_key(client, session, gateway):
    user = make_user(session)
    body = {"priceKey": "enterprise_forever", "successUrl": "https://a", "cancelUrl": "https://b"}

    response = client.post("/payments/create-checkout-session", json=body, headers=auth_headers(user))

    assert response.status_code == 400
    assert gateway.checkouts == []


def test_checkout_requires_authentication(client):
    body = {"priceKey": "pro_monthly", "successUrl": "https://a", "cancelUrl": "https://b"}
    assert client.post("/payments/create-checkout-session", json=body).status_code == 401


def test_plans_are_public(client):
    response = client.get("/payments/plans")
    assert response.status_code == 200
    plans = response.json()["plans"]
    assert plans["free"] == {"deadlines": 5, "team_members": 1, "sms": 0, "recurring": False, "integrations": False}
    assert plans["pro"]["deadlines"] == -1
    assert plans["team"]["team_members"] == 10
    assert plans["enterprise"]["team_members"] == -1


def test_limits_for_free_user(client, session):
    user = make_user(session)
    for i in range(5):
        make_deadline(session, user, TODAY + timedelta(days=i), title=f"D{i}")

    response = client.get("/payments/limits", headers=auth_headers(user))

    assert response.status_code == 200
    body = response.json()
    assert body["plan_tier"] == "free"
    assert body["usage"] == {"deadlines": 5, "team_members": 1}
    assert body["can_create_deadline"] is False


def test_subscription_endpoint(client, session):
    user = make_user(session)
    assert client.get("/payments/subscription", headers=auth_headers(user)).json() is None

    subscribe(session, user, "team", "past_due")
    body = client.get("/payments/subscription", headers=auth_headers(user)).json()
    assert (body["plan_tier"], body["status"]) == ("team", "past_due")

    # past_due is shown but no longer grants the paid tier
    assert client.get("/payments/limits", headers=auth_headers(user)).json()["plan_tier"] == "free"
