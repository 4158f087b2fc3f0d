import hashlib
import hmac
import json
import time
from types import SimpleNamespace

import pytest
import stripe

from clinicstock.core.config import settings
from clinicstock.models import CheckoutSession, Subscription, User
from clinicstock.services import billing_service
from tests.conftest import auth_headers


@pytest.fixture
def fake_stripe(monkeypatch):
    calls = {"customers": [], "sessions": [], "portals": []}

    def create_customer(**kwargs):
        calls["customers"].append(kwargs)
        return SimpleNamespace(id="cus_123")

    def create_session(**kwargs):
        calls["sessions"].append(kwargs)
        return SimpleNamespace(id="cs_test_1", url="https://checkout.stripe.com/c/pay/cs_test_1")

    def create_portal(**kwargs):
        calls["portals"].append(kwargs)
        return SimpleNamespace(url="https://billing.stripe.com/p/session/1")

    monkeypatch.setattr(stripe.Customer, "create", create_customer)
    monkeypatch.setattr(stripe.checkout.Session, "create", create_session)
    monkeypatch.setattr(stripe.billing_portal.Session, "create", create_portal)
    return calls


def signed(payload: dict, secret: str = None):
    body = json.dumps(payload).encode()
    timestamp = int(time.time())
    signature = hmac.new(
        (secret or settings.STRIPE_WEBHOOK_SECRET).encode(),
        f"{timestamp}.{body.decode()}".encode(),
        hashlib.sha256,
    ).hexdigest()
    return body, {"Stripe-Signature": f"t={timestamp},v1={signature}", "Content-Type": "application/json"}


def test_create_checkout_session(client, db, user, fake_stripe):
    response = client.post(
        "/api/v1/billing/create-checkout-session",
        json={"price_id": "price_monthly"},
        headers={**auth_headers(user), "Origin": "https://app.clinicstock.com"},
    )

    assert response.status_code == 200
    assert response.json()["url"].startswith("https://checkout.stripe.com")

    session = fake_stripe["sessions"][0]
    assert session["mode"] == "subscription"
    assert session["customer"] == "cus_123"
    assert session["line_items"] == [{"price": "price_monthly", "quantity": 1}]
    assert session["success_url"] == "https://app.clinicstock.com/profile?session_id={CHECKOUT_SESSION_ID}"
    assert session["cancel_url"] == "https://app.clinicstock.com/subscription"
    assert fake_stripe["customers"][0]["metadata"] == {"user_id": str(user.id)}

    db.expire_all()
    assert db.get(User, user.id).stripe_customer_id == "cus_123"


def test_checkout_reuses_existing_customer(client, db, user, fake_stripe):
    user.stripe_customer_id = "cus_existing"
    db.commit()

    client.post("/api/v1/billing/create-checkout-session", json={"price_id": "price_yearly"}, headers=auth_headers(user))

    assert fake_stripe["customers"] == []
    assert fake_stripe["sessions"][0]["customer"] == "cus_existing"


def test_checkout_without_price(client, user, fake_stripe):
    response = client.post("/api/v1/billing/create-checkout-session", json={}, headers=auth_headers(user))
    assert response.status_code == 400


def test_manage_subscription_without_customer(client, user, fake_stripe):
    response = client.post("/api/v1/billing/manage-subscription", headers=auth_headers(user))
    assert response.status_code == 404


def test_manage_subscription_opens_portal(client, db, user, fake_stripe):
    user.stripe_customer_id = "cus_existing"
    db.commit()

    response = client.post(
        "/api/v1/billing/manage-subscription",
        headers={**auth_headers(user), "Origin": "https://app.clinicstock.com"},
    )

    assert response.status_code == 200
    assert fake_stripe["portals"][0] == {"customer": "cus_existing", "return_url": "https://app.clinicstock.com/profile"}


# =====================================
# Checkout com espera (fluxo legado)
# =====================================
def test_fulfill_checkout_session_writes_url(db, user, fake_stripe):
    checkout = CheckoutSession(
        user_id=user.id, price_id="price_monthly", success_url="https://a/ok", cancel_url="https://a/cancel"
    )
    db.add(checkout)
    db.commit()

    billing_service.fulfill_checkout_session(checkout.id)

    db.expire_all()
    stored = db.get(CheckoutSession, checkout.id)
    assert stored.url == "https://checkout.stripe.com/c/pay/cs_test_1"
    assert stored.stripe_session_id == "cs_test_1"
    assert stored.error_message is None


def test_fulfill_checkout_session_records_error(db, user, fake_stripe, monkeypatch):
    def failing_session(**kwargs):
        raise stripe.InvalidRequestError("Preço inválido", param="price")

    monkeypatch.setattr(stripe.checkout.Session, "create", failing_session)
    checkout = CheckoutSession(
        user_id=user.id, price_id="price_x", success_url="https://a/ok", cancel_url="https://a/cancel"
    )
    db.add(checkout)
    db.commit()

    billing_service.fulfill_checkout_session(checkout.id)

    db.expire_all()
    stored = db.get(CheckoutSession, checkout.id)
    assert stored.url is None
    assert "Preço inválido" in stored.error_message


def test_legacy_checkout_returns_url(client, user, fake_stripe, monkeypatch):
    monkeypatch.setattr(settings, "CHECKOUT_POLL_INTERVAL_SECONDS", 0.01)

    response = client.post("/api/v1/billing/checkout", json={"price_id": "price_monthly"}, headers=auth_headers(user))

    assert response.status_code == 200
    assert response.json()["url"] == "https://checkout.stripe.com/c/pay/cs_test_1"


def test_legacy_checkout_times_out(client, user, monkeypatch):
    monkeypatch.setattr(settings, "CHECKOUT_POLL_INTERVAL_SECONDS", 0.01)
    monkeypatch.setattr(settings, "CHECKOUT_TIMEOUT_SECONDS", 0.05)
    monkeypatch.setattr(billing_service, "fulfill_checkout_session", lambda checkout_id: None)

    response = client.post("/api/v1/billing/checkout", json={"price_id": "price_monthly"}, headers=auth_headers(user))

    assert response.status_code == 504


def test_legacy_checkout_surfaces_worker_error(client, db, user, monkeypatch):
    monkeypatch.setattr(settings, "CHECKOUT_POLL_INTERVAL_SECONDS", 0.01)

    def write_error(checkout_id):
        session = billing_service.db_session.SessionLocal()
        checkout = session.get(CheckoutSession, checkout_id)
        checkout.error_message = "Cartão recusado"
        session.commit()
        session.close()

    monkeypatch.setattr(billing_service, "fulfill_checkout_session", write_error)

    response = client.post("/api/v1/billing/checkout", json={"price_id": "price_monthly"}, headers=auth_headers(user))

    assert response.status_code == 500
    assert response.json()["detail"] == "Cartão recusado"


def test_legacy_checkout_fails_fast_when_worker_crashes(client, user, fake_stripe, monkeypatch):
    monkeypatch.setattr(settings, "CHECKOUT_POLL_INTERVAL_SECONDS", 0.01)
    monkeypatch.setattr(settings, "CHECKOUT_TIMEOUT_SECONDS", 10)

    def crash(**kwargs):
        raise RuntimeError("conexão perdida")

    monkeypatch.setattr(stripe.checkout.Session, "create", crash)

    started = time.monotonic()
    response = client.post("/api/v1/billing/checkout", json={"price_id": "price_monthly"}, headers=auth_headers(user))

    assert response.status_code == 500
    assert response.json()["detail"] == "Erro ao criar sessão de pagamento"
    assert time.monotonic() - started < 10


# =====================================
# Webhook
# =====================================
def subscription_event(user, status="active", event_type="customer.subscription.updated"):
    return {
        "id": "evt_1",
        "type": event_type,
        "data": {
            "object": {
                "id": "sub_abc",
                "object": "subscription",
                "customer": "cus_123",
                "status": status,
                "cancel_at_period_end": False,
                "metadata": {"user_id": str(user.id)},
                "items": {"data": [{"price": {"id": "price_monthly"}, "current_period_end": 1893456000}]},
            }
        },
    }


def test_webhook_syncs_subscription_and_unlocks_access(client, db, user):
    headers = auth_headers(user)
    assert client.get("/api/v1/products", headers=headers).status_code == 403

    body, sig = signed(subscription_event(user))
    response = client.post("/api/v1/billing/webhook", content=body, headers=sig)

    assert response.status_code == 200
    db.expire_all()
    subscription = db.get(Subscription, "sub_abc")
    assert subscription.status == "active"
    assert subscription.price_id == "price_monthly"
    assert subscription.current_period_end.year == 2030
    assert db.get(User, user.id).stripe_customer_id == "cus_123"

    assert client.get("/api/v1/products", headers=headers).status_code == 200
    status = client.get("/api/v1/subscriptions/status", headers=headers).json()
    assert status["active"] is True
    assert status["subscription_id"] == "sub_abc"


def test_webhook_cancellation_blocks_access(client, db, user):
    for status in ("active", "canceled"):
        body, sig = signed(subscription_event(user, status=status))
        client.post("/api/v1/billing/webhook", content=body, headers=sig)

    assert client.get("/api/v1/products", headers=auth_headers(user)).status_code == 403
    assert client.get("/api/v1/subscriptions/status", headers=auth_headers(user)).json()["status"] == "canceled"


def test_webhook_checkout_completed_links_customer(client, db, user):
    event = {
        "id": "evt_2",
        "type": "checkout.session.completed",
        "data": {"object": {"id": "cs_1", "customer": "cus_new", "client_reference_id": str(user.id)}},
    }
    body, sig = signed(event)

    response = client.post("/api/v1/billing/webhook", content=body, headers=sig)

    assert response.status_code == 200
    db.expire_all()
    assert db.get(User, user.id).stripe_customer_id == "cus_new"


def test_webhook_rejects_bad_signature(client, db, user):
    body, sig = signed(subscription_event(user), secret="whsec_outro")
    response = client.post("/api/v1/billing/webhook", content=body, headers=sig)
    assert response.status_code == 400


def test_plans(client):
    plans = client.get("/api/v1/subscriptions/plans").json()
    assert [(p["name"], p["price"], p["price_id"]) for p in plans] == [
        ("Plano Mensal", "R$ 39,90", "price_monthly"),
        ("Plano Anual", "R$ 399", "price_yearly"),
    ]
