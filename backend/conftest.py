"""Shared fixtures: in-memory database per test, API client, users and products."""
import hashlib
import hmac
import json
import os
import time

# Settings are read at import time
os.environ.setdefault("ENVIRONMENT", "test")
os.environ["SECRET_KEY"] = "test-secret-key-for-unit-tests-only"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ALLOWED_HOSTS"] = "testserver,localhost"
os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["FRONTEND_URL"] = "http://localhost:3000"
os.environ["ADMIN_EMAILS"] = "boss@medportal.com"
for _var in ("SMTP_HOST", "SMTP_USER", "SMTP_PASS", "SMTP_API", "SENDGRID_API_KEY",
             "TWILIO_ACCOUNT_SID", "TWILIO_AUTH_TOKEN", "TWILIO_PHONE_NUMBER",
             "TWILIO_MESSAGING_SERVICE_SID"):
    os.environ[_var] = ""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from medportal.api.deps import get_db
from medportal.core.rate_limiter import rate_limiter
from medportal.core.security import create_access_token, get_password_hash
from medportal.db.base import Base
from medportal.main import app
from medportal.models import Product, User, UserRole
from medportal.services.stripe_gateway import StripeGateway, get_stripe_gateway

WEBHOOK_SECRET = os.environ["STRIPE_WEBHOOK_SECRET"]
TEST_PASSWORD = "secret123"


class FakeStripeGateway(StripeGateway):
    """Real signature checks, canned PaymentIntents."""

    def __init__(self):
        super().__init__("sk_test_dummy", WEBHOOK_SECRET)
        self.created = []

    def create_payment_intent(self, amount_cents, currency, metadata):
        intent_id = f"pi_test_{len(self.created) + 1}"
        self.created.append({"id": intent_id, "amount": amount_cents, "currency": currency, "metadata": metadata})
        return {"id": intent_id, "client_secret": f"{intent_id}_secret_abc"}


def sign_stripe_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: int = None) -> str:
    """Build a Stripe-Signature header the way Stripe does."""
    timestamp = timestamp or int(time.time())
    signature = hmac.new(secret.encode(), f"{timestamp}.{payload}".encode(), hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def stripe_event(event_type: str, intent_id: str, event_id: str = "evt_test_1") -> str:
    return json.dumps({
        "id": event_id,
        "object": "event",
        "type": event_type,
        "data": {"object": {"id": intent_id, "object": "payment_intent"}},
    })


@pytest.fixture
def post_stripe_event(client):
    """POST a correctly signed Stripe event to the webhook."""
    def post(event_type, intent_id, event_id="evt_test_1", signature=None):
        payload = stripe_event(event_type, intent_id, event_id)
        headers = {"Content-Type": "application/json",
                   "Stripe-Signature": signature or sign_stripe_payload(payload)}
        return client.post("/payments/webhooks/stripe", content=payload, headers=headers)
    return post


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def gateway():
    return FakeStripeGateway()


@pytest.fixture
def client(session_factory, gateway):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_stripe_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    rate_limiter.reset()
    yield
    rate_limiter.reset()


def _make_user(db, email, role):
    user = User(email=email, name=email.split("@")[0], role=role,
                hashed_password=get_password_hash(TEST_PASSWORD))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin_user(db):
    return _make_user(db, "admin@medportal.com", UserRole.ADMIN)


@pytest.fixture
def doctor_user(db):
    return _make_user(db, "doctor@medportal.com", UserRole.DOCTOR)


@pytest.fixture
def admin_headers(admin_user):
    return {"Authorization": f"Bearer {create_access_token(admin_user.id)}"}


@pytest.fixture
def doctor_headers(doctor_user):
    return {"Authorization": f"Bearer {create_access_token(doctor_user.id)}"}


@pytest.fixture
def products(db):
    """Two products: insulin (25 in stock, par 10) and a monitor (3 in stock, par 5)."""
    insulin = Product(name="Insulin Pen (Humalog)", sku="INS-HUM-001", price_cents=12500,
                      cost_cents=7500, quantity=25, par_level=10)
    monitor = Product(name="Blood Pressure Monitor", sku="BPM-DIG-001", price_cents=7999,
                      cost_cents=4799, quantity=3, par_level=5)
    db.add_all([insulin, monitor])
    db.commit()
    db.refresh(insulin)
    db.refresh(monitor)
    return {"insulin": insulin, "monitor": monitor}


@pytest.fixture
def order_payload(products):
    def build(*items, **overrides):
        payload = {
            "patient_name": "Jane Patient",
            "patient_email": "jane@example.com",
            "items": [{"product_id": products[key].id, "quantity": qty} for key, qty in items],
        }
        payload.update(overrides)
        return payload
    return build
