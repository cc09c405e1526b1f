"""Checkout links: issuing, verifying and delivering them."""
from datetime import timedelta

import pytest

from medportal.core.security import create_access_token, encode_token
from medportal.services import checkout_service


@pytest.fixture
def order(client, order_payload):
    return client.post("/orders", json=order_payload(("insulin", 1), patient_phone="555-123-4567")).json()


def test_link_points_at_frontend_checkout(client, doctor_headers, order):
    resp = client.post(f"/orders/{order['id']}/link", headers=doctor_headers)

    assert resp.status_code == 200
    body = resp.json()
    assert body["checkout_url"] == f"http://localhost:3000/checkout?token={body['token']}"
    assert body["expires_at"]


def test_link_requires_authentication(client, order):
    assert client.post(f"/orders/{order['id']}/link").status_code == 401


def test_link_for_paid_order_is_rejected(client, doctor_headers, order):
    client.patch(f"/orders/{order['id']}", json={"status": "PAID"}, headers=doctor_headers)

    resp = client.post(f"/orders/{order['id']}/link", headers=doctor_headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Order is not in pending status"


def test_verify_valid_token(client, doctor_headers, order):
    token = client.post(f"/orders/{order['id']}/link", headers=doctor_headers).json()["token"]

    resp = client.post("/auth/checkout/verify", json={"token": token})

    assert resp.status_code == 200
    assert resp.json()["valid"] is True
    assert resp.json()["order_id"] == order["id"]


def test_verify_expired_token(client, order):
    token, _ = checkout_service.create_checkout_token(order["id"], expires_delta=timedelta(seconds=-5))

    resp = client.post("/auth/checkout/verify", json={"token": token})

    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid or expired token"


def test_verify_rejects_access_token(client, doctor_user):
    resp = client.post("/auth/checkout/verify", json={"token": create_access_token(doctor_user.id)})
    assert resp.status_code == 401


def test_verify_rejects_garbage(client):
    resp = client.post("/auth/checkout/verify", json={"token": "not-a-jwt"})
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid or expired token"


def test_verify_rejects_token_for_unknown_order(client):
    token = encode_token({"orderId": "missing", "type": "checkout"}, timedelta(hours=1))
    assert client.post("/auth/checkout/verify", json={"token": token}).status_code == 401


def test_token_stops_working_once_order_is_cancelled(client, doctor_headers, order):
    token = client.post(f"/orders/{order['id']}/link", headers=doctor_headers).json()["token"]
    client.delete(f"/orders/{order['id']}", headers=doctor_headers)

    resp = client.post("/auth/checkout/verify", json={"token": token})
    assert resp.status_code == 401


def test_checkout_token_is_not_a_session(client, doctor_headers, order):
    token = client.post(f"/orders/{order['id']}/link", headers=doctor_headers).json()["token"]

    resp = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


def test_send_payment_link_by_email_without_smtp(client, doctor_headers, order):
    resp = client.post(f"/orders/{order['id']}/send-payment-link", json={"method": "email"},
                       headers=doctor_headers)

    assert resp.status_code == 200
    body = resp.json()
    assert body["sent"] is False
    assert body["method"] == "email"
    assert body["checkout_url"].startswith("http://localhost:3000/checkout?token=")


def test_send_payment_link_text_is_sms(client, doctor_headers, order):
    resp = client.post(f"/orders/{order['id']}/send-payment-link", json={"method": "text"},
                       headers=doctor_headers)

    assert resp.status_code == 200
    # Twilio is not configured in tests, so the SMS is simulated
    assert resp.json()["sent"] is True
    assert resp.json()["method"] == "sms"


def test_send_payment_link_sms_needs_a_phone(client, doctor_headers, order_payload):
    order = client.post("/orders", json=order_payload(("insulin", 1))).json()

    resp = client.post(f"/orders/{order['id']}/send-payment-link", json={"method": "sms"},
                       headers=doctor_headers)
    assert resp.status_code == 400

    resp = client.post(f"/orders/{order['id']}/send-payment-link",
                       json={"method": "sms", "phone": "5559876543"}, headers=doctor_headers)
    assert resp.status_code == 200
    assert resp.json()["sent"] is True
