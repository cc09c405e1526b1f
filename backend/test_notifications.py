"""SMS formatting and delivery, email delivery and templates, provider callbacks."""
import pytest
import requests

from medportal.core.config import settings
from medportal.services import notification_service, sms_service


@pytest.mark.parametrize("raw, expected", [
    ("(555) 123-4567", "+15551234567"),
    ("15551234567", "+15551234567"),
    ("+44 20 7946 0958", "+442079460958"),
    ("12345", "+112345"),
])
def test_format_phone_number(raw, expected):
    assert sms_service.format_phone_number(raw) == expected


def test_sms_is_simulated_without_twilio():
    result = sms_service.send_sms("5551234567", "hello")

    assert result["success"] is True
    assert result["message_id"].startswith("simulated_")


class FakeResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload


class TwilioRecorder:
    def __init__(self):
        self.sent = []
        self.response = FakeResponse(201, {"sid": "SM123", "status": "queued"})

    def post(self, url, data, auth, timeout):
        self.sent.append({"url": url, "data": data, "auth": auth})
        return self.response


@pytest.fixture
def twilio(monkeypatch):
    monkeypatch.setattr(settings, "TWILIO_ACCOUNT_SID", "AC123")
    monkeypatch.setattr(settings, "TWILIO_AUTH_TOKEN", "token")
    monkeypatch.setattr(settings, "TWILIO_PHONE_NUMBER", "+15550000000")
    recorder = TwilioRecorder()
    monkeypatch.setattr(sms_service.requests, "post", recorder.post)
    return recorder


def test_sms_is_posted_to_twilio(twilio):
    result = sms_service.send_sms("555-123-4567", "pay here")

    assert result == {"success": True, "message_id": "SM123", "error": None}
    assert twilio.sent[0]["url"].endswith("/Accounts/AC123/Messages.json")
    assert twilio.sent[0]["data"] == {"To": "+15551234567", "Body": "pay here", "From": "+15550000000"}
    assert twilio.sent[0]["auth"] == ("AC123", "token")


def test_sms_prefers_messaging_service(monkeypatch, twilio):
    monkeypatch.setattr(settings, "TWILIO_MESSAGING_SERVICE_SID", "MG123")

    sms_service.send_sms("5551234567", "pay here")

    assert twilio.sent[0]["data"]["MessagingServiceSid"] == "MG123"
    assert "From" not in twilio.sent[0]["data"]


def test_sms_rejected_by_twilio(twilio):
    twilio.response = FakeResponse(400, {"message": "Invalid 'To' Phone Number", "code": 21211})

    result = sms_service.send_sms("123", "pay here")

    assert result["success"] is False
    assert result["error"] == "Invalid 'To' Phone Number"


def test_sms_network_error_is_reported(monkeypatch, twilio):
    def down(url, data, auth, timeout):
        raise requests.ConnectionError("no route")

    monkeypatch.setattr(sms_service.requests, "post", down)

    result = sms_service.send_sms("5551234567", "pay here")
    assert result["success"] is False
    assert "no route" in result["error"]


def test_email_without_smtp_config_is_not_sent():
    assert notification_service.send_email("jane@example.com", "Hi", "<p>Hi</p>") is False


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout):
        self.host, self.port = host, port
        self.calls = []
        FakeSMTP.instances.append(self)

    def starttls(self):
        self.calls.append("starttls")

    def login(self, user, password):
        self.calls.append(("login", user, password))

    def sendmail(self, sender, recipients, message):
        self.calls.append(("sendmail", sender, recipients))

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def test_email_via_smtp(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(settings, "SMTP_HOST", "smtp.example.com")
    monkeypatch.setattr(settings, "SMTP_USER", "mailer@example.com")
    monkeypatch.setattr(settings, "SMTP_PASS", "pw")
    monkeypatch.setattr(settings, "EMAIL_FROM", "noreply@example.com")
    monkeypatch.setattr(notification_service.smtplib, "SMTP", FakeSMTP)

    assert notification_service.send_email("jane@example.com", "Hi", "<p>Hi</p>") is True

    smtp = FakeSMTP.instances[0]
    assert (smtp.host, smtp.port) == ("smtp.example.com", 587)
    assert smtp.calls == [
        "starttls",
        ("login", "mailer@example.com", "pw"),
        ("sendmail", "noreply@example.com", ["jane@example.com"]),
    ]


def test_sendgrid_relay_is_used_with_only_an_api_key(monkeypatch):
    monkeypatch.setattr(settings, "SENDGRID_API_KEY", "SG.key")

    assert notification_service._smtp_settings() == {
        "host": "smtp.sendgrid.net",
        "port": 587,
        "user": "apikey",
        "password": "SG.key",
    }


def test_payment_link_templates():
    sms = notification_service.payment_link_sms("Jane", "125.00", "http://x/checkout?token=t")
    assert sms == "Hi Jane, your medical order total is $125.00. Complete payment here: http://x/checkout?token=t"

    html = notification_service.payment_link_email("<Jane>", "125.00", "http://x/checkout?token=t&a=b", "o-1")
    assert "Complete Payment" in html
    assert "&lt;Jane&gt;" in html
    assert "token=t&amp;a=b" in html


def test_confirmation_email_lists_items():
    html = notification_service.payment_confirmation_email(
        "Jane", "o-1", "250.00", [{"name": "Insulin Pen", "quantity": 2, "price_cents": 12500}]
    )
    assert "Insulin Pen" in html
    assert "$250.00" in html


def test_twilio_status_callback(client):
    resp = client.post(
        "/notifications/webhooks/twilio-sms-status",
        content="MessageSid=SM123&MessageStatus=delivered&To=%2B15551234567",
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )

    assert resp.status_code == 200
    assert resp.json() == {"received": True, "status": "delivered"}
