"""App wiring: health, security headers, trusted hosts, rate limiting."""
import uuid

from medportal.core.rate_limiter import RateLimiter, rate_limiter


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert resp.headers["X-Frame-Options"] == "DENY"


def test_unknown_host_is_rejected(client):
    resp = client.get("/health", headers={"Host": "evil.example.com"})
    assert resp.status_code == 400


def test_rate_limiter_sliding_window():
    limiter = RateLimiter(requests=2, window=60)

    assert limiter.is_allowed("a") == (True, 1)
    assert limiter.is_allowed("a") == (True, 0)
    assert limiter.is_allowed("a") == (False, 0)
    assert limiter.is_allowed("b") == (True, 1)

    limiter.reset()
    assert limiter.is_allowed("a") == (True, 1)


def test_rate_limit_middleware_answers_429(client, monkeypatch, products):
    monkeypatch.setattr(rate_limiter, "requests", 2)

    assert client.get("/products").status_code == 200
    assert client.get("/products").headers["X-RateLimit-Remaining"] == "0"
    blocked = client.get("/products")

    assert blocked.status_code == 429
    assert "Retry-After" in blocked.headers
    assert blocked.headers["X-RateLimit-Remaining"] == "0"


def test_health_is_not_rate_limited(client, monkeypatch):
    monkeypatch.setattr(rate_limiter, "requests", 1)

    for _ in range(3):
        assert client.get("/health").status_code == 200


def test_bearer_callers_get_their_own_bucket(client, monkeypatch, doctor_headers, admin_headers):
    monkeypatch.setattr(rate_limiter, "requests", 1)

    assert client.get("/auth/me", headers=doctor_headers).status_code == 200
    assert client.get("/auth/me", headers=admin_headers).status_code == 200
    assert client.get("/auth/me", headers=doctor_headers).status_code == 429


def test_forged_bearers_share_the_ip_bucket(client, monkeypatch):
    monkeypatch.setattr(rate_limiter, "requests", 3)
    credentials = {"email": "nobody@example.com", "password": "wrong-password"}

    codes = [
        client.post("/auth/login", json=credentials,
                    headers={"Authorization": f"Bearer {uuid.uuid4()}"}).status_code
        for _ in range(5)
    ]

    assert codes[:3] == [401, 401, 401]
    assert codes[3:] == [429, 429]
    assert len(rate_limiter.clients) == 1
