"""Unit tests for the rate limiter and security headers on a bare FastAPI app."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from src.api.middleware import RateLimitMiddleware, SecurityHeadersMiddleware, client_ip


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


def _client(**limiter) -> TestClient:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, **limiter)
    app.add_middleware(SecurityHeadersMiddleware)

    @app.get("/")
    async def root() -> dict:
        return {"ok": True}

    @app.get("/api/health")
    async def health() -> dict:
        return {"status": "ok"}

    return TestClient(app)


def _get(client: TestClient, ip: str = "1.2.3.4", **headers):
    return client.get("/", headers={"x-forwarded-for": ip, **headers})


# ─── Rate limiting ────────────────────────────────────────────────


def test_allows_requests_within_the_limit():
    client = _client(limit=3, window_seconds=60)

    response = _get(client)

    assert response.status_code == 200
    assert response.headers["X-RateLimit-Limit"] == "3"
    assert response.headers["X-RateLimit-Remaining"] == "2"
    assert int(response.headers["X-RateLimit-Reset"]) > 0


def test_returns_429_when_limit_exceeded():
    client = _client(limit=2, window_seconds=60, timer=FakeClock())

    _get(client)
    _get(client)
    response = _get(client)

    assert response.status_code == 429
    assert response.json() == {"error": "RATE_LIMITED", "detail": "Too many requests"}
    assert response.headers["Retry-After"] == "60"
    assert response.headers["X-RateLimit-Remaining"] == "0"
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_clients_are_tracked_independently():
    client = _client(limit=1, window_seconds=60)

    assert _get(client, "10.0.0.1").status_code == 200
    assert _get(client, "10.0.0.2").status_code == 200
    assert _get(client, "10.0.0.1").status_code == 429


def test_counter_resets_after_the_window():
    clock = FakeClock()
    client = _client(limit=1, window_seconds=60, timer=clock)

    _get(client)
    assert _get(client).status_code == 429

    clock.now += 61

    assert _get(client).status_code == 200


def test_custom_key_func():
    client = _client(
        limit=1,
        window_seconds=60,
        key_func=lambda request: request.headers.get("x-api-key", "anonymous"),
    )

    assert _get(client, **{"x-api-key": "key-a"}).status_code == 200
    assert _get(client, **{"x-api-key": "key-b"}).status_code == 200


def test_falls_back_to_x_real_ip():
    client = _client(limit=1, window_seconds=60)

    assert client.get("/", headers={"x-real-ip": "5.5.5.5"}).status_code == 200
    assert client.get("/", headers={"x-real-ip": "5.5.5.5"}).status_code == 429
    assert client.get("/", headers={"x-real-ip": "6.6.6.6"}).status_code == 200


def test_health_is_exempt():
    client = _client(limit=1, window_seconds=60)

    first = client.get("/api/health", headers={"x-forwarded-for": "1.2.3.4"})
    second = client.get("/api/health", headers={"x-forwarded-for": "1.2.3.4"})

    assert (first.status_code, second.status_code) == (200, 200)
    assert "X-RateLimit-Limit" not in second.headers


def test_client_ip_uses_first_forwarded_hop():
    scope = {
        "type": "http",
        "headers": [(b"x-forwarded-for", b"203.0.113.7, 10.0.0.1")],
        "client": ("127.0.0.1", 5000),
    }
    assert client_ip(Request(scope)) == "203.0.113.7"
    assert client_ip(Request({"type": "http", "headers": [], "client": ("127.0.0.1", 5000)})) == "127.0.0.1"


# ─── Security headers ─────────────────────────────────────────────


def test_security_headers_are_set():
    response = _client(limit=10, window_seconds=60).get("/")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "SAMEORIGIN"
    assert response.headers["Strict-Transport-Security"].startswith("max-age=")
    assert response.headers["Referrer-Policy"] == "no-referrer"
    assert response.headers["X-XSS-Protection"] == "0"
