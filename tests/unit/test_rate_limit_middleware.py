"""Unit tests for rate limiting middleware

Tests cover:
- Requests within the per-minute and per-hour limits
- Envelope and Retry-After header on 429
- Health endpoints bypassing the limiter
- Per-IP isolation
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from newsroom.api.middleware.rate_limit import RateLimitMiddleware


@pytest.fixture
def app():
    """Create test FastAPI app with rate limiting"""
    test_app = FastAPI()
    test_app.add_middleware(RateLimitMiddleware, requests_per_minute=5, requests_per_hour=20)

    @test_app.get("/learning/metrics")
    async def metrics_endpoint():
        return {"success": True}

    @test_app.get("/health")
    async def health_endpoint():
        return {"status": "healthy"}

    return test_app


def test_requests_within_limit(app):
    client = TestClient(app)

    for _i in range(5):
        response = client.get("/learning/metrics")
        assert response.status_code == 200
        assert "X-RateLimit-Limit-Minute" in response.headers
        assert "X-RateLimit-Remaining-Minute" in response.headers


def test_minute_limit_returns_envelope(app):
    client = TestClient(app)

    for _i in range(5):
        assert client.get("/learning/metrics").status_code == 200

    response = client.get("/learning/metrics")
    assert response.status_code == 429
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Too Many Requests"
    assert "5 requests per minute" in body["message"]
    assert response.headers["Retry-After"] == "60"


def test_hour_limit():
    test_app = FastAPI()
    test_app.add_middleware(RateLimitMiddleware, requests_per_minute=100, requests_per_hour=3)

    @test_app.get("/learning/tags")
    async def tags_endpoint():
        return {"success": True}

    client = TestClient(test_app)
    for _i in range(3):
        assert client.get("/learning/tags").status_code == 200

    response = client.get("/learning/tags")
    assert response.status_code == 429
    assert "per hour" in response.json()["message"]
    assert response.headers["Retry-After"] == "3600"


def test_health_endpoints_bypass_rate_limit(app):
    client = TestClient(app)

    for _i in range(6):
        client.get("/learning/metrics")

    response = client.get("/health")
    assert response.status_code == 200
    assert "X-RateLimit-Limit-Minute" not in response.headers


def test_per_ip_isolation(app):
    client = TestClient(app)

    for _i in range(5):
        response = client.get("/learning/metrics", headers={"X-Forwarded-For": "192.168.1.1"})
        assert response.status_code == 200

    response = client.get("/learning/metrics", headers={"X-Forwarded-For": "192.168.1.1"})
    assert response.status_code == 429

    response = client.get("/learning/metrics", headers={"X-Forwarded-For": "192.168.1.2"})
    assert response.status_code == 200


def test_invalid_forwarded_ip_falls_back_to_client(app):
    client = TestClient(app)

    for _i in range(5):
        client.get("/learning/metrics", headers={"X-Forwarded-For": "not-an-ip"})

    # Same bucket as a request without the header
    assert client.get("/learning/metrics").status_code == 429


def test_rate_limit_headers_accuracy(app):
    client = TestClient(app)

    response = client.get("/learning/metrics")
    assert response.headers["X-RateLimit-Remaining-Minute"] == "4"
    assert response.headers["X-RateLimit-Remaining-Hour"] == "19"

    response = client.get("/learning/metrics")
    assert response.headers["X-RateLimit-Remaining-Minute"] == "3"
    assert response.headers["X-RateLimit-Remaining-Hour"] == "18"
