"""Tests for slowapi rate limiting."""
from types import SimpleNamespace

from fastapi import FastAPI, Request, Response
from fastapi.testclient import TestClient
from slowapi.errors import RateLimitExceeded

from internos.middleware.slowapi_limiter import (
    create_limiter,
    get_request_identifier,
    rate_limit_exceeded_handler,
    setup_rate_limiting,
)
from internos.security.tokens import create_access_token


def _user():
    return SimpleNamespace(id=5, email="intern@example.com", role="Intern", full_name="Ivy Intern")


def test_create_limiter_without_redis():
    """Test limiter creation without Redis (in-memory)."""
    limiter = create_limiter(None)
    assert limiter is not None
    assert limiter.enabled is True


def test_create_limiter_disabled():
    limiter = create_limiter(None, enabled=False)
    assert limiter.enabled is False


def test_setup_rate_limiting():
    """Test setup_rate_limiting configures app correctly."""
    app = FastAPI()
    limiter = setup_rate_limiting(app)

    assert app.state.limiter is limiter
    assert RateLimitExceeded in app.exception_handlers


def test_identifier_prefers_bearer_user():
    app = FastAPI()
    seen = {}

    @app.get("/whoami")
    async def whoami(request: Request):
        seen["id"] = get_request_identifier(request)
        return {}

    client = TestClient(app)
    client.get("/whoami", headers={"Authorization": f"Bearer {create_access_token(_user())}"})
    assert seen["id"] == "user:5"

    client.get("/whoami", headers={"Authorization": "Bearer not-a-token"})
    assert seen["id"] == "testclient"

    client.get("/whoami")
    assert seen["id"] == "testclient"


def test_limit_returns_429():
    """Third call inside the window is rejected."""
    app = FastAPI()
    limiter = create_limiter(None)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    @app.get("/limited")
    @limiter.limit("2/minute")
    async def limited(request: Request, response: Response):
        return {"ok": True}

    client = TestClient(app)
    assert client.get("/limited").status_code == 200
    second = client.get("/limited")
    assert second.status_code == 200
    assert "X-RateLimit-Limit" in second.headers

    assert client.get("/limited").status_code == 429
