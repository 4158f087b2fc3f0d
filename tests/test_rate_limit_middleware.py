import asyncio
from types import SimpleNamespace

import pytest
from starlette.requests import Request

from clinicstock.core.config import settings
from clinicstock.middleware import rate_limit_middleware
from clinicstock.middleware.rate_limit_middleware import RateLimitMiddleware


@pytest.fixture
def clock(monkeypatch):
    state = {"now": 1000.0}
    monkeypatch.setattr(rate_limit_middleware, "time", SimpleNamespace(time=lambda: state["now"]))
    return state


def make_request(path: str, ip: str = "10.0.0.1") -> Request:
    return Request({
        "type": "http",
        "method": "POST",
        "path": path,
        "headers": [],
        "query_string": b"",
        "client": (ip, 5000),
    })


async def call_next(request):
    return "ok"


def hit(middleware, path, ip="10.0.0.1"):
    return asyncio.run(middleware.dispatch(make_request(path, ip), call_next))


def test_limit_returns_429_with_retry_after(clock):
    middleware = RateLimitMiddleware(None, request_limit=2, window_seconds=60)

    assert hit(middleware, "/api/v1/products") == "ok"
    assert hit(middleware, "/api/v1/products") == "ok"
    blocked = hit(middleware, "/api/v1/products")

    assert blocked.status_code == 429
    assert blocked.headers["Retry-After"] == "60"


def test_stripe_webhook_is_exempt(clock):
    middleware = RateLimitMiddleware(None, request_limit=1, window_seconds=60)
    webhook = f"{settings.API_V1_PREFIX}/billing/webhook"

    assert hit(middleware, webhook) == "ok"
    assert hit(middleware, webhook) == "ok"
    assert middleware.clients == {}


def test_idle_clients_are_forgotten(clock):
    middleware = RateLimitMiddleware(None, request_limit=5, window_seconds=60)

    hit(middleware, "/api/v1/products", ip="10.0.0.1")
    hit(middleware, "/api/v1/products", ip="10.0.0.2")
    clock["now"] += 61
    hit(middleware, "/api/v1/products", ip="10.0.0.3")

    assert set(middleware.clients) == {"10.0.0.3"}
