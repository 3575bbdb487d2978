"""
Tests for the custom middlewares.
"""
from types import SimpleNamespace

from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.core import middleware as middleware_module
from src.core.middleware import RateLimitMiddleware, RequestLoggingMiddleware


def build_app(rate_limit):
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, paths=["/limited"], rate_limit=rate_limit, window_seconds=60)
    app.add_middleware(RequestLoggingMiddleware)

    @app.post("/limited")
    def limited():
        return {"ok": True}

    @app.post("/open")
    def open_route():
        return {"ok": True}

    return app


def test_requests_beyond_limit_are_throttled():
    client = TestClient(build_app(rate_limit=3))

    statuses = [client.post("/limited").status_code for _ in range(4)]

    assert statuses == [200, 200, 200, 429]
    response = client.post("/limited")
    assert response.status_code == 429
    assert response.json() == {"detail": "Too many requests"}


def test_other_paths_are_not_throttled():
    client = TestClient(build_app(rate_limit=1))

    assert client.post("/limited").status_code == 200
    assert client.post("/limited").status_code == 429
    for _ in range(5):
        assert client.post("/open").status_code == 200


def test_request_id_header():
    client = TestClient(build_app(rate_limit=3))
    first = client.post("/open").headers["X-Request-ID"]
    second = client.post("/open").headers["X-Request-ID"]
    assert first != second


def test_prune_forgets_clients_outside_the_window():
    limiter = RateLimitMiddleware(FastAPI(), paths=["/limited"], rate_limit=3, window_seconds=60)
    limiter.requests = {
        ("10.0.0.1", "/limited"): [0.0, 10.0],
        ("10.0.0.2", "/limited"): [10.0, 100.0],
        ("10.0.0.3", "/limited"): [],
    }

    limiter.prune(now=120.0)

    assert list(limiter.requests) == [("10.0.0.2", "/limited")]
    assert limiter.last_prune == 120.0


def test_expired_clients_are_dropped_on_the_next_request(monkeypatch):
    app = build_app(rate_limit=3)
    client = TestClient(app)
    clock = {"now": 1000.0}
    monkeypatch.setattr(middleware_module, "time", SimpleNamespace(time=lambda: clock["now"]))

    client.post("/limited")
    limiter = find_rate_limiter(app)
    limiter.requests[("203.0.113.7", "/limited")] = [clock["now"]]

    clock["now"] += 61
    client.post("/limited")

    assert list(limiter.requests) == [("testclient", "/limited")]
    assert len(limiter.requests[("testclient", "/limited")]) == 1


def find_rate_limiter(app):
    layer = app.middleware_stack
    while layer is not None and not isinstance(layer, RateLimitMiddleware):
        layer = getattr(layer, "app", None)
    return layer
