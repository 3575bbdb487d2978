"""
Tests for the application wiring: service endpoints and global handlers.
"""
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from src.exceptions import redact_errors, register_exception_handlers
from src.main import API_VERSION


def test_root_endpoint(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["version"] == API_VERSION


def test_health_check_reaches_database(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "database": "connected"}


def test_responses_carry_request_id(client):
    response = client.get("/health")
    assert response.headers["X-Request-ID"]
    assert float(response.headers["X-Process-Time"]) >= 0


def test_redact_errors_drops_submitted_values():
    errors = [{"loc": ("body", "password"), "msg": "too short", "input": "abc", "ctx": {"min_length": 8}}]
    assert redact_errors(errors) == [{"loc": ("body", "password"), "msg": "too short"}]


def test_unmapped_storage_error_is_opaque():
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/broken")
    def broken():
        raise OperationalError("SELECT secret FROM users", {}, Exception("disk I/O error"))

    response = TestClient(app).get("/broken")

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}
    assert "secret" not in response.text
