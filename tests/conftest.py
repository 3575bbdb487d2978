"""
Test configuration for the clinical records backend.
"""
import os

# Settings are read at import time, so the environment is prepared first
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["RESET_RATE_LIMIT"] = "1000"

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.auth.repository import UserRepository
from src.auth.service import AuthService
from src.core.mailer import get_mailer
from src.database import Base, get_db
from src.main import app

# Test database URL
TEST_DATABASE_URL = "sqlite://"

# Create test database engine
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Create test session factory
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeMailer:
    """Collects outgoing reset links instead of sending them."""

    def __init__(self):
        self.sent = []
        self.fail = False

    async def send_password_reset_link(self, email, link):
        if self.fail:
            raise ConnectionError("SMTP server unavailable")
        self.sent.append((email, link))

    def last_token(self):
        _, link = self.sent[-1]
        return link.split("token=", 1)[1]


class FrozenClock:
    """Clock whose time only moves when told to."""

    def __init__(self, now=None):
        self.now = now or datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(scope="function")
def db():
    """
    Create a fresh database for each test.
    """
    # Create tables
    Base.metadata.create_all(bind=engine)

    # Create session
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

    # Drop tables after test
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def service(db, mailer, clock):
    return AuthService(UserRepository(db), mailer, clock=clock)


@pytest.fixture(scope="function")
def client(db, mailer):
    """
    Create a test client with a test database session and a fake mailer.
    """
    def override_get_db():
        try:
            yield db
        finally:
            pass

    # Override the database and mail dependencies
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mailer] = lambda: mailer

    # Create test client
    with TestClient(app) as client:
        yield client

    # Remove dependency override
    app.dependency_overrides = {}


@pytest.fixture
def make_account(client):
    """Register and log in an account through the API, returning (account id, bearer headers)."""
    def register_and_login(name, email, rut, role, password="Secret123"):
        response = client.post(
            "/api/v1/auth/register",
            json={"name": name, "email": email, "password": password, "rut": rut, "role": role},
        )
        assert response.status_code == 201, response.text
        account_id = response.json()["id"]

        response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        token = response.json()["access_token"]
        return account_id, {"Authorization": f"Bearer {token}"}
    return register_and_login
