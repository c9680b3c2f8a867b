# backend/tests/conftest.py
import os
from datetime import datetime

# Settings are read at import time; keep the module-level engine in memory.
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from betiq.config import Settings, build_code_set, get_settings  # noqa: E402
from betiq.database import Base, get_db  # noqa: E402
from betiq.dependencies import get_clock, get_match_source, get_prediction_generator  # noqa: E402
from betiq.main import app  # noqa: E402
from betiq.predictions import PredictionGenerator  # noqa: E402

from tests.fakes import FakeClock, FakeLLMClient, FakeMatchSource  # noqa: E402

START = datetime(2026, 3, 1, 12, 0, 0)


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        secret_key="test-secret",
        vip_admin_code="20202020",
        vip_codes=build_code_set(["BETIQ-5", "BETIQ-7", "betiq-5 "]),
        upgrade_url="/settings",
        checkout_url="https://checkout.example/vip",
    )


@pytest.fixture
def clock():
    return FakeClock(START)


@pytest.fixture
def match_source():
    return FakeMatchSource()


@pytest.fixture
def llm_client():
    return FakeLLMClient()


@pytest.fixture
def client(session_factory, settings, clock, match_source, llm_client):
    def _get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    generator = PredictionGenerator(client=llm_client)

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_match_source] = lambda: match_source
    app.dependency_overrides[get_prediction_generator] = lambda: generator
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _register(client, email):
    r = client.post("/auth/register", json={"email": email, "password": "supersecret1"})
    assert r.status_code == 201, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture
def auth_headers(client):
    return _register(client, "fan@example.com")


@pytest.fixture
def register(client):
    return lambda email: _register(client, email)
