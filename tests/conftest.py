"""
Shared fixtures for Telemetry Hub tests.
"""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from telemetry_hub.config import Settings
from telemetry_hub.database import build_engine, build_session_factory
from telemetry_hub.main import create_app
from telemetry_hub.models import Base
from telemetry_hub.routes.deps import get_now

PROBE_KEY = "probe-secret-key-123456789012"
COLLECTOR_KEY = "collector-secret-key-123456789"
CLI_KEY = "cli-secret-key-12345678901234"

START = datetime(2025, 10, 24, 12, 0, 0)


class Clock:
    """Controllable stand-in for the request clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def db_url(tmp_path):
    return f"sqlite:///{tmp_path / 'hub.db'}"


@pytest.fixture
def engine(db_url):
    engine = build_engine(db_url)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings(db_url):
    return Settings(
        DATABASE_URL=db_url,
        PROBE_API_KEY=PROBE_KEY,
        LOG_COLLECTOR_API_KEY=COLLECTOR_KEY,
        CLI_API_KEY=CLI_KEY,
        LOG_LEVEL="debug",
    )


@pytest.fixture
def clock():
    return Clock(START)


@pytest.fixture
def app(settings, clock):
    app = create_app(settings)
    app.dependency_overrides[get_now] = clock
    return app


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def probe_headers():
    def build(node_id=21, key=PROBE_KEY):
        return {"X-Api-Key": key, "X-Node-ID": str(node_id)}

    return build


@pytest.fixture
def collector_headers():
    return {"X-Api-Key": COLLECTOR_KEY}


@pytest.fixture
def cli_headers():
    return {"X-Api-Key": CLI_KEY}
