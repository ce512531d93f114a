import copy
import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.infrastructure.db.base import Base
from app.infrastructure.db.session import get_db
from main import app

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "")

REPORT_PAYLOAD = {
    "issueTitle": "Gateway Timeout",
    "impactedService": "SEND MONEY",
    "impactType": "FULL",
    "modality": "UNPLANNED",
    "startTime": "2024-01-01T10:00:00Z",
    "endTime": "2024-01-01T11:00:00Z",
    "concern": "INTERNAL",
    "reason": "Upstream gateway stopped responding",
    "resolution": "Gateway pods restarted",
    "systemUnavailability": "SYSTEM",
    "trackedBy": "SOC Shift A",
    "categories": ["Network"],
    "categoryTimes": {},
    "affectedChannel": ["APP"],
    "reliabilityImpacted": "YES",
}

CALLER_HEADERS = {
    "X-SOC-Portal-ID": "SOC-0042",
    "X-EID": "E1042",
    "X-Session-ID": "sess-abc",
    "X-Forwarded-For": "10.0.0.7, 172.16.0.1",
    "User-Agent": "pytest-agent",
}


def _make_engine():
    if TEST_DATABASE_URL:
        engine = create_engine(TEST_DATABASE_URL, pool_pre_ping=True)
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as exc:
            pytest.skip(f"Database unavailable for integration tests: {exc}")
        return engine
    return create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def db_engine():
    engine = _make_engine()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db_session):
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def report_payload() -> dict:
    return copy.deepcopy(REPORT_PAYLOAD)


@pytest.fixture
def caller_headers() -> dict:
    return dict(CALLER_HEADERS)
