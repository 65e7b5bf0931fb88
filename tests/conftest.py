"""
Shared fixtures: a throwaway SQLite database per test, a frozen clock and a
job queue that records what it is given.
"""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from app.auth import create_access_token
from app.core import get_clock
from app.db import build_engine, get_session, init_db
from app.jobs import get_job_queue
from app.main import app
from app.models import User

UTC = timezone.utc

# Sunday noon; most tests book Monday 2025-03-10
NOW = datetime(2025, 3, 9, 12, 0, tzinfo=UTC)


class FrozenClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class RecordingJobQueue:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.jobs = []

    async def enqueue(self, job_kind, payload, job_id=None):
        if self.fail:
            raise ConnectionError("Redis unavailable")
        self.jobs.append({"kind": job_kind, "payload": payload, "job_id": job_id})
        return job_id


@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'appointments.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def clock():
    return FrozenClock(NOW)


@pytest.fixture
def job_queue():
    return RecordingJobQueue()


@pytest.fixture
def client(engine, clock, job_queue):
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_job_queue] = lambda: job_queue
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create_user(session: Session, name: str, provider: bool = False) -> User:
    user = User(
        name=name,
        email=f"{name.lower()}@example.com",
        password_hash="not-a-real-hash",
        provider=provider,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def _auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': user.email})}"}


@pytest.fixture
def make_user(session):
    def factory(name: str, provider: bool = False) -> User:
        return _create_user(session, name, provider)
    return factory


@pytest.fixture
def auth_headers():
    return _auth_headers


@pytest.fixture
def provider(session):
    return _create_user(session, "Paula", provider=True)


@pytest.fixture
def customer(session):
    return _create_user(session, "Carlos")


@pytest.fixture
def other_customer(session):
    return _create_user(session, "Diana")
