"""
Shared fixtures: in-memory databases, an API client and a tracking client
that records calls instead of sending them.
"""

import os

# Settings are read on import, so configure them before importing algespace
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STUDIES_DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from algespace.core.database import get_session, get_study_session, init_db
from algespace.data.examples import (
    get_efficiency_exercises,
    get_equalization_exercises,
    get_matching_exercises,
    get_suitability_exercises,
)
from algespace.main import app
from algespace.tracking.tracker import StudyUser


def memory_engine():
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


class RecordingClient:
    """Stands in for TrackingClient and keeps every call."""

    def __init__(self, entry_id=7, fail=False):
        self.entry_id = entry_id
        self.fail = fail
        self.calls = []

    def create_entry(self, route_prefix, payload):
        self.calls.append((route_prefix, "createEntry", payload))
        return self.entry_id

    def send(self, route_prefix, route, payload, context):
        if self.fail:
            from algespace.core.exceptions import TrackingError
            raise TrackingError(f"{context}: connection refused")
        self.calls.append((route_prefix, route, payload))

    def routes(self):
        return [route for _, route, _ in self.calls]

    def actions(self):
        return [payload["action"] for _, route, payload in self.calls if route == "addActionToEntry"]


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def engines():
    exercise_engine = memory_engine()
    study_engine = memory_engine()
    init_db(exercise_engine, study_engine)
    yield exercise_engine, study_engine
    exercise_engine.dispose()
    study_engine.dispose()


@pytest.fixture
def session(engines):
    with Session(engines[0]) as session:
        yield session


@pytest.fixture
def study_session(engines):
    with Session(engines[1]) as session:
        yield session


@pytest.fixture
def client(engines):
    exercise_engine, study_engine = engines

    def override_session():
        with Session(exercise_engine) as session:
            yield session

    def override_study_session():
        with Session(study_engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_study_session] = override_study_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def recording_client():
    return RecordingClient()


@pytest.fixture
def failing_client():
    return RecordingClient(fail=True)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def study_user():
    return StudyUser(id=1, username="participant01", token="participant-token")


@pytest.fixture
def equalization_exercise():
    # apple = 3 kiwi, apple = kiwi + 100
    return get_equalization_exercises()[0]


@pytest.fixture
def suitability_exercise():
    # y = 2x + 1, y = -x + 7
    return get_suitability_exercises()[0]


@pytest.fixture
def efficiency_exercise():
    # x = 3y - 1, 2x + y = 12
    return get_efficiency_exercises()[0]


@pytest.fixture
def matching_exercise():
    return get_matching_exercises()[0]
