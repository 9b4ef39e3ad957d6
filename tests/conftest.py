"""Common test fixtures for chatroom tests."""

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from chatroom.core.database import Base
from chatroom.model import ChatMessage, ChatPresence  # noqa: F401
from chatroom.ratelimit import MemoryRateLimiter
from chatroom.router.api.room import get_room_service
from chatroom.service.room_service import RoomService

TEST_KEY = bytes(range(32))
START_MS = 1_700_000_000_000


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = START_MS) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def engine():
    """In-memory SQLite shared across threads (FastAPI runs sync endpoints in a threadpool)."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def service(db, clock) -> RoomService:
    return RoomService(db, key=TEST_KEY, clock=clock)


@pytest.fixture
def app(session_factory, clock):
    """The real FastAPI app wired to the test database, clock and a disabled rate limiter."""
    from main import app

    def override_room_service():
        session = session_factory()
        try:
            yield RoomService(session, key=TEST_KEY, clock=clock)
        finally:
            session.close()

    previous_limiter = app.state.rate_limiter
    app.dependency_overrides[get_room_service] = override_room_service
    app.state.rate_limiter = MemoryRateLimiter(window_ms=0)
    yield app
    app.dependency_overrides.clear()
    app.state.rate_limiter = previous_limiter


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)
