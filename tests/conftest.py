# tests/conftest.py
from __future__ import annotations

from collections.abc import Generator, Iterator
from datetime import UTC, datetime, timedelta

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tiptune_plays.api.v1.endpoints import plays as plays_endpoints
from tiptune_plays.core.settings import Settings
from tiptune_plays.db.session import Base
from tiptune_plays.db.session import get_db as app_get_session
from tiptune_plays.main import app as fastapi_app
from tiptune_plays.models import Track
from tiptune_plays.services.analytics import PlayAnalyticsService
from tiptune_plays.services.play_service import PlayCountService

TEST_DB_URL = "sqlite://"
_TEST_SETTINGS_INSTANCE = Settings()


class FrozenClock:
    """Deterministic clock handed to services instead of ``utcnow``."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    # The services commit for real, so every table is emptied afterwards.
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 3, 1, 12, 0, tzinfo=UTC))


@pytest.fixture()
def play_service(db_session: Session, clock: FrozenClock) -> PlayCountService:
    return PlayCountService(db_session, clock=clock)


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(
    app: FastAPI, db_session: Session, clock: FrozenClock
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    def _get_play_service_override() -> PlayCountService:
        return PlayCountService(db_session, clock=clock)

    def _get_analytics_override() -> PlayAnalyticsService:
        return PlayAnalyticsService(db_session, clock=clock)

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[plays_endpoints.get_play_service_dep] = _get_play_service_override
    app.dependency_overrides[plays_endpoints.get_analytics_service_dep] = _get_analytics_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(plays_endpoints.get_play_service_dep, None)
        app.dependency_overrides.pop(plays_endpoints.get_analytics_service_dep, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Provide a Settings instance aligned with runtime configuration."""
    return _TEST_SETTINGS_INSTANCE


def _make_track(db: Session, track_id: str, artist_id: str | None = "artist-1") -> Track:
    track = Track(id=track_id, artist_id=artist_id, title=f"Track {track_id}", plays=0)
    db.add(track)
    db.commit()
    return track


@pytest.fixture()
def track(db_session: Session) -> Track:
    """Create the default track ``t1``."""
    return _make_track(db_session, "t1")


@pytest.fixture()
def make_track(db_session: Session):
    """Return a factory creating additional tracks."""

    def _factory(track_id: str, artist_id: str | None = "artist-1") -> Track:
        return _make_track(db_session, track_id, artist_id)

    return _factory
