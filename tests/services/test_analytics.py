"""Tests for streaming statistics over the play log."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from sqlalchemy.orm import Session

from tiptune_plays.models import PlaySource, Track, TrackPlay
from tiptune_plays.services.analytics import PlayAnalyticsService, period_to_since
from tiptune_plays.services.errors import InvalidPeriodError


def _event(
    db: Session,
    played_at: datetime,
    *,
    track_id: str = "t1",
    user_id: str | None = "u1",
    session_id: str = "s1",
    duration: int = 60,
    completed: bool = False,
    counted: bool = True,
    source: PlaySource = PlaySource.DIRECT,
) -> None:
    db.add(
        TrackPlay(
            track_id=track_id,
            user_id=user_id,
            session_id=session_id,
            listen_duration=duration,
            completed_full=completed,
            source=source,
            ip_hash="0" * 64,
            counted_as_play=counted,
            played_at=played_at,
        )
    )
    db.commit()


@pytest.fixture()
def analytics(db_session: Session, clock) -> PlayAnalyticsService:
    return PlayAnalyticsService(db_session, clock=clock)


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    ("period", "expected"),
    [
        ("24h", datetime(2026, 2, 28, 12, 0, tzinfo=UTC)),
        ("7d", datetime(2026, 2, 22, 12, 0, tzinfo=UTC)),
        ("2w", datetime(2026, 2, 15, 12, 0, tzinfo=UTC)),
        ("1m", datetime(2026, 2, 1, 12, 0, tzinfo=UTC)),
        ("3m", datetime(2025, 12, 1, 12, 0, tzinfo=UTC)),
    ],
)
def test_period_to_since(period: str, expected: datetime) -> None:
    assert period_to_since(period, NOW) == expected


@pytest.mark.parametrize("period", ["999999999d", "99999m", "99999999999h", "999999999w"])
def test_out_of_range_period_is_rejected(period: str) -> None:
    with pytest.raises(InvalidPeriodError):
        period_to_since(period, NOW)


def test_month_period_clamps_day() -> None:
    moment = datetime(2026, 3, 31, tzinfo=UTC)
    assert period_to_since("1m", moment) == datetime(2026, 2, 28, tzinfo=UTC)


@pytest.mark.parametrize("period", ["", "7", "d7", "7y", "-1d", "7 d"])
def test_invalid_period_is_rejected(period: str) -> None:
    with pytest.raises(InvalidPeriodError):
        period_to_since(period, NOW)


def test_track_stats(db_session: Session, analytics: PlayAnalyticsService, track: Track) -> None:
    _event(db_session, NOW.replace(hour=1), duration=200, completed=True)
    _event(db_session, NOW.replace(hour=2), user_id=None, session_id="s2", duration=40)
    _event(db_session, NOW.replace(hour=3), duration=10, counted=False)
    _event(db_session, NOW.replace(hour=4), duration=30, counted=False)
    # Outside the default seven day period.
    _event(db_session, datetime(2026, 2, 1, tzinfo=UTC), user_id="u7")

    stats = analytics.track_stats("t1")

    assert stats.total_events == 4
    assert stats.total_plays == 2
    assert stats.unique_listeners == 2
    assert stats.completion_rate == 0.5
    assert stats.skip_rate == 0.5
    assert stats.avg_listen_duration == 70.0


def test_track_stats_for_silent_track(analytics: PlayAnalyticsService, track: Track) -> None:
    stats = analytics.track_stats("t1", "24h")
    assert stats.total_events == 0
    assert stats.total_plays == 0
    assert stats.completion_rate == 0.0
    assert stats.skip_rate == 0.0
    assert stats.avg_listen_duration == 0.0


def test_track_sources_include_every_source(
    db_session: Session, analytics: PlayAnalyticsService, track: Track
) -> None:
    _event(db_session, NOW, source=PlaySource.SEARCH)
    _event(db_session, NOW, source=PlaySource.SEARCH, user_id="u2")
    _event(db_session, NOW, source=PlaySource.TIP_FEED, user_id="u3")
    _event(db_session, NOW, source=PlaySource.PLAYLIST, counted=False)

    breakdown = analytics.track_sources("t1")

    assert breakdown.sources == {
        "search": 2,
        "playlist": 0,
        "artist_profile": 0,
        "tip_feed": 1,
        "direct": 0,
    }


def test_artist_overview(
    db_session: Session, analytics: PlayAnalyticsService, make_track
) -> None:
    make_track("a", "artist-1")
    make_track("b", "artist-1")
    make_track("c", "artist-2")
    _event(db_session, NOW, track_id="a", completed=True)
    _event(db_session, NOW, track_id="a", user_id="u2")
    _event(db_session, NOW, track_id="b", user_id="u2", completed=True)
    _event(db_session, NOW, track_id="c", user_id="u9")

    overview = analytics.artist_overview("artist-1")

    assert overview.total_plays == 3
    assert overview.total_tracks == 2
    assert overview.unique_listeners == 2
    assert [entry.track_id for entry in overview.top_tracks] == ["a", "b"]
    assert overview.avg_completion_rate == 0.75


def test_artist_overview_without_plays(analytics: PlayAnalyticsService) -> None:
    overview = analytics.artist_overview("nobody")
    assert overview.total_plays == 0
    assert overview.top_tracks == []
    assert overview.avg_completion_rate == 0.0


def test_top_tracks_orders_and_limits(
    db_session: Session, analytics: PlayAnalyticsService, make_track
) -> None:
    for track_id in ("a", "b", "c"):
        make_track(track_id)
    for user in ("u1", "u2", "u3"):
        _event(db_session, NOW, track_id="b", user_id=user)
    for user in ("u1", "u2"):
        _event(db_session, NOW, track_id="a", user_id=user)
    _event(db_session, NOW, track_id="c")
    _event(db_session, datetime(2025, 1, 1, tzinfo=UTC), track_id="c", user_id="old")

    top = analytics.top_tracks("7d", limit=2)

    assert [(entry.track_id, entry.plays) for entry in top.tracks] == [("b", 3), ("a", 2)]


def test_top_tracks_rejects_bad_period(analytics: PlayAnalyticsService) -> None:
    with pytest.raises(InvalidPeriodError):
        analytics.top_tracks("forever")
