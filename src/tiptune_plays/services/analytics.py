"""Read-only streaming statistics computed from the play event log."""

from __future__ import annotations

import calendar
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy import ColumnElement, Float, case, cast, desc, func, select
from sqlalchemy.orm import Session

from tiptune_plays.core.settings import settings
from tiptune_plays.db.time import utcnow
from tiptune_plays.models.play import PlaySource, TrackPlay
from tiptune_plays.models.track import Track
from tiptune_plays.services.errors import InvalidPeriodError

_PERIOD_RE = re.compile(r"^(\d+)([hdwm])$")
ARTIST_TOP_TRACKS = 5


@dataclass(frozen=True)
class TrackStats:
    track_id: str
    period: str
    total_plays: int
    total_events: int
    unique_listeners: int
    completion_rate: float
    skip_rate: float
    avg_listen_duration: float


@dataclass(frozen=True)
class SourceBreakdown:
    track_id: str
    sources: dict[str, int]


@dataclass(frozen=True)
class TopTrack:
    track_id: str
    plays: int
    completion_rate: float


@dataclass(frozen=True)
class ArtistOverview:
    artist_id: str
    total_plays: int
    unique_listeners: int
    total_tracks: int
    avg_completion_rate: float
    top_tracks: list[TopTrack] = field(default_factory=list)


@dataclass(frozen=True)
class TopTracks:
    period: str
    tracks: list[TopTrack] = field(default_factory=list)


def _subtract_months(moment: datetime, months: int) -> datetime:
    month_index = moment.month - 1 - months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def period_to_since(period: str, now: datetime) -> datetime:
    """Translate ``"24h"``, ``"7d"``, ``"4w"`` or ``"1m"`` into a start instant.

    Raises:
        InvalidPeriodError: If the string does not match ``<number><h|d|w|m>``
            or reaches outside the representable date range.
    """
    match = _PERIOD_RE.match(period or "")
    if match is None:
        raise InvalidPeriodError(
            f"Invalid period format: {period}. Use e.g. 24h, 7d, 4w, 1m"
        )
    value, unit = int(match.group(1)), match.group(2)
    try:
        if unit == "h":
            return now - timedelta(hours=value)
        if unit == "d":
            return now - timedelta(days=value)
        if unit == "w":
            return now - timedelta(weeks=value)
        return _subtract_months(now, value)
    except (OverflowError, ValueError) as exc:
        raise InvalidPeriodError(f"Period out of range: {period}") from exc


def _ratio(numerator: int | float, denominator: int | float, digits: int = 4) -> float:
    if not denominator:
        return 0.0
    return round(numerator / denominator, digits)


# A listener is the user when known, otherwise the session.
_LISTENER = func.coalesce(TrackPlay.user_id, TrackPlay.session_id)
_COMPLETED = cast(case((TrackPlay.completed_full.is_(True), 1.0), else_=0.0), Float)


class PlayAnalyticsService:
    """Aggregations over ``track_plays`` used by artist dashboards."""

    def __init__(self, db: Session, *, clock: Callable[[], datetime] = utcnow) -> None:
        self.db = db
        self.clock = clock

    def track_stats(self, track_id: str, period: str = "7d") -> TrackStats:
        """Return play, listener, completion and skip figures for one track."""
        since = period_to_since(period, self.clock())
        in_period = (TrackPlay.track_id == track_id, TrackPlay.played_at >= since)
        counted = TrackPlay.counted_as_play.is_(True)

        total_events = self.db.scalar(
            select(func.count()).select_from(TrackPlay).where(*in_period)
        ) or 0
        total_plays = self.db.scalar(
            select(func.count()).select_from(TrackPlay).where(*in_period, counted)
        ) or 0
        completed = self.db.scalar(
            select(func.count())
            .select_from(TrackPlay)
            .where(*in_period, counted, TrackPlay.completed_full.is_(True))
        ) or 0
        avg_duration = self.db.scalar(
            select(func.coalesce(func.avg(TrackPlay.listen_duration), 0)).where(*in_period)
        ) or 0
        unique_listeners = self.db.scalar(
            select(func.count(func.distinct(_LISTENER))).where(*in_period, counted)
        ) or 0

        return TrackStats(
            track_id=track_id,
            period=period,
            total_plays=int(total_plays),
            total_events=int(total_events),
            unique_listeners=int(unique_listeners),
            completion_rate=_ratio(completed, total_plays),
            skip_rate=_ratio(total_events - total_plays, total_events),
            avg_listen_duration=round(float(avg_duration), 2),
        )

    def track_sources(self, track_id: str) -> SourceBreakdown:
        """Return counted plays per source; every source is present."""
        rows = self.db.execute(
            select(TrackPlay.source, func.count())
            .where(TrackPlay.track_id == track_id, TrackPlay.counted_as_play.is_(True))
            .group_by(TrackPlay.source)
        ).all()
        sources = {source.value: 0 for source in PlaySource}
        for source, count in rows:
            sources[PlaySource(source).value] = int(count)
        return SourceBreakdown(track_id=track_id, sources=sources)

    def _ranked_tracks(
        self,
        *conditions: ColumnElement[bool],
        artist_id: str | None = None,
        limit: int | None = None,
    ) -> list[TopTrack]:
        plays = func.count(TrackPlay.id).label("plays")
        stmt = (
            select(TrackPlay.track_id, plays, func.avg(_COMPLETED).label("completion"))
            .select_from(TrackPlay)
            .where(TrackPlay.counted_as_play.is_(True), *conditions)
            .group_by(TrackPlay.track_id)
            .order_by(desc(plays), TrackPlay.track_id)
        )
        if artist_id is not None:
            stmt = stmt.join(Track, Track.id == TrackPlay.track_id).where(
                Track.artist_id == artist_id
            )
        if limit is not None:
            stmt = stmt.limit(limit)
        return [
            TopTrack(
                track_id=track_id,
                plays=int(count),
                completion_rate=round(float(completion or 0.0), 4),
            )
            for track_id, count, completion in self.db.execute(stmt).all()
        ]

    def artist_overview(self, artist_id: str) -> ArtistOverview:
        """Return totals across every played track by an artist."""
        ranked = self._ranked_tracks(artist_id=artist_id)
        total_plays = sum(track.plays for track in ranked)
        avg_completion = (
            sum(track.completion_rate for track in ranked) / len(ranked) if ranked else 0.0
        )
        unique_listeners = self.db.scalar(
            select(func.count(func.distinct(_LISTENER)))
            .select_from(TrackPlay)
            .join(Track, Track.id == TrackPlay.track_id)
            .where(Track.artist_id == artist_id, TrackPlay.counted_as_play.is_(True))
        ) or 0
        return ArtistOverview(
            artist_id=artist_id,
            total_plays=total_plays,
            unique_listeners=int(unique_listeners),
            total_tracks=len(ranked),
            avg_completion_rate=round(avg_completion, 4),
            top_tracks=ranked[:ARTIST_TOP_TRACKS],
        )

    def top_tracks(self, period: str = "7d", limit: int = 20) -> TopTracks:
        """Return the most played tracks in a period, capped by configuration."""
        since = period_to_since(period, self.clock())
        limit = max(1, min(limit, settings.top_tracks_max_limit))
        return TopTracks(
            period=period,
            tracks=self._ranked_tracks(TrackPlay.played_at >= since, limit=limit),
        )
