"""Data access helpers for the append-only play event log."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import InstrumentedAttribute, Session

from tiptune_plays.models.play import PlaySource, TrackPlay

__all__ = ["PlayEventRepository"]


class PlayEventRepository:
    """Thin wrapper around database access for play events.

    Rows are only ever inserted; nothing here updates or deletes an event.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def append(
        self,
        *,
        track_id: str,
        user_id: str | None,
        session_id: str,
        listen_duration: int,
        completed_full: bool,
        source: PlaySource,
        ip_hash: str,
        counted_as_play: bool,
        played_at: datetime,
    ) -> TrackPlay:
        """Stage a new event and flush it so the identifier is assigned.

        The caller owns the transaction and decides when to commit.
        """
        play = TrackPlay(
            track_id=track_id,
            user_id=user_id,
            session_id=session_id,
            listen_duration=listen_duration,
            completed_full=completed_full,
            source=source,
            ip_hash=ip_hash,
            counted_as_play=counted_as_play,
            played_at=played_at,
        )
        self.session.add(play)
        self.session.flush()
        return play

    def exists_counted(
        self,
        *,
        track_id: str,
        key_column: InstrumentedAttribute[str] | InstrumentedAttribute[str | None],
        key_value: str,
        since: datetime,
        until: datetime,
    ) -> bool:
        """Return True if a counted play matches the key in ``[since, until)``."""
        stmt = (
            select(TrackPlay.id)
            .where(
                TrackPlay.track_id == track_id,
                key_column == key_value,
                TrackPlay.counted_as_play.is_(True),
                TrackPlay.played_at >= since,
                TrackPlay.played_at < until,
            )
            .limit(1)
        )
        return self.session.scalar(stmt) is not None

