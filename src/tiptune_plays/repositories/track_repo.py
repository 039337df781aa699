"""Data access helpers for track aggregates."""
from __future__ import annotations

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from tiptune_plays.models.play import TrackPlay
from tiptune_plays.models.track import Track

__all__ = ["TrackRepository"]


class TrackRepository:
    """Reads tracks and mutates their ``plays`` counter at the SQL level."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def exists(self, track_id: str) -> bool:
        """Return True if the track is known."""
        stmt = select(Track.id).where(Track.id == track_id)
        return self.session.scalar(stmt) is not None

    def increment_plays(self, track_id: str, delta: int = 1) -> int:
        """Atomically add ``delta`` to a track's counter.

        Issues ``UPDATE tracks SET plays = plays + :delta`` so concurrent
        writers never lose an update.

        Returns:
            Number of rows affected (0 when the track does not exist).
        """
        stmt = (
            update(Track)
            .where(Track.id == track_id)
            .values(plays=Track.plays + delta)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        return int(result.rowcount or 0)

    def read_plays(self, track_id: str) -> int | None:
        """Return the stored counter straight from the database."""
        stmt = select(Track.plays).where(Track.id == track_id)
        return self.session.scalar(stmt)

    def recompute_plays(self, track_id: str) -> int:
        """Overwrite the counter with the number of counted events.

        Returns:
            The recomputed total.
        """
        counted = (
            select(func.count(TrackPlay.id))
            .where(
                TrackPlay.track_id == Track.id,
                TrackPlay.counted_as_play.is_(True),
            )
            .scalar_subquery()
        )
        stmt = (
            update(Track)
            .where(Track.id == track_id)
            .values(plays=counted)
            .execution_options(synchronize_session=False)
        )
        self.session.execute(stmt)
        return int(self.read_plays(track_id) or 0)

    def list_ids(self) -> list[str]:
        """Return every track identifier in a stable order."""
        return list(self.session.scalars(select(Track.id).order_by(Track.id)))
