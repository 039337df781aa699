"""Maintenance of per-track play totals."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tiptune_plays.repositories.track_repo import TrackRepository
from tiptune_plays.services.errors import AggregateUpdateError, TrackNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileResult:
    """Counter value before and after a reconciliation pass."""

    track_id: str
    previous: int
    recomputed: int

    @property
    def changed(self) -> bool:
        return self.previous != self.recomputed


class AggregateCounter:
    """Owns every write to ``tracks.plays``."""

    def __init__(self, db: Session) -> None:
        self.db = db
        self._tracks = TrackRepository(db)

    def increment_track_plays(self, track_id: str) -> None:
        """Add one to the track total and commit.

        The increment is a single SQL ``plays = plays + 1``; no value is read
        back into the application first.

        Raises:
            AggregateUpdateError: If the track is missing or the store fails.
        """
        try:
            affected = self._tracks.increment_plays(track_id)
            if affected != 1:
                self.db.rollback()
                raise AggregateUpdateError(
                    track_id, f"No track row updated for {track_id}"
                )
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise AggregateUpdateError(
                track_id, f"Failed to increment plays for {track_id}: {exc}"
            ) from exc

    def reconcile_track(self, track_id: str) -> ReconcileResult:
        """Rebuild one track total from its counted events.

        Safe to run at any time and any number of times.

        Raises:
            TrackNotFoundError: If the track does not exist.
        """
        previous = self._tracks.read_plays(track_id)
        if previous is None:
            raise TrackNotFoundError(track_id)
        try:
            recomputed = self._tracks.recompute_plays(track_id)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

        result = ReconcileResult(track_id=track_id, previous=previous, recomputed=recomputed)
        if result.changed:
            logger.warning(
                "Reconciled plays for track %s: %d -> %d",
                track_id,
                previous,
                recomputed,
            )
        return result

    def reconcile_all(self) -> list[ReconcileResult]:
        """Rebuild every track total; returns one result per track."""
        return [self.reconcile_track(track_id) for track_id in self._tracks.list_ids()]
