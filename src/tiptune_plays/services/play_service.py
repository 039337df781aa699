"""Ingestion entry point for listen events."""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import nullcontext
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tiptune_plays.core.settings import settings
from tiptune_plays.db.time import utcnow
from tiptune_plays.models.play import PlaySource
from tiptune_plays.repositories.play_repo import PlayEventRepository
from tiptune_plays.repositories.track_repo import TrackRepository
from tiptune_plays.services.classifier import ClassifiableListen, PlayClassifier, Verdict
from tiptune_plays.services.counter import AggregateCounter
from tiptune_plays.services.dedup import DuplicateDetector
from tiptune_plays.services.errors import (
    AggregateUpdateError,
    PlayStoreError,
    PlayValidationError,
    TrackNotFoundError,
)
from tiptune_plays.services.locks import PlayLockService
from tiptune_plays.utils.hash import hash_ip

logger = logging.getLogger(__name__)

SESSION_ID_MAX_LENGTH = 128
IDENTIFIER_MAX_LENGTH = 64


@dataclass
class PlayCandidate:
    """A listen event as reported by the caller, before validation."""

    track_id: str
    session_id: str
    listen_duration_seconds: int
    completed_full: bool = False
    source: PlaySource | str = PlaySource.DIRECT
    user_id: str | None = None


@dataclass(frozen=True)
class PlayVerdict:
    """Result handed back to the caller of :meth:`PlayCountService.record_play`."""

    counted: bool
    reason: str | None
    event_id: str
    aggregate_updated: bool = True


@dataclass(frozen=True)
class _NormalizedPlay:
    track_id: str
    user_id: str | None
    session_id: str
    listen_duration_seconds: int
    completed_full: bool
    source: PlaySource


class PlayCountService:
    """Validates, classifies, stores and counts listen events.

    The service keeps no state between calls; everything shared between
    concurrent calls lives in the database. Each call writes exactly one
    event row and at most one counter increment.
    """

    def __init__(
        self,
        db: Session,
        *,
        classifier: PlayClassifier | None = None,
        lock_service: PlayLockService | None = None,
        clock: Callable[[], datetime] = utcnow,
        ip_hash_salt: str | None = None,
        max_listen_seconds: int | None = None,
    ) -> None:
        self.db = db
        self.classifier = classifier or PlayClassifier(DuplicateDetector(db))
        self.counter = AggregateCounter(db)
        self.lock_service = lock_service
        self.clock = clock
        self._events = PlayEventRepository(db)
        self._tracks = TrackRepository(db)
        self._salt = ip_hash_salt if ip_hash_salt is not None else settings.ip_hash_salt
        self._max_listen_seconds = max_listen_seconds or settings.max_listen_seconds

    def hash_ip(self, ip: str) -> str:
        """Return the stored form of a caller address."""
        return hash_ip(ip, self._salt)

    def record_play(
        self,
        candidate: PlayCandidate,
        caller_ip: str,
        caller_user_id: str | None = None,
    ) -> PlayVerdict:
        """Record one listen event and report whether it counted.

        Args:
            candidate: Event fields supplied by the client.
            caller_ip: Raw network address of the caller; only its hash is kept.
            caller_user_id: Identity resolved by the calling layer. Takes
                precedence over ``candidate.user_id`` when given.

        Returns:
            The verdict, the new event id and whether the track total was bumped.

        Raises:
            PlayValidationError: The event is malformed; nothing was stored.
            TrackNotFoundError: The track is unknown; nothing was stored.
            PlayStoreError: The event could not be stored.
            PlayLockTimeoutError: Locking is enabled and the lock was busy.
        """
        play = self._normalize(candidate, caller_user_id)
        if not self._tracks.exists(play.track_id):
            raise TrackNotFoundError(play.track_id)

        ip_hash = self.hash_ip(caller_ip)
        lock = (
            self.lock_service.hold(play.track_id, play.session_id)
            if self.lock_service is not None
            else nullcontext()
        )
        with lock:
            as_of = self.clock()
            verdict = self.classifier.classify(
                ClassifiableListen(
                    track_id=play.track_id,
                    user_id=play.user_id,
                    session_id=play.session_id,
                    ip_hash=ip_hash,
                    listen_duration_seconds=play.listen_duration_seconds,
                ),
                as_of,
            )
            event_id = self._persist(play, ip_hash, verdict, as_of)

        if not verdict.counted:
            logger.debug(
                "Play %s for track %s not counted: %s", event_id, play.track_id, verdict.reason
            )
            return PlayVerdict(counted=False, reason=verdict.reason, event_id=event_id)

        try:
            self.counter.increment_track_plays(play.track_id)
        except AggregateUpdateError as exc:
            logger.error(
                "Play %s counted but track %s total not updated: %s",
                event_id,
                play.track_id,
                exc,
                exc_info=True,
            )
            return PlayVerdict(
                counted=True, reason=None, event_id=event_id, aggregate_updated=False
            )

        logger.info(
            "Counted play %s for track %s by %s",
            event_id,
            play.track_id,
            play.user_id or play.session_id,
        )
        return PlayVerdict(counted=True, reason=None, event_id=event_id)

    def _persist(
        self, play: _NormalizedPlay, ip_hash: str, verdict: Verdict, played_at: datetime
    ) -> str:
        try:
            event = self._events.append(
                track_id=play.track_id,
                user_id=play.user_id,
                session_id=play.session_id,
                listen_duration=play.listen_duration_seconds,
                completed_full=play.completed_full,
                source=play.source,
                ip_hash=ip_hash,
                counted_as_play=verdict.counted,
                played_at=played_at,
            )
            event_id = event.id
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(
                "Failed to store play for track %s: %s", play.track_id, exc, exc_info=True
            )
            raise PlayStoreError(f"Could not record play for track {play.track_id}") from exc
        return event_id

    def _normalize(
        self, candidate: PlayCandidate, caller_user_id: str | None
    ) -> _NormalizedPlay:
        track_id = (candidate.track_id or "").strip()
        if not track_id:
            raise PlayValidationError("track_id", "is required")
        if len(track_id) > IDENTIFIER_MAX_LENGTH:
            raise PlayValidationError("track_id", "is too long")

        session_id = (candidate.session_id or "").strip()
        if not session_id:
            raise PlayValidationError("session_id", "is required")
        if len(session_id) > SESSION_ID_MAX_LENGTH:
            raise PlayValidationError(
                "session_id", f"must be at most {SESSION_ID_MAX_LENGTH} characters"
            )

        user_id = caller_user_id if caller_user_id is not None else candidate.user_id
        user_id = (user_id or "").strip() or None
        if user_id is not None and len(user_id) > IDENTIFIER_MAX_LENGTH:
            raise PlayValidationError("user_id", "is too long")

        duration = candidate.listen_duration_seconds
        if isinstance(duration, bool) or not isinstance(duration, int):
            raise PlayValidationError("listen_duration_seconds", "must be an integer")
        if duration < 0:
            raise PlayValidationError("listen_duration_seconds", "must not be negative")
        if duration > self._max_listen_seconds:
            raise PlayValidationError(
                "listen_duration_seconds",
                f"must not exceed {self._max_listen_seconds} seconds",
            )

        try:
            source = PlaySource(candidate.source)
        except ValueError as exc:
            raise PlayValidationError("source", f"unknown source {candidate.source!r}") from exc

        return _NormalizedPlay(
            track_id=track_id,
            user_id=user_id,
            session_id=session_id,
            listen_duration_seconds=duration,
            completed_full=bool(candidate.completed_full),
            source=source,
        )
