"""Duplicate play detection over the event log."""

from __future__ import annotations

import enum
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from tiptune_plays.core.settings import settings
from tiptune_plays.models.play import TrackPlay
from tiptune_plays.repositories.play_repo import PlayEventRepository


class DedupKey(enum.Enum):
    """Identity used to tie a new play to an earlier counted one."""

    USER = "user"
    SESSION = "session"
    IP = "ip"

    @property
    def subject(self) -> str:
        """Phrase naming the key in rejection reasons."""
        return _SUBJECTS[self]


_SUBJECTS = {
    DedupKey.USER: "for this user",
    DedupKey.SESSION: "for this session",
    DedupKey.IP: "from this network address",
}

_KEY_COLUMNS = {
    DedupKey.USER: TrackPlay.user_id,
    DedupKey.SESSION: TrackPlay.session_id,
    DedupKey.IP: TrackPlay.ip_hash,
}


class DuplicateDetector:
    """Looks for earlier counted plays of the same track.

    Each key has its own window. Keys are checked user, then session, then
    IP, and the first match wins so rejection reasons are reproducible.
    """

    def __init__(
        self,
        db: Session,
        *,
        windows: dict[DedupKey, timedelta] | None = None,
    ) -> None:
        self._events = PlayEventRepository(db)
        self.windows = {**windows_from_settings(), **(windows or {})}

    def find_recent_counted_play(
        self,
        track_id: str,
        user_id: str | None,
        session_id: str,
        ip_hash: str,
        as_of: datetime,
    ) -> DedupKey | None:
        """Return the first key with a counted play inside its window.

        Args:
            track_id: Track the candidate play refers to.
            user_id: Authenticated listener; the user check is skipped when None.
            session_id: Caller session identifier.
            ip_hash: Hashed caller address.
            as_of: Reference instant; only plays strictly before it are considered.
        """
        candidates: list[tuple[DedupKey, str]] = []
        if user_id:
            candidates.append((DedupKey.USER, user_id))
        candidates.append((DedupKey.SESSION, session_id))
        candidates.append((DedupKey.IP, ip_hash))

        for key, value in candidates:
            window = self.windows[key]
            if window <= timedelta(0):
                continue
            if self._events.exists_counted(
                track_id=track_id,
                key_column=_KEY_COLUMNS[key],
                key_value=value,
                since=as_of - window,
                until=as_of,
            ):
                return key
        return None

    def has_recent_counted_play(
        self,
        track_id: str,
        user_id: str | None,
        session_id: str,
        ip_hash: str,
        as_of: datetime,
    ) -> bool:
        """Return True if any dedup key matches a recent counted play."""
        return (
            self.find_recent_counted_play(track_id, user_id, session_id, ip_hash, as_of)
            is not None
        )


def windows_from_settings() -> dict[DedupKey, timedelta]:
    """Build the per-key windows from the active configuration."""
    return {
        DedupKey.USER: timedelta(seconds=settings.dedup_user_window_seconds),
        DedupKey.SESSION: timedelta(seconds=settings.dedup_session_window_seconds),
        DedupKey.IP: timedelta(seconds=settings.dedup_ip_window_seconds),
    }


def describe_window(window: timedelta) -> str:
    """Render a window as ``"1 hour"``, ``"30 minutes"`` or ``"45 seconds"``."""
    seconds = int(window.total_seconds())
    for unit, size in (("hour", 3600), ("minute", 60)):
        if seconds >= size and seconds % size == 0:
            count = seconds // size
            return f"{count} {unit}" if count == 1 else f"{count} {unit}s"
    return f"{seconds} second" if seconds == 1 else f"{seconds} seconds"
