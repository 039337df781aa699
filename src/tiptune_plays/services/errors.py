"""Exceptions raised by the play counting services."""

from __future__ import annotations


class PlayCountError(RuntimeError):
    """Base exception raised for play counting failures."""


class PlayValidationError(PlayCountError):
    """Raised when a listen event is malformed.

    Nothing is persisted for an event that fails validation; the caller is
    expected to fix the request.
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class TrackNotFoundError(PlayValidationError):
    """Raised when a listen event references an unknown track."""

    def __init__(self, track_id: str) -> None:
        super().__init__("track_id", f"Track {track_id} not found")
        self.track_id = track_id


class PlayStoreError(PlayCountError):
    """Raised when the raw event could not be persisted.

    No verdict can be trusted in this case and the call has no side effects.
    """


class AggregateUpdateError(PlayCountError):
    """Raised when a track total could not be incremented.

    The triggering event is already durable and stays counted; a
    reconciliation pass repairs the total.
    """

    def __init__(self, track_id: str, message: str) -> None:
        super().__init__(message)
        self.track_id = track_id


class PlayLockTimeoutError(PlayCountError):
    """Raised when the per-session advisory lock could not be acquired."""


class InvalidPeriodError(ValueError):
    """Raised when an analytics period string cannot be parsed."""
