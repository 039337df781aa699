"""Data access helpers for tracks and play events."""

from .play_repo import PlayEventRepository
from .track_repo import TrackRepository

__all__ = ["PlayEventRepository", "TrackRepository"]
