# src/tiptune_plays/models/__init__.py
"""SQLAlchemy models for the plays service."""

from .play import PlaySource, TrackPlay
from .track import Track

__all__ = [
    "PlaySource",
    "Track",
    "TrackPlay",
]
