# src/tiptune_plays/models/play.py
"""Models capturing raw listen events."""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from tiptune_plays.db.session import Base
from tiptune_plays.db.time import utcnow


class PlaySource(str, enum.Enum):
    """Where in the product a play originated."""

    SEARCH = "search"
    PLAYLIST = "playlist"
    ARTIST_PROFILE = "artist_profile"
    TIP_FEED = "tip_feed"
    DIRECT = "direct"


def _new_play_id() -> str:
    return str(uuid.uuid4())


class TrackPlay(Base):
    """One reported listening session for a track.

    Every event is stored, counted or not, so the table doubles as the audit
    trail and as the source of truth for rebuilding ``tracks.plays``.
    """

    __tablename__ = "track_plays"
    __table_args__ = (
        Index("ix_track_plays_track_user_played", "track_id", "user_id", "played_at"),
        Index("ix_track_plays_track_session_played", "track_id", "session_id", "played_at"),
        Index("ix_track_plays_ip_track_played", "ip_hash", "track_id", "played_at"),
        Index("ix_track_plays_counted", "track_id", "counted_as_play", "played_at"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_play_id)
    track_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("tracks.id", ondelete="CASCADE"),
        nullable=False,
    )
    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    session_id: Mapped[str] = mapped_column(String(128), nullable=False)
    listen_duration: Mapped[int] = mapped_column(Integer, nullable=False)
    completed_full: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    source: Mapped[PlaySource] = mapped_column(
        Enum(
            PlaySource,
            name="play_source_enum",
            values_callable=lambda members: [member.value for member in members],
        ),
        nullable=False,
        default=PlaySource.DIRECT,
    )
    # Keyed BLAKE3 of the caller address, hex encoded.
    ip_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    counted_as_play: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    played_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
