# src/tiptune_plays/models/track.py
"""Track rows as seen by the play counter."""

from sqlalchemy import CheckConstraint, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tiptune_plays.db.session import Base


class Track(Base):
    """Track catalogue entry carrying the running play aggregate.

    Tracks are created and edited elsewhere; this service reads them and
    owns only the ``plays`` counter.
    """

    __tablename__ = "tracks"
    __table_args__ = (
        CheckConstraint("plays >= 0", name="ck_tracks_plays_non_negative"),
        Index("ix_tracks_artist_id", "artist_id"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    artist_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    title: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Only ever changed through an atomic ``plays = plays + 1`` or reconciliation.
    plays: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
