"""create tracks and track_plays

Revision ID: 9c1e4d2a7b30
Revises:
Create Date: 2026-02-03 10:12:44.518203

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "9c1e4d2a7b30"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

PLAY_SOURCES = ("search", "playlist", "artist_profile", "tip_feed", "direct")


def upgrade() -> None:
    """Create the play event log and the per-track counter."""
    op.create_table(
        "tracks",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("artist_id", sa.String(length=64), nullable=True),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("plays", sa.Integer(), server_default="0", nullable=False),
        sa.CheckConstraint("plays >= 0", name="ck_tracks_plays_non_negative"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tracks_artist_id", "tracks", ["artist_id"])

    op.create_table(
        "track_plays",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("track_id", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=True),
        sa.Column("session_id", sa.String(length=128), nullable=False),
        sa.Column("listen_duration", sa.Integer(), nullable=False),
        sa.Column("completed_full", sa.Boolean(), nullable=False),
        sa.Column(
            "source",
            sa.Enum(*PLAY_SOURCES, name="play_source_enum"),
            nullable=False,
        ),
        sa.Column("ip_hash", sa.String(length=64), nullable=False),
        sa.Column("counted_as_play", sa.Boolean(), nullable=False),
        sa.Column("played_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["track_id"], ["tracks.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_track_plays_track_user_played",
        "track_plays",
        ["track_id", "user_id", "played_at"],
    )
    op.create_index(
        "ix_track_plays_track_session_played",
        "track_plays",
        ["track_id", "session_id", "played_at"],
    )
    op.create_index(
        "ix_track_plays_ip_track_played",
        "track_plays",
        ["ip_hash", "track_id", "played_at"],
    )
    op.create_index(
        "ix_track_plays_counted",
        "track_plays",
        ["track_id", "counted_as_play", "played_at"],
    )


def downgrade() -> None:
    """Drop the play tables."""
    op.drop_index("ix_track_plays_counted", table_name="track_plays")
    op.drop_index("ix_track_plays_ip_track_played", table_name="track_plays")
    op.drop_index("ix_track_plays_track_session_played", table_name="track_plays")
    op.drop_index("ix_track_plays_track_user_played", table_name="track_plays")
    op.drop_table("track_plays")
    sa.Enum(name="play_source_enum").drop(op.get_bind(), checkfirst=True)
    op.drop_index("ix_tracks_artist_id", table_name="tracks")
    op.drop_table("tracks")
