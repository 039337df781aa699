# src/tiptune_plays/schemas/play.py
"""Play-related Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field

from tiptune_plays.models.play import PlaySource


class RecordPlayRequest(BaseModel):
    """Schema for reporting a listen event."""

    track_id: str = Field(..., min_length=1, max_length=64, description="Track identifier")
    user_id: str | None = Field(
        None,
        min_length=1,
        max_length=64,
        description="Authenticated listener, omitted for anonymous plays",
    )
    session_id: str = Field(
        ...,
        min_length=1,
        max_length=128,
        description="Opaque browsing session identifier",
    )
    listen_duration_seconds: int = Field(
        ...,
        ge=0,
        description="Seconds the track was actually listened to; capped by MAX_LISTEN_SECONDS",
    )
    completed_full: bool = Field(..., description="Whether playback reached the end")
    source: PlaySource = Field(PlaySource.DIRECT, description="Where the play originated")


class RecordPlayResponse(BaseModel):
    """Verdict returned for every recorded listen event."""

    counted: bool
    reason: str | None
    event_id: str
    aggregate_updated: bool = Field(
        True,
        description="False when the play counted but the track total could not be bumped",
    )

    model_config = ConfigDict(from_attributes=True)


class TrackStatsResponse(BaseModel):
    """Streaming statistics for one track over a period."""

    track_id: str
    period: str
    total_plays: int
    total_events: int
    unique_listeners: int
    completion_rate: float
    skip_rate: float
    avg_listen_duration: float

    model_config = ConfigDict(from_attributes=True)


class SourceBreakdownResponse(BaseModel):
    """Counted plays per origin for one track."""

    track_id: str
    sources: dict[str, int]

    model_config = ConfigDict(from_attributes=True)


class TopTrackEntry(BaseModel):
    """A track ranked by counted plays."""

    track_id: str
    plays: int
    completion_rate: float

    model_config = ConfigDict(from_attributes=True)


class ArtistOverviewResponse(BaseModel):
    """Aggregate streaming figures across an artist's catalogue."""

    artist_id: str
    total_plays: int
    unique_listeners: int
    total_tracks: int
    avg_completion_rate: float
    top_tracks: list[TopTrackEntry]

    model_config = ConfigDict(from_attributes=True)


class TopTracksResponse(BaseModel):
    """Most played tracks over a period."""

    period: str
    tracks: list[TopTrackEntry]

    model_config = ConfigDict(from_attributes=True)


class ReconcileResponse(BaseModel):
    """Outcome of rebuilding a track total from the event log."""

    track_id: str
    previous: int
    recomputed: int
    changed: bool

    model_config = ConfigDict(from_attributes=True)
