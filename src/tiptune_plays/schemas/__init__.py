"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .play import (
    ArtistOverviewResponse,
    ReconcileResponse,
    RecordPlayRequest,
    RecordPlayResponse,
    SourceBreakdownResponse,
    TopTrackEntry,
    TopTracksResponse,
    TrackStatsResponse,
)

__all__ = [
    "ArtistOverviewResponse",
    "ReconcileResponse",
    "RecordPlayRequest", "RecordPlayResponse",
    "SourceBreakdownResponse",
    "TopTrackEntry", "TopTracksResponse",
    "TrackStatsResponse",
]
