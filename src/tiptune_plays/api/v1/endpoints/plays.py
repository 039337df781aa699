# src/tiptune_plays/api/v1/endpoints/plays.py
"""Play recording and streaming statistics endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from tiptune_plays.core.settings import settings
from tiptune_plays.db.session import get_db
from tiptune_plays.schemas.play import (
    ArtistOverviewResponse,
    ReconcileResponse,
    RecordPlayRequest,
    RecordPlayResponse,
    SourceBreakdownResponse,
    TopTracksResponse,
    TrackStatsResponse,
)
from tiptune_plays.services.analytics import PlayAnalyticsService
from tiptune_plays.services.counter import AggregateCounter
from tiptune_plays.services.errors import (
    InvalidPeriodError,
    PlayLockTimeoutError,
    PlayStoreError,
    PlayValidationError,
    TrackNotFoundError,
)
from tiptune_plays.services.locks import get_lock_service
from tiptune_plays.services.play_service import PlayCandidate, PlayCountService

router = APIRouter(prefix="/plays", tags=["plays"])

UNKNOWN_CALLER_IP = "0.0.0.0"


def get_play_service_dep(db: Annotated[Session, Depends(get_db)]) -> PlayCountService:
    """Return a play service bound to the request session."""
    lock_service = get_lock_service() if settings.play_lock_enabled else None
    return PlayCountService(db, lock_service=lock_service)


def get_analytics_service_dep(db: Annotated[Session, Depends(get_db)]) -> PlayAnalyticsService:
    """Return an analytics service bound to the request session."""
    return PlayAnalyticsService(db)


SessionDep = Annotated[Session, Depends(get_db)]
PlayServiceDep = Annotated[PlayCountService, Depends(get_play_service_dep)]
AnalyticsServiceDep = Annotated[PlayAnalyticsService, Depends(get_analytics_service_dep)]


def client_ip(request: Request) -> str:
    """Return the originating address, preferring the first proxy hop."""
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CALLER_IP


@router.post("/record", response_model=RecordPlayResponse)
def record_play(
    payload: RecordPlayRequest,
    request: Request,
    play_service: PlayServiceDep,
) -> RecordPlayResponse:
    """Record a listen event and report whether it counted as a play."""
    candidate = PlayCandidate(
        track_id=payload.track_id,
        user_id=payload.user_id,
        session_id=payload.session_id,
        listen_duration_seconds=payload.listen_duration_seconds,
        completed_full=payload.completed_full,
        source=payload.source,
    )
    try:
        verdict = play_service.record_play(candidate, client_ip(request))
    except TrackNotFoundError as err:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err)) from err
    except PlayValidationError as err:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(err),
        ) from err
    except (PlayStoreError, PlayLockTimeoutError) as err:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Play could not be recorded, try again later",
        ) from err
    return RecordPlayResponse.model_validate(verdict)


@router.get("/track/{track_id}/stats", response_model=TrackStatsResponse)
def get_track_stats(
    track_id: str,
    analytics: AnalyticsServiceDep,
    period: str = Query("7d", examples=["7d"]),
) -> TrackStatsResponse:
    """Get streaming stats for a track."""
    try:
        stats = analytics.track_stats(track_id, period)
    except InvalidPeriodError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    return TrackStatsResponse.model_validate(stats)


@router.get("/track/{track_id}/sources", response_model=SourceBreakdownResponse)
def get_track_sources(track_id: str, analytics: AnalyticsServiceDep) -> SourceBreakdownResponse:
    """Get source attribution breakdown for a track."""
    return SourceBreakdownResponse.model_validate(analytics.track_sources(track_id))


@router.get("/artist/{artist_id}/overview", response_model=ArtistOverviewResponse)
def get_artist_overview(artist_id: str, analytics: AnalyticsServiceDep) -> ArtistOverviewResponse:
    """Get streaming overview for an artist."""
    return ArtistOverviewResponse.model_validate(analytics.artist_overview(artist_id))


@router.get("/top-tracks", response_model=TopTracksResponse)
def get_top_tracks(
    analytics: AnalyticsServiceDep,
    period: str = Query("7d", examples=["7d"]),
    limit: int = Query(20, ge=1),
) -> TopTracksResponse:
    """Get top tracks by play count for a period."""
    try:
        top = analytics.top_tracks(period, limit)
    except InvalidPeriodError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    return TopTracksResponse.model_validate(top)


@router.post("/track/{track_id}/reconcile", response_model=ReconcileResponse)
def reconcile_track(track_id: str, db: SessionDep) -> ReconcileResponse:
    """Rebuild a track's play total from its counted events."""
    try:
        result = AggregateCounter(db).reconcile_track(track_id)
    except TrackNotFoundError as err:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err)) from err
    return ReconcileResponse(
        track_id=result.track_id,
        previous=result.previous,
        recomputed=result.recomputed,
        changed=result.changed,
    )
