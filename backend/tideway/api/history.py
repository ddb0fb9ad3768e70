"""Playback history endpoints."""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from tideway.api.errors import http_error
from tideway.database import get_db
from tideway.dependencies import get_current_user_id
from tideway.exceptions import TidewayError
from tideway.schemas.history import PlaybackCreate, PlaybackResponse
from tideway.schemas.track import TrackListResponse
from tideway.services.history import HistoryService

router = APIRouter(prefix="/me/history")


@router.get("", response_model=TrackListResponse)
def list_history(
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Recently played tracks, most recent first."""
    service = HistoryService(db)
    return TrackListResponse.from_library_tracks(service.list_history(user_id, limit))


@router.post("", response_model=PlaybackResponse)
def record_play(
    request: PlaybackCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Record play progress. Replaces the previous progress for the track."""
    service = HistoryService(db)
    try:
        entry = service.record_play(user_id, request.track_id, request.duration_played)
    except TidewayError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return PlaybackResponse(
        track_id=entry.track_id,
        duration_played=entry.duration_played.total_seconds(),
        played_at=entry.played_at,
    )
