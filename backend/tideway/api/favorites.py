"""Favorite tracks endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tideway.api.errors import http_error
from tideway.database import get_db
from tideway.dependencies import get_current_user_id
from tideway.exceptions import TidewayError
from tideway.schemas.common import MessageResponse
from tideway.schemas.history import FavoriteCreate
from tideway.schemas.track import TrackListResponse
from tideway.services.favorites import FavoriteService

router = APIRouter(prefix="/me/favorites")


@router.get("", response_model=TrackListResponse)
def list_favorites(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Get the caller's favorite tracks."""
    service = FavoriteService(db)
    return TrackListResponse.from_library_tracks(service.list_favorites(user_id))


@router.post("", response_model=MessageResponse)
def add_favorite(
    request: FavoriteCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Favorite a track."""
    service = FavoriteService(db)
    try:
        if service.add_favorite(user_id, request.track_id):
            return MessageResponse(message="Track added to favorites")
        return MessageResponse(message="Track already in favorites")
    except TidewayError as e:
        raise http_error(e)


@router.delete("/{track_id}", response_model=MessageResponse)
def remove_favorite(
    track_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Unfavorite a track."""
    service = FavoriteService(db)
    if service.remove_favorite(user_id, track_id):
        return MessageResponse(message="Track removed from favorites")
    return MessageResponse(message="Track not in favorites")
