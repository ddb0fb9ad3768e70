"""Playlist endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tideway.api.errors import http_error
from tideway.database import get_db
from tideway.dependencies import get_current_user_id
from tideway.exceptions import TidewayError
from tideway.schemas.common import MessageResponse
from tideway.schemas.playlist import (
    PlaylistCreate,
    PlaylistListResponse,
    PlaylistResponse,
    PlaylistTrackAdd,
    PlaylistTrackAdded,
)
from tideway.schemas.track import TrackListResponse
from tideway.services.playlists import PlaylistService

router = APIRouter(prefix="/playlists")


@router.get("", response_model=PlaylistListResponse)
def list_playlists(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Get the caller's playlists."""
    service = PlaylistService(db)
    return PlaylistListResponse(
        playlists=[PlaylistResponse(**p) for p in service.list_playlists(user_id)]
    )


@router.post("", response_model=PlaylistResponse)
def create_playlist(
    request: PlaylistCreate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Create an empty playlist."""
    service = PlaylistService(db)
    playlist = service.create_playlist(user_id, request.title, request.thumbnail_path)
    return PlaylistResponse(
        id=playlist.id,
        title=playlist.title,
        thumbnail_path=playlist.thumbnail_path,
    )


@router.get("/{playlist_id}/tracks", response_model=TrackListResponse)
def get_playlist_tracks(
    playlist_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Tracks of a playlist in position order."""
    service = PlaylistService(db)
    try:
        tracks = service.get_playlist_tracks(playlist_id, user_id)
    except TidewayError as e:
        raise http_error(e)
    return TrackListResponse.from_library_tracks(tracks)


@router.post("/{playlist_id}/tracks", response_model=PlaylistTrackAdded)
def add_playlist_track(
    playlist_id: str,
    request: PlaylistTrackAdd,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Append a track to the end of a playlist."""
    service = PlaylistService(db)
    try:
        position = service.append_track(playlist_id, request.track_id, owner_id=user_id)
    except TidewayError as e:
        raise http_error(e)
    return PlaylistTrackAdded(
        playlist_id=playlist_id,
        track_id=request.track_id,
        track_order=position,
    )


@router.delete("/{playlist_id}/tracks/{track_id}", response_model=MessageResponse)
def remove_playlist_track(
    playlist_id: str,
    track_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Remove a track from a playlist."""
    service = PlaylistService(db)
    try:
        removed = service.remove_track(playlist_id, track_id, owner_id=user_id)
    except TidewayError as e:
        raise http_error(e)
    if removed:
        return MessageResponse(message="Track removed from playlist")
    return MessageResponse(message="Track not in playlist")
