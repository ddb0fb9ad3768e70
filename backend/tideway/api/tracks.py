"""Track discovery and streaming endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from tideway.database import get_db
from tideway.dependencies import get_current_user_id, get_thumbnail_store, get_track_store
from tideway.schemas.track import TrackListResponse
from tideway.services.chunk_store import LocalChunkStore
from tideway.services.library import LibraryService

router = APIRouter(prefix="/tracks")

CONTENT_TYPES = {
    ".flac": "audio/flac",
    ".mp3": "audio/mpeg",
    ".m4a": "audio/mp4",
    ".aac": "audio/aac",
    ".ogg": "audio/ogg",
    ".opus": "audio/ogg",
    ".wav": "audio/wav",
}


@router.get("/random", response_model=TrackListResponse)
def random_tracks(
    limit: Optional[int] = Query(None, ge=1, le=100),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Random selection of complete tracks."""
    service = LibraryService(db)
    return TrackListResponse.from_library_tracks(service.random_tracks(user_id, limit))


@router.get("/{track_id}/stream")
def stream_track(
    track_id: str,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
    track_store: LocalChunkStore = Depends(get_track_store),
):
    """Stream a complete track."""
    service = LibraryService(db)
    track = service.get_track(track_id)

    if not track:
        raise HTTPException(status_code=404, detail="Track not found")

    if not track.file_name or not track_store.exists(track.file_name):
        raise HTTPException(status_code=404, detail="Track file not found")

    file_path = track_store.local_path(track.file_name)
    content_type = CONTENT_TYPES.get(file_path.suffix.lower(), "application/octet-stream")

    return FileResponse(
        path=file_path,
        media_type=content_type,
        filename=track.original_name or file_path.name,
    )


@router.get("/{track_id}/thumbnail")
def get_thumbnail(
    track_id: str,
    db: Session = Depends(get_db),
    thumbnail_store: LocalChunkStore = Depends(get_thumbnail_store),
):
    """Track thumbnail (no auth required for img tags)."""
    track = LibraryService(db).get_track(track_id)
    if not track or not track.thumbnail_name or not thumbnail_store.exists(track.thumbnail_name):
        raise HTTPException(status_code=404, detail="Thumbnail not found")

    file_path = thumbnail_store.local_path(track.thumbnail_name)
    content_type = "image/png" if file_path.suffix.lower() == ".png" else "image/jpeg"
    return FileResponse(path=file_path, media_type=content_type)
