"""FastAPI dependencies."""
from pathlib import Path

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from tideway.config import settings
from tideway.database import get_db
from tideway.integrations.audio_decoder import AudioDecoder
from tideway.services.auth import AuthService
from tideway.services.chunk_store import LocalChunkStore
from tideway.services.finalizer import Finalizer
from tideway.services.upload_tracker import UploadTracker

security = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> str:
    """Get the authenticated user id from the bearer token."""
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = AuthService().decode_token(credentials.credentials)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user_id


def get_chunk_store() -> LocalChunkStore:
    """Chunk part storage."""
    return LocalChunkStore(Path(settings.storage_chunks))


def get_track_store() -> LocalChunkStore:
    """Finalized asset storage."""
    return LocalChunkStore(Path(settings.storage_tracks))


def get_thumbnail_store() -> LocalChunkStore:
    """Thumbnail storage."""
    return LocalChunkStore(Path(settings.storage_thumbnails))


def get_upload_tracker(
    db: Session = Depends(get_db),
    store: LocalChunkStore = Depends(get_chunk_store),
) -> UploadTracker:
    return UploadTracker(db, store=store)


def get_audio_decoder() -> AudioDecoder:
    return AudioDecoder()


def get_finalizer(
    db: Session = Depends(get_db),
    store: LocalChunkStore = Depends(get_chunk_store),
    track_store: LocalChunkStore = Depends(get_track_store),
    decoder: AudioDecoder = Depends(get_audio_decoder),
) -> Finalizer:
    return Finalizer(db, store=store, track_store=track_store, decoder=decoder)
