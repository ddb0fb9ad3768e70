"""Chunked upload endpoints."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Path, UploadFile
from sqlalchemy.orm import Session

from tideway.api.errors import http_error
from tideway.config import settings
from tideway.database import get_db
from tideway.dependencies import (
    get_current_user_id,
    get_finalizer,
    get_thumbnail_store,
    get_upload_tracker,
)
from tideway.exceptions import FinalizationError, TidewayError
from tideway.models.track import TRACK_ID_LENGTH, new_id
from tideway.schemas.upload import (
    ChunkAckResponse,
    IncompleteUploadsResponse,
    ResumeDescriptorResponse,
    TrackMetadataResponse,
    UploadCreate,
    UploadSessionResponse,
)
from tideway.services.chunk_store import LocalChunkStore
from tideway.services.finalizer import Finalizer
from tideway.services.resume import ResumeService
from tideway.services.upload_tracker import SessionHandle, UploadTracker
from tideway.tasks.uploads import finalize_upload_task

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/uploads")


def _session_response(handle: SessionHandle) -> UploadSessionResponse:
    return UploadSessionResponse(
        track_id=handle.track_id,
        total_chunks=handle.total_chunks,
        received_chunks=handle.received_chunks,
        watermark=handle.watermark,
        next_chunk=handle.next_chunk,
        state=handle.state,
    )


@router.post("", response_model=UploadSessionResponse)
def start_upload(
    request: UploadCreate,
    user_id: str = Depends(get_current_user_id),
    tracker: UploadTracker = Depends(get_upload_tracker),
):
    """Start an upload, or continue it when track_id is already known."""
    track_id = request.track_id or new_id()
    try:
        handle = tracker.begin_or_continue(
            track_id,
            user_id,
            request.total_chunks,
            declared_size=request.file_size,
            original_name=request.file_name,
        )
        if request.title is not None or request.artist is not None:
            tracker.update_metadata(track_id, user_id, title=request.title, artist=request.artist)
    except TidewayError as e:
        raise http_error(e)
    return _session_response(handle)


@router.post("/{track_id}/chunks", response_model=ChunkAckResponse)
def upload_chunk(
    track_id: str = Path(..., min_length=1, max_length=TRACK_ID_LENGTH),
    chunk_index: int = Form(...),
    total_chunks: int = Form(...),
    chunk: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
    tracker: UploadTracker = Depends(get_upload_tracker),
    finalizer: Finalizer = Depends(get_finalizer),
):
    """Upload one chunk.

    The session is opened on first use, so a client may skip ``POST /uploads``.
    The request that delivers the last missing chunk triggers finalization.
    """
    data = chunk.file.read()

    try:
        tracker.begin_or_continue(track_id, user_id, total_chunks)
        ack = tracker.receive_chunk(track_id, chunk_index, data)
    except TidewayError as e:
        raise http_error(e)

    if ack.should_finalize:
        if settings.finalize_in_background:
            finalize_upload_task.delay(track_id)
            logger.info(f"Queued finalization of {track_id}")
        else:
            try:
                finalizer.finalize(track_id)
            except FinalizationError as e:
                raise http_error(e)

    state = tracker.get_session(track_id).state
    return ChunkAckResponse(
        track_id=track_id,
        chunk_index=ack.chunk_index,
        received_chunks=ack.received_chunks,
        total_chunks=ack.total_chunks,
        watermark=ack.watermark,
        duplicate=ack.duplicate,
        complete=ack.complete,
        state=state,
    )


@router.get("/incomplete", response_model=IncompleteUploadsResponse)
def list_incomplete_uploads(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Uploads the caller can resume, with the next chunk to send."""
    service = ResumeService(db)
    return IncompleteUploadsResponse(
        incomplete_track_info=[
            ResumeDescriptorResponse(
                track_id=d.track_id,
                title=d.title,
                artist=d.artist,
                thumbnail_name=d.thumbnail_name,
                file_name=d.original_name,
                total_chunks=d.total_chunks,
                received_chunks=d.received_chunks,
                watermark=d.watermark,
                next_chunk=d.next_chunk,
            )
            for d in service.list_incomplete(user_id)
        ]
    )


@router.get("/{track_id}", response_model=UploadSessionResponse)
def get_upload(
    track_id: str,
    user_id: str = Depends(get_current_user_id),
    tracker: UploadTracker = Depends(get_upload_tracker),
):
    """Progress of one upload."""
    try:
        handle = tracker.get_session(track_id, owner_id=user_id)
    except TidewayError as e:
        raise http_error(e)
    return _session_response(handle)


@router.put("/{track_id}/metadata", response_model=TrackMetadataResponse)
def update_track_metadata(
    track_id: str,
    title: Optional[str] = Form(None),
    artist: Optional[str] = Form(None),
    thumbnail: Optional[UploadFile] = File(None),
    user_id: str = Depends(get_current_user_id),
    tracker: UploadTracker = Depends(get_upload_tracker),
    thumbnail_store: LocalChunkStore = Depends(get_thumbnail_store),
):
    """Set title, artist and thumbnail of an upload."""
    thumbnail_data = thumbnail.file.read() if thumbnail is not None else None
    try:
        track = tracker.update_metadata(
            track_id,
            user_id,
            title=title,
            artist=artist,
            thumbnail_filename=thumbnail.filename if thumbnail is not None else None,
            thumbnail_data=thumbnail_data,
            thumbnail_store=thumbnail_store,
        )
    except TidewayError as e:
        raise http_error(e)
    return TrackMetadataResponse(
        track_id=track.id,
        title=track.title,
        artist=track.artist,
        thumbnail_name=track.thumbnail_name,
        upload_status=track.upload_status,
    )
