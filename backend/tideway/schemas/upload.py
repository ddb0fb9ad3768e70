"""Upload request/response schemas."""
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

from tideway.models.track import TRACK_ID_LENGTH


class UploadCreate(BaseModel):
    """Start (or continue) an upload."""
    track_id: Optional[str] = None  # Client-chosen id when resuming; generated otherwise
    total_chunks: int = Field(..., ge=1)
    file_name: Optional[str] = None
    file_size: Optional[int] = Field(None, ge=0)
    title: Optional[str] = None
    artist: Optional[str] = None

    @field_validator("track_id")
    @classmethod
    def validate_track_id(cls, v):
        if v is not None and not 1 <= len(v) <= TRACK_ID_LENGTH:
            raise ValueError(f"track_id must be 1-{TRACK_ID_LENGTH} characters")
        return v


class UploadSessionResponse(BaseModel):
    """Upload progress."""
    track_id: str
    total_chunks: int
    received_chunks: int
    watermark: int
    next_chunk: int
    state: str


class ChunkAckResponse(BaseModel):
    """Result of one chunk upload."""
    track_id: str
    chunk_index: int
    received_chunks: int
    total_chunks: int
    watermark: int
    duplicate: bool
    complete: bool
    state: str  # Session state after this chunk (uploading/finalizing/complete/failed)


class ResumeDescriptorResponse(BaseModel):
    """Interrupted upload a client can resume."""
    track_id: str
    title: Optional[str] = None
    artist: Optional[str] = None
    thumbnail_name: Optional[str] = None
    file_name: Optional[str] = None
    total_chunks: int
    received_chunks: int
    watermark: int
    next_chunk: int


class IncompleteUploadsResponse(BaseModel):
    """All interrupted uploads of the caller."""
    incomplete_track_info: List[ResumeDescriptorResponse]


class TrackMetadataResponse(BaseModel):
    """Track metadata after an update."""
    track_id: str
    title: Optional[str] = None
    artist: Optional[str] = None
    thumbnail_name: Optional[str] = None
    upload_status: str
