"""Pydantic schemas for API request/response validation."""
from tideway.schemas.common import MessageResponse, DurationSchema
from tideway.schemas.track import TrackResponse, TrackListResponse
from tideway.schemas.upload import (
    UploadCreate,
    UploadSessionResponse,
    ChunkAckResponse,
    ResumeDescriptorResponse,
    IncompleteUploadsResponse,
    TrackMetadataResponse,
)
from tideway.schemas.playlist import (
    PlaylistCreate,
    PlaylistResponse,
    PlaylistListResponse,
    PlaylistTrackAdd,
    PlaylistTrackAdded,
)
from tideway.schemas.history import PlaybackCreate, PlaybackResponse, FavoriteCreate

__all__ = [
    "MessageResponse",
    "DurationSchema",
    "TrackResponse",
    "TrackListResponse",
    "UploadCreate",
    "UploadSessionResponse",
    "ChunkAckResponse",
    "ResumeDescriptorResponse",
    "IncompleteUploadsResponse",
    "TrackMetadataResponse",
    "PlaylistCreate",
    "PlaylistResponse",
    "PlaylistListResponse",
    "PlaylistTrackAdd",
    "PlaylistTrackAdded",
    "PlaybackCreate",
    "PlaybackResponse",
    "FavoriteCreate",
]
