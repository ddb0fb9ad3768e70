"""SQLAlchemy models for Tideway."""
from tideway.models.track import Track, TrackStatus
from tideway.models.upload_session import UploadSession, ChunkRecord, SessionState
from tideway.models.playlist import Playlist, PlaylistTrack
from tideway.models.history import PlaybackHistory
from tideway.models.favorites import user_favorites

__all__ = [
    "Track",
    "TrackStatus",
    "UploadSession",
    "ChunkRecord",
    "SessionState",
    "Playlist",
    "PlaylistTrack",
    "PlaybackHistory",
    "user_favorites",
]
