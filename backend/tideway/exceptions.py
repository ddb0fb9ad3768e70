"""Upload and library errors."""
from typing import Optional


class TidewayError(Exception):
    """Base class for all upload and library errors."""


class ProtocolError(TidewayError):
    """Caller broke the upload protocol (e.g. total_chunks redeclared)."""


class OutOfRange(TidewayError):
    """Chunk index outside the declared bounds."""
    def __init__(self, chunk_index: int, total_chunks: int):
        self.chunk_index = chunk_index
        self.total_chunks = total_chunks
        super().__init__(f"Chunk index {chunk_index} outside [0, {total_chunks})")


class NotOwner(TidewayError):
    """Caller does not own the track or playlist."""
    def __init__(self, resource: str, resource_id: str):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"Not the owner of {resource} {resource_id}")


class TrackNotFound(TidewayError):
    """No track with the given id."""
    def __init__(self, track_id: str):
        self.track_id = track_id
        super().__init__(f"Track not found: {track_id}")


class PlaylistNotFound(TidewayError):
    """No playlist with the given id."""
    def __init__(self, playlist_id: str):
        self.playlist_id = playlist_id
        super().__init__(f"Playlist not found: {playlist_id}")


class StorageError(TidewayError):
    """Chunk or asset persistence failed. Safe to retry."""
    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(f"Storage error for {key}: {message}")


class DecodeError(TidewayError):
    """Duration/metadata extraction failed for an assembled asset."""


class FinalizationError(TidewayError):
    """Finalization failed and the track was marked failed."""
    def __init__(self, track_id: str, reason: str):
        self.track_id = track_id
        self.reason = reason
        super().__init__(f"Finalization failed for {track_id}: {reason}")


class TrackNotEligible(TidewayError):
    """Track is not complete, so it cannot be played, favorited or listed."""
    def __init__(self, track_id: str, status: Optional[str] = None):
        self.track_id = track_id
        self.status = status
        detail = f" (status: {status})" if status else ""
        super().__init__(f"Track {track_id} is not available{detail}")
