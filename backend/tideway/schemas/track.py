"""Track schemas."""
from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional

from tideway.schemas.common import DurationSchema
from tideway.services.library import LibraryTrack


class TrackResponse(BaseModel):
    """Complete track as seen by one user."""
    id: str
    title: Optional[str] = None
    artist: Optional[str] = None
    duration: DurationSchema
    duration_seconds: float
    duration_minutes: float
    file_name: Optional[str] = None
    thumbnail_name: Optional[str] = None

    # User context
    is_favorite: bool = False
    duration_played: float = 0.0  # seconds
    played_at: Optional[datetime] = None
    is_created_by_user: bool = False

    # Playlist context
    track_order: Optional[int] = None

    @classmethod
    def from_library_track(cls, track: LibraryTrack) -> "TrackResponse":
        """Build response with durations converted for display."""
        return cls(
            id=track.id,
            title=track.title,
            artist=track.artist,
            duration=DurationSchema(**track.duration.as_dict()),
            duration_seconds=track.duration.total_seconds(),
            duration_minutes=track.duration.total_minutes(),
            file_name=track.file_name,
            thumbnail_name=track.thumbnail_name,
            is_favorite=track.is_favorite,
            duration_played=track.duration_played.total_seconds(),
            played_at=track.played_at,
            is_created_by_user=track.is_created_by_user,
            track_order=track.track_order,
        )


class TrackListResponse(BaseModel):
    """List of tracks."""
    tracks: List[TrackResponse]

    @classmethod
    def from_library_tracks(cls, tracks: List[LibraryTrack]) -> "TrackListResponse":
        return cls(tracks=[TrackResponse.from_library_track(t) for t in tracks])
