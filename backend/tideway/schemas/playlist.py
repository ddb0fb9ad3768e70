"""Playlist schemas."""
from typing import List, Optional
from pydantic import BaseModel, Field


class PlaylistCreate(BaseModel):
    """Create playlist request."""
    title: str = Field(..., min_length=1, max_length=255)
    thumbnail_path: Optional[str] = None


class PlaylistResponse(BaseModel):
    """Playlist summary."""
    id: str
    title: str
    thumbnail_path: Optional[str] = None
    max_track_order: int = 0


class PlaylistListResponse(BaseModel):
    playlists: List[PlaylistResponse]


class PlaylistTrackAdd(BaseModel):
    """Append track request."""
    track_id: str


class PlaylistTrackAdded(BaseModel):
    playlist_id: str
    track_id: str
    track_order: int
