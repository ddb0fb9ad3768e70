"""Playback history and favorites schemas."""
from datetime import datetime
from pydantic import BaseModel, Field

from tideway.utils.duration import MAX_SECONDS


class PlaybackCreate(BaseModel):
    """Play progress report."""
    track_id: str
    duration_played: float = Field(..., ge=0, le=MAX_SECONDS, allow_inf_nan=False)  # seconds


class PlaybackResponse(BaseModel):
    track_id: str
    duration_played: float
    played_at: datetime


class FavoriteCreate(BaseModel):
    track_id: str
