"""Playlist models."""
import uuid

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from tideway.database import Base


class Playlist(Base):
    """User playlist."""

    __tablename__ = "playlists"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String(36), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    thumbnail_path = Column(String(1000))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<Playlist {self.title}>"


class PlaylistTrack(Base):
    """Track position within a playlist. Positions are never renumbered."""

    __tablename__ = "playlist_tracks"
    __table_args__ = (
        UniqueConstraint('playlist_id', 'track_order', name='uq_playlist_track_order'),
    )

    playlist_id = Column(String(36), ForeignKey("playlists.id", ondelete="CASCADE"), primary_key=True)
    track_id = Column(String(36), ForeignKey("tracks.id", ondelete="CASCADE"), primary_key=True)
    track_order = Column(Integer, nullable=False)
    added_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<PlaylistTrack {self.playlist_id} #{self.track_order}>"
