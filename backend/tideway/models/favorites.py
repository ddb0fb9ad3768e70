"""Favorite tracks junction table."""
from sqlalchemy import Column, String, DateTime, ForeignKey, Table
from sqlalchemy.sql import func
from tideway.database import Base

# Track favorites - many-to-many between users and tracks
user_favorites = Table(
    "user_favorites",
    Base.metadata,
    Column("user_id", String(36), primary_key=True),
    Column("track_id", String(36), ForeignKey("tracks.id", ondelete="CASCADE"), primary_key=True),
    Column("added_at", DateTime(timezone=True), server_default=func.now()),
)
