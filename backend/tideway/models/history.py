"""Playback history model."""
import uuid

from sqlalchemy import Column, String, Integer, BigInteger, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from tideway.database import Base
from tideway.utils.duration import DurationTriple


class PlaybackHistory(Base):
    """Latest play progress of a track by a user."""

    __tablename__ = "playback_history"
    __table_args__ = (
        UniqueConstraint('user_id', 'track_id', name='uq_playback_history_user_track'),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    track_id = Column(String(36), ForeignKey("tracks.id", ondelete="CASCADE"), nullable=False)

    duration_played_months = Column(Integer, nullable=False, default=0)
    duration_played_days = Column(Integer, nullable=False, default=0)
    duration_played_microseconds = Column(BigInteger, nullable=False, default=0)

    played_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    @property
    def duration_played(self) -> DurationTriple:
        return DurationTriple(
            self.duration_played_months or 0,
            self.duration_played_days or 0,
            self.duration_played_microseconds or 0,
        )

    @duration_played.setter
    def duration_played(self, value: DurationTriple):
        self.duration_played_months = value.months
        self.duration_played_days = value.days
        self.duration_played_microseconds = value.microseconds

    def __repr__(self):
        return f"<PlaybackHistory {self.user_id} {self.track_id}>"
