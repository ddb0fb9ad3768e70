"""Track model."""
import enum
import uuid
from typing import Optional

from sqlalchemy import Column, String, BigInteger, Integer, DateTime, Text
from sqlalchemy.sql import func
from tideway.database import Base
from tideway.utils.duration import DurationTriple


class TrackStatus(str, enum.Enum):
    """Upload lifecycle states."""
    PENDING = "pending"      # Track row exists, no session yet
    UPLOADING = "uploading"  # Session open, chunks arriving
    COMPLETE = "complete"    # Finalized, visible to every read path
    FAILED = "failed"        # Finalization rejected the asset (terminal)


TRACK_ID_LENGTH = 36


def new_id() -> str:
    return str(uuid.uuid4())


class Track(Base):
    """User-uploaded audio asset."""

    __tablename__ = "tracks"

    id = Column(String(TRACK_ID_LENGTH), primary_key=True, default=new_id)
    owner_id = Column(String(36), nullable=False, index=True)

    # Metadata (may arrive before or after the bytes)
    title = Column(String(255))
    artist = Column(String(255))
    thumbnail_name = Column(String(1000))
    original_name = Column(String(255))  # Client-side file name

    # Asset
    file_name = Column(String(1000))  # Key of the assembled asset in the track store
    declared_size = Column(BigInteger)  # Total bytes announced by the client, optional
    file_size = Column(BigInteger)  # Bytes actually assembled

    # Duration as an interval triple; written together with upload_status
    duration_months = Column(Integer)
    duration_days = Column(Integer)
    duration_microseconds = Column(BigInteger)

    upload_status = Column(String(20), default=TrackStatus.PENDING.value, nullable=False, index=True)
    error_message = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    @property
    def duration(self) -> Optional[DurationTriple]:
        """Duration, only meaningful once complete."""
        if self.upload_status != TrackStatus.COMPLETE.value:
            return None
        return DurationTriple.from_columns(
            self.duration_months, self.duration_days, self.duration_microseconds
        )

    @property
    def is_complete(self) -> bool:
        return self.upload_status == TrackStatus.COMPLETE.value

    def __repr__(self):
        return f"<Track {self.id} {self.upload_status}>"
