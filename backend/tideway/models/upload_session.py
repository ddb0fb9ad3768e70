"""Upload session and chunk receipt models."""
import enum

from sqlalchemy import Column, String, Integer, BigInteger, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from tideway.database import Base


class SessionState(str, enum.Enum):
    """Session progress states."""
    UPLOADING = "uploading"
    FINALIZING = "finalizing"  # Claimed by exactly one finalizer
    COMPLETE = "complete"
    FAILED = "failed"


class UploadSession(Base):
    """Per-track upload progress. One row per track, kept after completion."""

    __tablename__ = "upload_sessions"

    track_id = Column(String(36), ForeignKey("tracks.id", ondelete="CASCADE"), primary_key=True)
    total_chunks = Column(Integer, nullable=False)  # Immutable once set
    received_chunks = Column(Integer, nullable=False, default=0)
    watermark = Column(Integer, nullable=False, default=-1)  # Highest contiguous index, -1 = none
    chunk_prefix = Column(String(1000), nullable=False)
    state = Column(String(20), nullable=False, default=SessionState.UPLOADING.value, index=True)
    finalize_token = Column(String(36))  # Set by the claiming finalizer
    finalize_claimed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    track = relationship("Track")

    def __repr__(self):
        return f"<UploadSession {self.track_id} {self.received_chunks}/{self.total_chunks} {self.state}>"


class ChunkRecord(Base):
    """Receipt of one chunk. The rows form the set of received indices."""

    __tablename__ = "upload_chunks"

    track_id = Column(String(36), ForeignKey("upload_sessions.track_id", ondelete="CASCADE"), primary_key=True)
    chunk_index = Column(Integer, primary_key=True)
    byte_length = Column(BigInteger, nullable=False)
    storage_key = Column(String(1000), nullable=False)
    received_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<ChunkRecord {self.track_id}#{self.chunk_index}>"
