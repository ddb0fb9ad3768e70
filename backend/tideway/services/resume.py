"""Resume query for interrupted uploads."""
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.orm import Session

from tideway.models.track import Track
from tideway.models.upload_session import SessionState, UploadSession


@dataclass
class ResumeDescriptor:
    """What a client needs to pick an upload back up."""
    track_id: str
    title: Optional[str]
    artist: Optional[str]
    thumbnail_name: Optional[str]
    original_name: Optional[str]
    total_chunks: int
    received_chunks: int
    watermark: int

    @property
    def next_chunk(self) -> int:
        """First index to re-send; everything below it is committed."""
        return self.watermark + 1


class ResumeService:
    """Read-only view of a user's in-progress uploads.

    Reads committed session rows directly and never takes the per-track
    lock, so it cannot block behind an upload. The watermark returned may
    lag a concurrent writer but never leads committed state.
    """

    def __init__(self, db: Session):
        self.db = db

    def list_incomplete(self, owner_id: str) -> List[ResumeDescriptor]:
        rows = (
            self.db.query(UploadSession, Track)
            .join(Track, Track.id == UploadSession.track_id)
            .filter(
                Track.owner_id == owner_id,
                UploadSession.state == SessionState.UPLOADING.value,
            )
            .order_by(UploadSession.created_at, UploadSession.track_id)
            .all()
        )
        return [
            ResumeDescriptor(
                track_id=session.track_id,
                title=track.title,
                artist=track.artist,
                thumbnail_name=track.thumbnail_name,
                original_name=track.original_name,
                total_chunks=session.total_chunks,
                received_chunks=session.received_chunks,
                watermark=session.watermark,
            )
            for session, track in rows
        ]
