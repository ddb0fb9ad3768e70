"""Upload session tracking for chunked uploads.

Chunks for a track arrive independently: out of order, retried, or resumed
after a client crash. The tracker persists each chunk through the chunk
store and keeps the per-track progress row consistent:

- ``received_chunks`` counts distinct indices (the chunk rows are the set
  of received indices, so a retried chunk is never counted twice)
- ``watermark`` is the highest index such that every index up to it is
  received (-1 when chunk 0 is missing)
- exactly one ``receive_chunk`` call observes the transition to a full
  count and is told to finalize

Every read-modify-write runs under the per-track lock plus a row lock on
the session, inside one transaction.
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tideway.config import settings
from tideway.exceptions import NotOwner, OutOfRange, ProtocolError, TrackNotFound
from tideway.models.track import TRACK_ID_LENGTH, Track, TrackStatus
from tideway.models.upload_session import ChunkRecord, SessionState, UploadSession
from tideway.services.chunk_store import LocalChunkStore, chunk_key, chunk_prefix
from tideway.utils.locks import KeyedLock, track_key, upload_locks

logger = logging.getLogger(__name__)


@dataclass
class SessionHandle:
    """Snapshot of an upload session."""
    track_id: str
    owner_id: str
    total_chunks: int
    received_chunks: int
    watermark: int
    state: str
    created: bool = False

    @property
    def next_chunk(self) -> int:
        return self.watermark + 1


@dataclass
class ChunkAck:
    """Result of persisting one chunk."""
    track_id: str
    chunk_index: int
    received_chunks: int
    total_chunks: int
    watermark: int
    duplicate: bool
    should_finalize: bool  # True only for the call that completed the set

    @property
    def complete(self) -> bool:
        return self.received_chunks == self.total_chunks


class UploadTracker:
    """Per-track upload progress state machine."""

    def __init__(
        self,
        db: Session,
        store: Optional[LocalChunkStore] = None,
        locks: KeyedLock = upload_locks,
    ):
        self.db = db
        self.store = store or LocalChunkStore(Path(settings.storage_chunks))
        self.locks = locks

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def begin_or_continue(
        self,
        track_id: str,
        owner_id: str,
        total_chunks: int,
        declared_size: Optional[int] = None,
        original_name: Optional[str] = None,
    ) -> SessionHandle:
        """Open the upload session for a track, or return the existing one.

        Creates the track row when it does not exist yet. A repeated call
        must declare the same ``total_chunks``.

        Raises:
            NotOwner: Track belongs to another user.
            ProtocolError: Invalid track id, total_chunks mismatch, invalid size,
                or the track already failed/completed without a session to continue.
        """
        if not 1 <= len(track_id) <= TRACK_ID_LENGTH:
            raise ProtocolError(f"track_id must be 1-{TRACK_ID_LENGTH} characters")
        if total_chunks < 1:
            raise ProtocolError("total_chunks must be at least 1")
        if total_chunks > settings.max_total_chunks:
            raise ProtocolError(
                f"total_chunks {total_chunks} exceeds limit of {settings.max_total_chunks}"
            )
        if declared_size is not None and declared_size < 0:
            raise ProtocolError("declared_size cannot be negative")

        with self.locks.hold(track_key(track_id)):
            for attempt in range(2):
                try:
                    handle = self._open_session(
                        track_id, owner_id, total_chunks, declared_size, original_name
                    )
                    self.db.commit()
                except IntegrityError:
                    # Another server instance inserted the row first; re-read it
                    self.db.rollback()
                    if attempt:
                        raise
                    logger.info(f"Upload session for {track_id} created concurrently, continuing it")
                    continue
                except Exception:
                    self.db.rollback()
                    raise

                if handle.created:
                    logger.info(
                        f"Started upload {track_id} for {owner_id}: {total_chunks} chunks"
                    )
                return handle

        raise ProtocolError(f"Could not open upload session for {track_id}")  # pragma: no cover

    def _open_session(
        self,
        track_id: str,
        owner_id: str,
        total_chunks: int,
        declared_size: Optional[int],
        original_name: Optional[str],
    ) -> SessionHandle:
        track = (
            self.db.query(Track)
            .filter(Track.id == track_id)
            .with_for_update()
            .first()
        )
        if track is None:
            track = Track(
                id=track_id,
                owner_id=owner_id,
                original_name=original_name,
                declared_size=declared_size,
                upload_status=TrackStatus.PENDING.value,
            )
            self.db.add(track)
            self.db.flush()
        elif track.owner_id != owner_id:
            raise NotOwner("track", track_id)

        session = self._lock_session(track_id)
        if session is None:
            if track.upload_status in (TrackStatus.COMPLETE.value, TrackStatus.FAILED.value):
                raise ProtocolError(
                    f"Track {track_id} is {track.upload_status}; start a new upload"
                )
            session = UploadSession(
                track_id=track_id,
                total_chunks=total_chunks,
                received_chunks=0,
                watermark=-1,
                chunk_prefix=chunk_prefix(track_id),
                state=SessionState.UPLOADING.value,
            )
            self.db.add(session)
            track.upload_status = TrackStatus.UPLOADING.value
            if declared_size is not None:
                track.declared_size = declared_size
            if original_name and not track.original_name:
                track.original_name = original_name
            self.db.flush()
            return self._handle(track, session, created=True)

        if session.total_chunks != total_chunks:
            raise ProtocolError(
                f"total_chunks redeclared for {track_id}: "
                f"{total_chunks} != {session.total_chunks}"
            )
        if session.state == SessionState.FAILED.value:
            raise ProtocolError(f"Upload {track_id} failed; start a new upload")
        if (
            declared_size is not None
            and track.declared_size is not None
            and track.declared_size != declared_size
        ):
            raise ProtocolError(
                f"declared_size redeclared for {track_id}: "
                f"{declared_size} != {track.declared_size}"
            )
        return self._handle(track, session)

    # ------------------------------------------------------------------
    # Chunk receipt
    # ------------------------------------------------------------------

    def receive_chunk(self, track_id: str, chunk_index: int, data: bytes) -> ChunkAck:
        """Persist one chunk and update progress.

        Re-sending an index overwrites its bytes without counting it again.
        Once the session is finalizing or complete the bytes are frozen and
        any chunk is acknowledged as a duplicate.

        Raises:
            OutOfRange: Index outside [0, total_chunks).
            ProtocolError: No session, session failed, or chunk too large.
            StorageError: Chunk could not be written (safe to re-send).
        """
        if len(data) > settings.max_chunk_size:
            raise ProtocolError(
                f"Chunk of {len(data)} bytes exceeds limit of {settings.max_chunk_size}"
            )

        with self.locks.hold(track_key(track_id)):
            try:
                ack = self._record_chunk(track_id, chunk_index, data)
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        if ack.duplicate:
            logger.info(f"Duplicate chunk {chunk_index} for {track_id}, not counted")
        if ack.should_finalize:
            logger.info(f"All {ack.total_chunks} chunks received for {track_id}")
        return ack

    def _record_chunk(self, track_id: str, chunk_index: int, data: bytes) -> ChunkAck:
        session = self._lock_session(track_id)
        if session is None:
            raise ProtocolError(f"No upload session for track {track_id}")
        if session.state == SessionState.FAILED.value:
            raise ProtocolError(f"Upload {track_id} failed; start a new upload")
        if chunk_index < 0 or chunk_index >= session.total_chunks:
            raise OutOfRange(chunk_index, session.total_chunks)

        if session.state != SessionState.UPLOADING.value:
            # Every index is already in; the finalizer may be reading the parts
            return self._ack(session, chunk_index, duplicate=True, should_finalize=False)

        key = chunk_key(track_id, chunk_index)
        self.store.put(key, data)

        record = self.db.get(ChunkRecord, (track_id, chunk_index))
        duplicate = record is not None
        if duplicate:
            record.byte_length = len(data)
            record.storage_key = key
        else:
            self.db.add(ChunkRecord(
                track_id=track_id,
                chunk_index=chunk_index,
                byte_length=len(data),
                storage_key=key,
            ))
            session.received_chunks += 1
            self.db.flush()
            session.watermark = self._advance_watermark(session)

        should_finalize = (
            not duplicate and session.received_chunks == session.total_chunks
        )
        return self._ack(session, chunk_index, duplicate, should_finalize)

    def _advance_watermark(self, session: UploadSession) -> int:
        """Move the watermark across every received index above it."""
        watermark = session.watermark
        above = (
            self.db.query(ChunkRecord.chunk_index)
            .filter(
                ChunkRecord.track_id == session.track_id,
                ChunkRecord.chunk_index > watermark,
            )
            .order_by(ChunkRecord.chunk_index)
            .all()
        )
        for (index,) in above:
            if index != watermark + 1:
                break
            watermark = index
        return watermark

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_complete(self, track_id: str) -> bool:
        """True iff every declared chunk is received and the upload has not failed."""
        session = self.db.query(UploadSession).filter(UploadSession.track_id == track_id).first()
        if session is None:
            return False
        return (
            session.received_chunks == session.total_chunks
            and session.state != SessionState.FAILED.value
        )

    def get_session(self, track_id: str, owner_id: Optional[str] = None) -> SessionHandle:
        """Progress snapshot for one upload."""
        row = (
            self.db.query(UploadSession, Track)
            .join(Track, Track.id == UploadSession.track_id)
            .filter(UploadSession.track_id == track_id)
            .first()
        )
        if row is None:
            raise TrackNotFound(track_id)
        session, track = row
        if owner_id is not None and track.owner_id != owner_id:
            raise NotOwner("track", track_id)
        return self._handle(track, session)

    def received_indices(self, track_id: str) -> list[int]:
        """Sorted chunk indices received so far."""
        rows = (
            self.db.query(ChunkRecord.chunk_index)
            .filter(ChunkRecord.track_id == track_id)
            .order_by(ChunkRecord.chunk_index)
            .all()
        )
        return [row[0] for row in rows]

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    def update_metadata(
        self,
        track_id: str,
        owner_id: str,
        title: Optional[str] = None,
        artist: Optional[str] = None,
        thumbnail_filename: Optional[str] = None,
        thumbnail_data: Optional[bytes] = None,
        thumbnail_store: Optional[LocalChunkStore] = None,
    ) -> Track:
        """Set title/artist/thumbnail. Allowed before or after completion."""
        try:
            track = (
                self.db.query(Track)
                .filter(Track.id == track_id)
                .with_for_update()
                .first()
            )
            if track is None:
                raise TrackNotFound(track_id)
            if track.owner_id != owner_id:
                raise NotOwner("track", track_id)

            if title is not None:
                track.title = title
            if artist is not None:
                track.artist = artist
            if thumbnail_data is not None:
                store = thumbnail_store or LocalChunkStore(Path(settings.storage_thumbnails))
                suffix = Path(thumbnail_filename or "").suffix.lower() or ".jpg"
                key = f"{track_id}{suffix}"
                store.put(key, thumbnail_data)
                track.thumbnail_name = key

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(track)
        return track

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _lock_session(self, track_id: str) -> Optional[UploadSession]:
        return (
            self.db.query(UploadSession)
            .filter(UploadSession.track_id == track_id)
            .with_for_update()
            .first()
        )

    def _handle(self, track: Track, session: UploadSession, created: bool = False) -> SessionHandle:
        return SessionHandle(
            track_id=session.track_id,
            owner_id=track.owner_id,
            total_chunks=session.total_chunks,
            received_chunks=session.received_chunks,
            watermark=session.watermark,
            state=session.state,
            created=created,
        )

    def _ack(
        self,
        session: UploadSession,
        chunk_index: int,
        duplicate: bool,
        should_finalize: bool,
    ) -> ChunkAck:
        return ChunkAck(
            track_id=session.track_id,
            chunk_index=chunk_index,
            received_chunks=session.received_chunks,
            total_chunks=session.total_chunks,
            watermark=session.watermark,
            duplicate=duplicate,
            should_finalize=should_finalize,
        )
