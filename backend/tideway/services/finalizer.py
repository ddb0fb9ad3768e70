"""Finalization of fully received uploads.

The finalizer is the only path by which a track becomes ``complete``:

1. claim the session with a compare-and-swap ``uploading -> finalizing``
   (only one caller, on any server instance, wins)
2. verify and assemble the chunk parts, then decode the duration, with no
   lock held
3. write duration, asset reference and ``complete`` status in a single
   transaction

Validation, storage and decode failures mark the track ``failed``. A crash
between claim and commit leaves the session in ``finalizing``; the recovery
sweep hands it back to ``finalize``.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from tideway.config import settings
from tideway.exceptions import DecodeError, FinalizationError, StorageError
from tideway.integrations.audio_decoder import AudioDecoder
from tideway.models.track import Track, TrackStatus
from tideway.models.upload_session import ChunkRecord, SessionState, UploadSession
from tideway.services.chunk_store import LocalChunkStore
from tideway.utils.duration import DurationTriple
from tideway.utils.locks import KeyedLock, track_key, upload_locks

logger = logging.getLogger(__name__)


@dataclass
class _ChunkPart:
    index: int
    key: str
    byte_length: int


@dataclass
class _Claim:
    """Everything the unlocked phase needs, read while the claim is made."""
    track_id: str
    token: str
    total_chunks: int
    chunk_prefix: str
    declared_size: Optional[int]
    original_name: Optional[str]
    parts: List[_ChunkPart]


@dataclass
class _Asset:
    file_name: str
    file_size: int
    duration: DurationTriple


def describe_ranges(indices: List[int]) -> str:
    """Compact form of sorted indices: [0, 1, 2, 5] -> '0-2, 5'."""
    spans = []
    start = prev = None
    for index in indices:
        if start is None:
            start = prev = index
        elif index == prev + 1:
            prev = index
        else:
            spans.append((start, prev))
            start = prev = index
    if start is not None:
        spans.append((start, prev))
    return ", ".join(str(a) if a == b else f"{a}-{b}" for a, b in spans)


class Finalizer:
    """Validates, assembles and publishes completed uploads."""

    def __init__(
        self,
        db: Session,
        store: Optional[LocalChunkStore] = None,
        track_store: Optional[LocalChunkStore] = None,
        decoder: Optional[AudioDecoder] = None,
        locks: KeyedLock = upload_locks,
    ):
        self.db = db
        self.store = store or LocalChunkStore(Path(settings.storage_chunks))
        self.track_store = track_store or LocalChunkStore(Path(settings.storage_tracks))
        self.decoder = decoder or AudioDecoder()
        self.locks = locks

    def finalize(self, track_id: str) -> Optional[Track]:
        """Finalize a fully received upload.

        Returns the completed track, or None when the session is not ready
        or another caller already claimed it.

        Raises:
            FinalizationError: Asset rejected; the track is now ``failed``.
        """
        claim = self._claim(track_id)
        if claim is None:
            return None

        try:
            asset = self._build_asset(claim)
        except FinalizationError as e:
            self._mark_failed(claim, e.reason)
            raise
        except (StorageError, DecodeError) as e:
            self._mark_failed(claim, str(e))
            raise FinalizationError(track_id, str(e)) from e

        track = self._publish(claim, asset)
        if track is not None:
            self._discard_parts(claim)
        return track

    # ------------------------------------------------------------------
    # Phase 1: claim
    # ------------------------------------------------------------------

    def _claim(self, track_id: str) -> Optional[_Claim]:
        token = str(uuid.uuid4())
        with self.locks.hold(track_key(track_id)):
            try:
                claimed = (
                    self.db.query(UploadSession)
                    .filter(
                        UploadSession.track_id == track_id,
                        UploadSession.state == SessionState.UPLOADING.value,
                        UploadSession.received_chunks == UploadSession.total_chunks,
                    )
                    .update(
                        {
                            UploadSession.state: SessionState.FINALIZING.value,
                            UploadSession.finalize_token: token,
                            UploadSession.finalize_claimed_at: datetime.now(timezone.utc),
                        },
                        synchronize_session=False,
                    )
                )
                if not claimed:
                    self.db.rollback()
                    logger.info(f"Finalization of {track_id} not claimed (not ready or already taken)")
                    return None

                session = (
                    self.db.query(UploadSession)
                    .populate_existing()
                    .filter(UploadSession.track_id == track_id)
                    .one()
                )
                track = self.db.query(Track).filter(Track.id == track_id).one()
                parts = [
                    _ChunkPart(r.chunk_index, r.storage_key, r.byte_length)
                    for r in (
                        self.db.query(ChunkRecord)
                        .filter(ChunkRecord.track_id == track_id)
                        .order_by(ChunkRecord.chunk_index)
                        .all()
                    )
                ]
                claim = _Claim(
                    track_id=track_id,
                    token=token,
                    total_chunks=session.total_chunks,
                    chunk_prefix=session.chunk_prefix,
                    declared_size=track.declared_size,
                    original_name=track.original_name,
                    parts=parts,
                )
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        logger.info(f"Claimed finalization of {track_id}")
        return claim

    # ------------------------------------------------------------------
    # Phase 2: validate, assemble, decode (no lock held)
    # ------------------------------------------------------------------

    def _build_asset(self, claim: _Claim) -> _Asset:
        received = {part.index for part in claim.parts}
        missing = [i for i in range(claim.total_chunks) if i not in received]
        if missing:
            raise FinalizationError(claim.track_id, f"Missing chunks: {describe_ranges(missing)}")

        for part in claim.parts:
            stored = self.store.get_size(part.key)
            if stored != part.byte_length:
                raise FinalizationError(
                    claim.track_id,
                    f"Chunk {part.index} holds {stored} bytes, expected {part.byte_length}",
                )

        expected_size = sum(part.byte_length for part in claim.parts)
        if claim.declared_size is not None and expected_size != claim.declared_size:
            raise FinalizationError(
                claim.track_id,
                f"Assembled size {expected_size} does not match declared size {claim.declared_size}",
            )

        suffix = Path(claim.original_name or "").suffix.lower()
        file_name = f"{claim.track_id}{suffix}"
        dest = self.track_store.local_path(file_name)

        written = self.store.assemble([part.key for part in claim.parts], dest)
        if written != expected_size:
            dest.unlink(missing_ok=True)
            raise FinalizationError(
                claim.track_id,
                f"Assembled {written} bytes, expected {expected_size}",
            )

        try:
            duration = self.decoder.decode(dest)
        except DecodeError:
            dest.unlink(missing_ok=True)
            raise

        return _Asset(file_name=file_name, file_size=written, duration=duration)

    # ------------------------------------------------------------------
    # Phase 3: publish or fail
    # ------------------------------------------------------------------

    def _publish(self, claim: _Claim, asset: _Asset) -> Optional[Track]:
        with self.locks.hold(track_key(claim.track_id)):
            try:
                session = self._owned_session(claim)
                if session is None:
                    self.db.rollback()
                    logger.warning(f"Lost finalization claim on {claim.track_id}, not publishing")
                    return None

                track = (
                    self.db.query(Track)
                    .filter(Track.id == claim.track_id)
                    .with_for_update()
                    .one()
                )
                # Status and duration land in the same transaction
                track.file_name = asset.file_name
                track.file_size = asset.file_size
                track.duration_months = asset.duration.months
                track.duration_days = asset.duration.days
                track.duration_microseconds = asset.duration.microseconds
                track.upload_status = TrackStatus.COMPLETE.value
                track.error_message = None
                session.state = SessionState.COMPLETE.value
                session.finalize_token = None
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        self.db.refresh(track)
        logger.info(
            f"Track {claim.track_id} complete: {asset.file_size} bytes, "
            f"{asset.duration.total_seconds():.1f}s"
        )
        return track

    def _mark_failed(self, claim: _Claim, reason: str) -> None:
        with self.locks.hold(track_key(claim.track_id)):
            try:
                session = self._owned_session(claim)
                if session is None:
                    self.db.rollback()
                    logger.warning(f"Lost finalization claim on {claim.track_id}, not marking failed")
                    return

                track = (
                    self.db.query(Track)
                    .filter(Track.id == claim.track_id)
                    .with_for_update()
                    .one()
                )
                track.upload_status = TrackStatus.FAILED.value
                track.error_message = reason[:1000]
                session.state = SessionState.FAILED.value
                session.finalize_token = None
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        logger.error(f"Finalization of {claim.track_id} failed: {reason}")

    def _owned_session(self, claim: _Claim) -> Optional[UploadSession]:
        """Session row, if this claim still holds it."""
        return (
            self.db.query(UploadSession)
            .populate_existing()
            .filter(
                UploadSession.track_id == claim.track_id,
                UploadSession.state == SessionState.FINALIZING.value,
                UploadSession.finalize_token == claim.token,
            )
            .with_for_update()
            .first()
        )

    def _discard_parts(self, claim: _Claim) -> None:
        try:
            self.store.delete_prefix(claim.chunk_prefix)
        except StorageError as e:
            logger.warning(f"Could not remove chunk parts of {claim.track_id}: {e}")

    # ------------------------------------------------------------------
    # Recovery
    # ------------------------------------------------------------------

    def find_stalled(self, older_than_minutes: int) -> List[str]:
        """Track ids whose finalization never finished.

        Either claimed and abandoned mid-way, or fully received but never
        claimed (the process died between the last chunk and the claim).
        """
        cutoff = datetime.now(timezone.utc) - timedelta(minutes=older_than_minutes)
        abandoned = (
            self.db.query(UploadSession.track_id)
            .filter(
                UploadSession.state == SessionState.FINALIZING.value,
                UploadSession.finalize_claimed_at < cutoff,
            )
            .all()
        )
        unclaimed = (
            self.db.query(UploadSession.track_id)
            .filter(
                UploadSession.state == SessionState.UPLOADING.value,
                UploadSession.received_chunks == UploadSession.total_chunks,
                func.coalesce(UploadSession.updated_at, UploadSession.created_at) < cutoff,
            )
            .all()
        )
        self.db.rollback()
        return [row[0] for row in abandoned + unclaimed]

    def release_claim(self, track_id: str) -> bool:
        """Hand a session stuck in ``finalizing`` back to ``uploading``."""
        with self.locks.hold(track_key(track_id)):
            try:
                released = (
                    self.db.query(UploadSession)
                    .filter(
                        UploadSession.track_id == track_id,
                        UploadSession.state == SessionState.FINALIZING.value,
                    )
                    .update(
                        {
                            UploadSession.state: SessionState.UPLOADING.value,
                            UploadSession.finalize_token: None,
                            UploadSession.finalize_claimed_at: None,
                        },
                        synchronize_session=False,
                    )
                )
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise
        return bool(released)

    def recover_stalled(self, older_than_minutes: Optional[int] = None) -> Dict[str, List[str]]:
        """Re-run finalization for every stalled session."""
        if older_than_minutes is None:
            older_than_minutes = settings.finalize_stale_minutes

        result = {"completed": [], "failed": [], "skipped": []}
        for track_id in self.find_stalled(older_than_minutes):
            if self.release_claim(track_id):
                logger.warning(f"Released stalled finalization claim on {track_id}")
            try:
                track = self.finalize(track_id)
            except FinalizationError:
                result["failed"].append(track_id)
                continue
            if track is None:
                result["skipped"].append(track_id)
            else:
                result["completed"].append(track_id)

        if any(result.values()):
            logger.info(
                f"Recovery sweep: {len(result['completed'])} completed, "
                f"{len(result['failed'])} failed, {len(result['skipped'])} skipped"
            )
        return result
