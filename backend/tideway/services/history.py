"""Playback history service."""
import logging
from datetime import datetime, timezone
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tideway.models.history import PlaybackHistory
from tideway.services.library import (
    LibraryTrack,
    annotated_track_query,
    require_eligible,
    to_library_tracks,
)
from tideway.utils.duration import DurationTriple
from tideway.utils.locks import KeyedLock, history_key, upload_locks

logger = logging.getLogger(__name__)


class HistoryService:
    """Latest play position per (user, track).

    A repeat play REPLACES the stored duration rather than adding to it:
    the entry reflects the most recent play progress, not total listening
    time.
    """

    def __init__(self, db: Session, locks: KeyedLock = upload_locks):
        self.db = db
        self.locks = locks

    def record_play(self, user_id: str, track_id: str, duration_seconds: float) -> PlaybackHistory:
        """Create or replace the history entry for a play.

        Raises:
            TrackNotFound: No such track.
            TrackNotEligible: Track is not complete.
            ValueError: Negative duration.
        """
        duration = DurationTriple.from_seconds(duration_seconds)

        with self.locks.hold(history_key(user_id, track_id)):
            for attempt in range(2):
                try:
                    require_eligible(self.db, track_id)
                    entry = (
                        self.db.query(PlaybackHistory)
                        .filter(
                            PlaybackHistory.user_id == user_id,
                            PlaybackHistory.track_id == track_id,
                        )
                        .with_for_update()
                        .first()
                    )
                    if entry is None:
                        entry = PlaybackHistory(user_id=user_id, track_id=track_id)
                        self.db.add(entry)
                    entry.duration_played = duration
                    entry.played_at = datetime.now(timezone.utc)
                    self.db.commit()
                    break
                except IntegrityError:
                    # Concurrent first play from another instance; update its row instead
                    self.db.rollback()
                    if attempt:
                        raise
                except Exception:
                    self.db.rollback()
                    raise

        self.db.refresh(entry)
        return entry

    def list_history(self, user_id: str, limit: int = 50) -> List[LibraryTrack]:
        """Tracks the user has played, most recent first."""
        rows = (
            annotated_track_query(self.db, user_id)
            .filter(PlaybackHistory.user_id == user_id)
            .order_by(PlaybackHistory.played_at.desc())
            .limit(limit)
            .all()
        )
        return to_library_tracks(rows)
