"""Library read paths and the eligibility gate.

Only ``complete`` tracks exist as far as any read path is concerned. The
gate is a SQL predicate that every query here puts in its WHERE clause, so
an uploading or failed track can never be selected, joined or counted.
Writes that reference a track (history, favorites, playlist entries) go
through ``require_eligible`` first.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, case, func
from sqlalchemy.orm import Session

from tideway.config import settings
from tideway.exceptions import TrackNotEligible, TrackNotFound
from tideway.models.favorites import user_favorites
from tideway.models.history import PlaybackHistory
from tideway.models.track import Track, TrackStatus
from tideway.utils.duration import DurationTriple


def eligible_clause():
    """SQL predicate selecting tracks visible to read paths."""
    return Track.upload_status == TrackStatus.COMPLETE.value


def require_eligible(db: Session, track_id: str) -> Track:
    """Return the track if it is complete.

    Raises:
        TrackNotFound: No such track.
        TrackNotEligible: Track exists but is not complete.
    """
    track = db.query(Track).filter(Track.id == track_id).first()
    if track is None:
        raise TrackNotFound(track_id)
    if track.upload_status != TrackStatus.COMPLETE.value:
        raise TrackNotEligible(track_id, track.upload_status)
    return track


@dataclass
class LibraryTrack:
    """Track row annotated for one listening user."""
    id: str
    title: Optional[str]
    artist: Optional[str]
    duration: DurationTriple
    file_name: Optional[str]
    thumbnail_name: Optional[str]
    upload_status: str
    is_favorite: bool
    duration_played: DurationTriple
    played_at: Optional[datetime]
    is_created_by_user: bool
    track_order: Optional[int] = None


def annotated_track_query(db: Session, user_id: str, *extra_columns):
    """Eligible tracks joined with the user's favorite and history rows.

    Callers add their own joins/filters; the eligibility predicate is
    already applied.
    """
    is_favorite = case((user_favorites.c.track_id.isnot(None), True), else_=False)
    is_created_by_user = case((Track.owner_id == user_id, True), else_=False)
    return (
        db.query(
            Track,
            is_favorite.label("is_favorite"),
            PlaybackHistory.duration_played_months,
            PlaybackHistory.duration_played_days,
            PlaybackHistory.duration_played_microseconds,
            PlaybackHistory.played_at,
            is_created_by_user.label("is_created_by_user"),
            *extra_columns,
        )
        .outerjoin(
            user_favorites,
            and_(user_favorites.c.track_id == Track.id, user_favorites.c.user_id == user_id),
        )
        .outerjoin(
            PlaybackHistory,
            and_(PlaybackHistory.track_id == Track.id, PlaybackHistory.user_id == user_id),
        )
        .filter(eligible_clause())
    )


def to_library_tracks(rows) -> List[LibraryTrack]:
    """Convert rows from ``annotated_track_query`` to ``LibraryTrack``s."""
    result = []
    for row in rows:
        track = row[0]
        played = DurationTriple.from_columns(row[2], row[3], row[4]) or DurationTriple()
        result.append(LibraryTrack(
            id=track.id,
            title=track.title,
            artist=track.artist,
            duration=track.duration or DurationTriple(),
            file_name=track.file_name,
            thumbnail_name=track.thumbnail_name,
            upload_status=track.upload_status,
            is_favorite=bool(row[1]),
            duration_played=played,
            played_at=row[5],
            is_created_by_user=bool(row[6]),
            track_order=row[7] if len(row) > 7 else None,
        ))
    return result


class LibraryService:
    """Discovery and lookup of complete tracks."""

    def __init__(self, db: Session):
        self.db = db

    def random_tracks(self, user_id: str, limit: Optional[int] = None) -> List[LibraryTrack]:
        """Random selection of complete tracks for discovery."""
        limit = limit or settings.random_tracks_limit
        rows = (
            annotated_track_query(self.db, user_id)
            .order_by(func.random())
            .limit(limit)
            .all()
        )
        return to_library_tracks(rows)

    def get_track(self, track_id: str) -> Optional[Track]:
        """Complete track by id, None if missing or not yet complete."""
        return (
            self.db.query(Track)
            .filter(Track.id == track_id, eligible_clause())
            .first()
        )

    def count_tracks(self, owner_id: Optional[str] = None) -> int:
        """Number of complete tracks, optionally for one owner."""
        query = self.db.query(func.count(Track.id)).filter(eligible_clause())
        if owner_id is not None:
            query = query.filter(Track.owner_id == owner_id)
        return query.scalar() or 0

    def status_counts(self) -> dict:
        """Tracks per upload status (all statuses, for admin views)."""
        rows = (
            self.db.query(Track.upload_status, func.count(Track.id))
            .group_by(Track.upload_status)
            .all()
        )
        counts = {status.value: 0 for status in TrackStatus}
        counts.update({status: count for status, count in rows})
        return counts


