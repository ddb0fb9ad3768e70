"""Favorite tracks service."""
from typing import List

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tideway.models.favorites import user_favorites
from tideway.services.library import (
    LibraryTrack,
    annotated_track_query,
    require_eligible,
    to_library_tracks,
)


class FavoriteService:
    """Service for managing a user's favorite tracks."""

    def __init__(self, db: Session):
        self.db = db

    def add_favorite(self, user_id: str, track_id: str) -> bool:
        """Favorite a complete track. Returns False if already a favorite."""
        require_eligible(self.db, track_id)

        if self.is_favorite(user_id, track_id):
            return False

        try:
            self.db.execute(
                insert(user_favorites).values(user_id=user_id, track_id=track_id)
            )
            self.db.commit()
        except IntegrityError:
            # Concurrent duplicate insert
            self.db.rollback()
            return False
        return True

    def remove_favorite(self, user_id: str, track_id: str) -> bool:
        """Remove a favorite. Returns False if it was not a favorite."""
        result = self.db.execute(
            delete(user_favorites).where(
                user_favorites.c.user_id == user_id,
                user_favorites.c.track_id == track_id,
            )
        )
        self.db.commit()
        return result.rowcount > 0

    def is_favorite(self, user_id: str, track_id: str) -> bool:
        result = self.db.execute(
            select(user_favorites).where(
                user_favorites.c.user_id == user_id,
                user_favorites.c.track_id == track_id,
            )
        ).first()
        return result is not None

    def list_favorites(self, user_id: str) -> List[LibraryTrack]:
        """User's favorite tracks that are complete, newest favorite first."""
        rows = (
            annotated_track_query(self.db, user_id)
            .filter(user_favorites.c.user_id == user_id)
            .order_by(user_favorites.c.added_at.desc())
            .all()
        )
        return to_library_tracks(rows)
