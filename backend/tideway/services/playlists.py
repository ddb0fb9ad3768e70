"""Playlist service."""
import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from tideway.exceptions import NotOwner, PlaylistNotFound
from tideway.models.playlist import Playlist, PlaylistTrack
from tideway.models.track import Track
from tideway.services.library import (
    LibraryTrack,
    annotated_track_query,
    require_eligible,
    to_library_tracks,
)
from tideway.utils.locks import KeyedLock, playlist_key, upload_locks

logger = logging.getLogger(__name__)


class PlaylistService:
    """Playlists and their ordered track entries.

    Positions are assigned as ``max(existing) + 1`` under a per-playlist
    lock and a row lock on the playlist, so concurrent appends get distinct
    consecutive positions. Removing a track leaves a gap; positions are
    never renumbered.
    """

    def __init__(self, db: Session, locks: KeyedLock = upload_locks):
        self.db = db
        self.locks = locks

    def create_playlist(
        self,
        owner_id: str,
        title: str,
        thumbnail_path: Optional[str] = None,
    ) -> Playlist:
        playlist = Playlist(owner_id=owner_id, title=title, thumbnail_path=thumbnail_path)
        self.db.add(playlist)
        self.db.commit()
        self.db.refresh(playlist)
        logger.info(f"Created playlist {playlist.id} for {owner_id}")
        return playlist

    def get_playlist(self, playlist_id: str, owner_id: Optional[str] = None) -> Playlist:
        playlist = self.db.query(Playlist).filter(Playlist.id == playlist_id).first()
        if playlist is None:
            raise PlaylistNotFound(playlist_id)
        if owner_id is not None and playlist.owner_id != owner_id:
            raise NotOwner("playlist", playlist_id)
        return playlist

    def list_playlists(self, owner_id: str) -> List[dict]:
        """Owner's playlists with their highest track position (0 when empty)."""
        rows = (
            self.db.query(
                Playlist,
                func.coalesce(func.max(PlaylistTrack.track_order), 0).label("max_track_order"),
            )
            .outerjoin(PlaylistTrack, PlaylistTrack.playlist_id == Playlist.id)
            .filter(Playlist.owner_id == owner_id)
            .group_by(Playlist.id)
            .order_by(Playlist.title)
            .all()
        )
        return [
            {
                "id": playlist.id,
                "title": playlist.title,
                "thumbnail_path": playlist.thumbnail_path,
                "max_track_order": max_order,
            }
            for playlist, max_order in rows
        ]

    def append_track(self, playlist_id: str, track_id: str, owner_id: Optional[str] = None) -> int:
        """Append a complete track and return its position.

        A track already in the playlist keeps its existing position.

        Raises:
            PlaylistNotFound: No such playlist.
            NotOwner: owner_id given and not the playlist owner.
            TrackNotFound / TrackNotEligible: Track missing or not complete.
        """
        with self.locks.hold(playlist_key(playlist_id)):
            try:
                playlist = (
                    self.db.query(Playlist)
                    .filter(Playlist.id == playlist_id)
                    .with_for_update()
                    .first()
                )
                if playlist is None:
                    raise PlaylistNotFound(playlist_id)
                if owner_id is not None and playlist.owner_id != owner_id:
                    raise NotOwner("playlist", playlist_id)
                require_eligible(self.db, track_id)

                existing = self.db.get(PlaylistTrack, (playlist_id, track_id))
                if existing is not None:
                    position = existing.track_order
                    self.db.rollback()
                    return position

                last = (
                    self.db.query(func.max(PlaylistTrack.track_order))
                    .filter(PlaylistTrack.playlist_id == playlist_id)
                    .scalar()
                )
                position = (last or 0) + 1
                self.db.add(PlaylistTrack(
                    playlist_id=playlist_id,
                    track_id=track_id,
                    track_order=position,
                ))
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        return position

    def remove_track(self, playlist_id: str, track_id: str, owner_id: Optional[str] = None) -> bool:
        """Remove a track. Other positions are left untouched."""
        self.get_playlist(playlist_id, owner_id)
        with self.locks.hold(playlist_key(playlist_id)):
            try:
                deleted = (
                    self.db.query(PlaylistTrack)
                    .filter(
                        PlaylistTrack.playlist_id == playlist_id,
                        PlaylistTrack.track_id == track_id,
                    )
                    .delete(synchronize_session=False)
                )
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise
        return deleted > 0

    def get_playlist_tracks(self, playlist_id: str, user_id: str) -> List[LibraryTrack]:
        """Complete tracks of a playlist in position order."""
        self.get_playlist(playlist_id)
        rows = (
            annotated_track_query(self.db, user_id, PlaylistTrack.track_order)
            .join(PlaylistTrack, PlaylistTrack.track_id == Track.id)
            .filter(PlaylistTrack.playlist_id == playlist_id)
            .order_by(PlaylistTrack.track_order)
            .all()
        )
        return to_library_tracks(rows)
