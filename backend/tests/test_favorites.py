"""Tests for favorite tracks."""
from tideway.services.favorites import FavoriteService

from conftest import USER_ID


def test_add_is_idempotent(db, complete_track):
    track = complete_track()
    service = FavoriteService(db)

    assert service.add_favorite(USER_ID, track.id)
    assert not service.add_favorite(USER_ID, track.id)
    assert service.is_favorite(USER_ID, track.id)
    assert [t.id for t in service.list_favorites(USER_ID)] == [track.id]
    assert service.list_favorites(USER_ID)[0].is_favorite


def test_remove(db, complete_track):
    track = complete_track()
    service = FavoriteService(db)
    service.add_favorite(USER_ID, track.id)

    assert service.remove_favorite(USER_ID, track.id)
    assert not service.remove_favorite(USER_ID, track.id)
    assert service.list_favorites(USER_ID) == []
