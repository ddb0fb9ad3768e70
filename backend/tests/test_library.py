"""Tests for the library read paths and the completion gate."""
import pytest
from tideway.exceptions import TrackNotEligible, TrackNotFound
from tideway.models.track import TrackStatus
from tideway.services.favorites import FavoriteService
from tideway.services.history import HistoryService
from tideway.services.library import LibraryService, require_eligible
from tideway.services.playlists import PlaylistService

from conftest import OTHER_USER_ID, USER_ID

DATA = b"x" * 4096


def test_uploading_track_is_invisible(db, uploading_track, complete_track, locks):
    pending = uploading_track()
    visible = complete_track()
    library = LibraryService(db)

    assert [t.id for t in library.random_tracks(USER_ID)] == [visible.id]
    assert library.get_track(pending) is None
    assert library.count_tracks() == 1

    with pytest.raises(TrackNotEligible):
        require_eligible(db, pending)
    with pytest.raises(TrackNotEligible):
        FavoriteService(db).add_favorite(USER_ID, pending)
    with pytest.raises(TrackNotEligible):
        HistoryService(db, locks).record_play(USER_ID, pending, 10)

    playlist = PlaylistService(db, locks).create_playlist(USER_ID, "Mix")
    with pytest.raises(TrackNotEligible):
        PlaylistService(db, locks).append_track(playlist.id, pending)


def test_unknown_track(db):
    with pytest.raises(TrackNotFound):
        require_eligible(db, "nope")


def test_track_visible_after_finalize(db, upload, finalizer):
    ack = upload(DATA)
    library = LibraryService(db)
    assert library.get_track(ack.track_id) is None

    finalizer.finalize(ack.track_id)

    track = library.get_track(ack.track_id)
    assert track is not None
    assert track.duration is not None
    assert [t.id for t in library.random_tracks(USER_ID)] == [ack.track_id]


def test_failed_track_stays_invisible(db, upload, finalizer):
    ack = upload(DATA)
    finalizer.finalize(ack.track_id)

    # Flip the published track to failed and check every read path drops it
    track = LibraryService(db).get_track(ack.track_id)
    track.upload_status = TrackStatus.FAILED.value
    db.commit()

    assert LibraryService(db).random_tracks(USER_ID) == []
    assert LibraryService(db).get_track(ack.track_id) is None


def test_random_tracks_annotations(db, complete_track, locks):
    mine = complete_track(owner_id=USER_ID, title="Mine")
    theirs = complete_track(owner_id=OTHER_USER_ID, title="Theirs")
    FavoriteService(db).add_favorite(USER_ID, theirs.id)
    HistoryService(db, locks).record_play(USER_ID, theirs.id, 42.5)

    tracks = {t.id: t for t in LibraryService(db).random_tracks(USER_ID)}

    assert tracks[mine.id].is_created_by_user
    assert not tracks[mine.id].is_favorite
    assert tracks[mine.id].duration_played.total_seconds() == 0
    assert tracks[mine.id].played_at is None

    assert not tracks[theirs.id].is_created_by_user
    assert tracks[theirs.id].is_favorite
    assert tracks[theirs.id].duration_played.total_seconds() == 42.5
    assert tracks[theirs.id].played_at is not None
    assert tracks[theirs.id].duration.total_seconds() == 200.0


def test_random_tracks_limit(db, complete_track):
    for i in range(5):
        complete_track(title=f"Track {i}")
    assert len(LibraryService(db).random_tracks(USER_ID, limit=3)) == 3


def test_status_counts(db, uploading_track, complete_track):
    uploading_track()
    complete_track()
    complete_track(owner_id=OTHER_USER_ID)

    library = LibraryService(db)
    counts = library.status_counts()

    assert counts[TrackStatus.UPLOADING.value] == 1
    assert counts[TrackStatus.COMPLETE.value] == 2
    assert counts[TrackStatus.FAILED.value] == 0
    assert library.count_tracks(owner_id=OTHER_USER_ID) == 1
