"""Tests for playback history."""
import pytest
from tideway.models.history import PlaybackHistory
from tideway.services.history import HistoryService

from conftest import OTHER_USER_ID, USER_ID


def test_repeat_play_replaces_duration(db, complete_track, locks):
    track = complete_track()
    service = HistoryService(db, locks)

    service.record_play(USER_ID, track.id, 30)
    entry = service.record_play(USER_ID, track.id, 10)

    assert entry.duration_played.total_seconds() == 10
    assert db.query(PlaybackHistory).count() == 1


def test_users_have_separate_entries(db, complete_track, locks):
    track = complete_track()
    service = HistoryService(db, locks)

    service.record_play(USER_ID, track.id, 30)
    service.record_play(OTHER_USER_ID, track.id, 5)

    assert db.query(PlaybackHistory).count() == 2
    assert [t.duration_played.total_seconds() for t in service.list_history(USER_ID)] == [30]


def test_list_history_most_recent_first(db, complete_track, locks):
    first = complete_track(title="First")
    second = complete_track(title="Second")
    service = HistoryService(db, locks)

    service.record_play(USER_ID, first.id, 1)
    service.record_play(USER_ID, second.id, 1)
    # Replaying moves the track back to the top
    service.record_play(USER_ID, first.id, 2)

    assert [t.title for t in service.list_history(USER_ID)] == ["First", "Second"]
    assert service.list_history(USER_ID, limit=1)[0].id == first.id


def test_oversized_duration_rejected(db, complete_track, locks):
    track = complete_track()

    with pytest.raises(ValueError):
        HistoryService(db, locks).record_play(USER_ID, track.id, 1e300)
    assert db.query(PlaybackHistory).count() == 0
