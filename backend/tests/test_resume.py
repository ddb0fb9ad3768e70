"""Tests for the resume query."""
from tideway.services.resume import ResumeService

from conftest import OTHER_USER_ID, USER_ID


def test_two_interrupted_uploads(db, tracker):
    tracker.begin_or_continue("a", USER_ID, 5)
    for index in (0, 1, 2):
        tracker.receive_chunk("a", index, b"a")
    tracker.begin_or_continue("b", USER_ID, 3)
    for index in (0, 2):
        tracker.receive_chunk("b", index, b"b")
    tracker.update_metadata("b", USER_ID, title="Second")

    descriptors = {d.track_id: d for d in ResumeService(db).list_incomplete(USER_ID)}

    assert set(descriptors) == {"a", "b"}
    assert descriptors["a"].next_chunk == 3
    assert descriptors["a"].received_chunks == 3
    assert descriptors["b"].next_chunk == 1
    assert descriptors["b"].received_chunks == 2
    assert descriptors["b"].total_chunks == 3
    assert descriptors["b"].title == "Second"


def test_finished_and_foreign_uploads_excluded(db, tracker, upload, finalizer):
    done = upload(b"y" * 400)
    finalizer.finalize(done.track_id)
    tracker.begin_or_continue("theirs", OTHER_USER_ID, 2)
    tracker.begin_or_continue("mine", USER_ID, 2)

    descriptors = ResumeService(db).list_incomplete(USER_ID)

    assert [d.track_id for d in descriptors] == ["mine"]
    assert descriptors[0].next_chunk == 0


def test_fully_received_upload_is_still_listed_until_finalized(db, upload):
    ack = upload(b"z" * 400)

    descriptors = ResumeService(db).list_incomplete(USER_ID)

    assert [d.track_id for d in descriptors] == [ack.track_id]
    assert descriptors[0].next_chunk == descriptors[0].total_chunks
