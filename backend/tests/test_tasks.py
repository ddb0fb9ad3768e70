"""Tests for background finalization tasks."""
from datetime import datetime, timedelta, timezone

import pytest
from tideway.models.track import Track, TrackStatus
from tideway.models.upload_session import UploadSession
from tideway.tasks.uploads import finalize_upload_task, recover_stalled_finalizations

from conftest import BrokenDecoder, FixedDecoder, TestingSessionLocal

DATA = b"w" * 2048


@pytest.fixture(autouse=True)
def task_database(db, monkeypatch):
    monkeypatch.setattr("tideway.tasks.uploads.SessionLocal", TestingSessionLocal)


def test_finalize_task(upload, db, monkeypatch):
    monkeypatch.setattr("tideway.services.finalizer.AudioDecoder", FixedDecoder)
    ack = upload(DATA)

    result = finalize_upload_task.apply(args=[ack.track_id]).get()

    assert result == {"status": "complete", "track_id": ack.track_id}
    track = db.query(Track).populate_existing().filter(Track.id == ack.track_id).one()
    assert track.upload_status == TrackStatus.COMPLETE.value

    result = finalize_upload_task.apply(args=[ack.track_id]).get()
    assert result["status"] == "skipped"


def test_finalize_task_failure(upload, monkeypatch):
    monkeypatch.setattr("tideway.services.finalizer.AudioDecoder", BrokenDecoder)
    ack = upload(DATA)

    result = finalize_upload_task.apply(args=[ack.track_id]).get()

    assert result["status"] == "failed"
    assert "Unrecognized" in result["error"]


def test_recovery_task(upload, db, monkeypatch):
    monkeypatch.setattr("tideway.services.finalizer.AudioDecoder", FixedDecoder)
    ack = upload(DATA)
    session = db.query(UploadSession).filter(UploadSession.track_id == ack.track_id).one()
    session.updated_at = datetime.now(timezone.utc) - timedelta(hours=2)
    db.commit()

    result = recover_stalled_finalizations.apply(kwargs={"older_than_minutes": 10}).get()

    assert result == {"completed": 1, "failed": 0, "skipped": 0}
