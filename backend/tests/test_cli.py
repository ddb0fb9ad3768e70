"""Tests for CLI commands."""
import pytest
from typer.testing import CliRunner
from tideway.cli.main import app

from conftest import USER_ID, TestingSessionLocal, engine

runner = CliRunner()

DATA = b"q" * 1000


@pytest.fixture(autouse=True)
def cli_database(db, monkeypatch):
    """Run CLI commands against the test database."""
    monkeypatch.setattr("tideway.cli.uploads.SessionLocal", TestingSessionLocal)


@pytest.fixture(autouse=True)
def fixed_decoder(monkeypatch):
    from conftest import FixedDecoder
    monkeypatch.setattr("tideway.services.finalizer.AudioDecoder", FixedDecoder)


def test_version():
    """Test version command."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "Tideway" in result.stdout


def test_status(monkeypatch, complete_track):
    monkeypatch.setattr("tideway.database.engine", engine)
    monkeypatch.setattr("tideway.database.SessionLocal", TestingSessionLocal)
    complete_track()

    result = runner.invoke(app, ["status"])

    assert result.exit_code == 0
    assert "Connected" in result.stdout
    assert "complete" in result.stdout


def test_incomplete(tracker):
    tracker.begin_or_continue("t1", USER_ID, 4)
    tracker.receive_chunk("t1", 0, b"a")

    result = runner.invoke(app, ["uploads", "incomplete", USER_ID])

    assert result.exit_code == 0
    assert "t1" in result.stdout
    assert "1/4" in result.stdout


def test_incomplete_none():
    result = runner.invoke(app, ["uploads", "incomplete", "nobody"])
    assert result.exit_code == 0
    assert "No incomplete uploads" in result.stdout


def test_show_lists_missing_chunks(tracker):
    tracker.begin_or_continue("t1", USER_ID, 6)
    for index in (0, 1, 4):
        tracker.receive_chunk("t1", index, b"a")

    result = runner.invoke(app, ["uploads", "show", "t1"])

    assert result.exit_code == 0
    assert "3/6" in result.stdout
    assert "2-3, 5" in result.stdout


def test_show_unknown():
    result = runner.invoke(app, ["uploads", "show", "nope"])
    assert result.exit_code == 1


def test_finalize(upload):
    ack = upload(DATA)

    result = runner.invoke(app, ["uploads", "finalize", ack.track_id])

    assert result.exit_code == 0
    assert "Complete" in result.stdout

    result = runner.invoke(app, ["uploads", "finalize", ack.track_id])
    assert result.exit_code == 1


def test_recover(upload, db):
    from datetime import datetime, timedelta, timezone
    from tideway.models.upload_session import UploadSession

    ack = upload(DATA)
    session = db.query(UploadSession).filter(UploadSession.track_id == ack.track_id).one()
    session.updated_at = datetime.now(timezone.utc) - timedelta(hours=2)
    db.commit()

    result = runner.invoke(app, ["uploads", "recover", "--older-than", "10"])

    assert result.exit_code == 0
    assert ack.track_id in result.stdout
