"""Tests for the upload endpoints."""
from unittest.mock import patch

from tideway.exceptions import StorageError
from tideway.models.track import Track, TrackStatus
from tideway.services.chunk_store import LocalChunkStore

from conftest import split_chunks


def _send(client, headers, track_id, index, total, data):
    return client.post(
        f"/api/uploads/{track_id}/chunks",
        data={"chunk_index": str(index), "total_chunks": str(total)},
        files={"chunk": ("blob", data, "application/octet-stream")},
        headers=headers,
    )


def test_requires_auth(client):
    response = client.post("/api/uploads", json={"total_chunks": 2})
    assert response.status_code == 401

    response = client.get("/api/uploads/incomplete", headers={"Authorization": "Bearer junk"})
    assert response.status_code == 401


def test_full_upload_flow(client, db, auth_headers, real_audio_sample):
    response = client.post(
        "/api/uploads",
        json={
            "total_chunks": 3,
            "file_name": "tone.wav",
            "file_size": len(real_audio_sample),
            "title": "Silence",
            "artist": "Nobody",
        },
        headers=auth_headers,
    )
    assert response.status_code == 200
    session = response.json()
    track_id = session["track_id"]
    assert session["next_chunk"] == 0
    assert session["state"] == "uploading"

    parts = split_chunks(real_audio_sample, 3)
    for index in (2, 0):
        response = _send(client, auth_headers, track_id, index, 3, parts[index])
        assert response.status_code == 200
        assert response.json()["state"] == "uploading"

    response = client.get(f"/api/uploads/{track_id}", headers=auth_headers)
    assert response.json()["watermark"] == 0
    assert response.json()["received_chunks"] == 2

    response = _send(client, auth_headers, track_id, 1, 3, parts[1])
    assert response.status_code == 200
    data = response.json()
    assert data["complete"] is True
    assert data["state"] == "complete"
    assert data["watermark"] == 2

    track = db.query(Track).filter(Track.id == track_id).one()
    assert track.upload_status == TrackStatus.COMPLETE.value
    assert track.title == "Silence"

    response = client.get(f"/api/tracks/{track_id}/stream", headers=auth_headers)
    assert response.status_code == 200
    assert response.headers["content-type"] == "audio/wav"
    assert response.content == real_audio_sample

    # Late duplicate is acknowledged without changing anything
    response = _send(client, auth_headers, track_id, 0, 3, parts[0])
    assert response.status_code == 200
    assert response.json()["duplicate"] is True


def test_chunk_opens_session_lazily(client, auth_headers):
    response = _send(client, auth_headers, "lazy-track", 0, 2, b"abc")
    assert response.status_code == 200
    assert response.json()["received_chunks"] == 1
    assert response.json()["total_chunks"] == 2


def test_chunk_errors(client, auth_headers, other_auth_headers):
    _send(client, auth_headers, "t1", 0, 2, b"abc")

    assert _send(client, auth_headers, "t1", 5, 2, b"abc").status_code == 400
    assert _send(client, auth_headers, "t1", 1, 3, b"abc").status_code == 409
    assert _send(client, other_auth_headers, "t1", 1, 2, b"abc").status_code == 403


def test_undecodable_upload_fails(client, db, auth_headers):
    data = b"definitely not audio" * 20
    response = client.post(
        "/api/uploads",
        json={"track_id": "bad", "total_chunks": 2, "file_name": "noise.bin"},
        headers=auth_headers,
    )
    assert response.status_code == 200

    _send(client, auth_headers, "bad", 0, 2, data[:200])
    response = _send(client, auth_headers, "bad", 1, 2, data[200:])
    assert response.status_code == 422

    track = db.query(Track).filter(Track.id == "bad").one()
    assert track.upload_status == TrackStatus.FAILED.value

    # The failed track is not resumable and not streamable
    response = client.get("/api/uploads/incomplete", headers=auth_headers)
    assert response.json()["incomplete_track_info"] == []
    assert client.get("/api/tracks/bad/stream", headers=auth_headers).status_code == 404
    assert _send(client, auth_headers, "bad", 0, 2, data[:200]).status_code == 409


def test_incomplete_uploads(client, auth_headers, other_auth_headers):
    _send(client, auth_headers, "a", 0, 4, b"a")
    _send(client, auth_headers, "a", 1, 4, b"a")
    _send(client, auth_headers, "b", 1, 2, b"b")
    _send(client, other_auth_headers, "c", 0, 2, b"c")

    response = client.get("/api/uploads/incomplete", headers=auth_headers)

    assert response.status_code == 200
    info = {d["track_id"]: d for d in response.json()["incomplete_track_info"]}
    assert set(info) == {"a", "b"}
    assert info["a"]["next_chunk"] == 2
    assert info["b"]["next_chunk"] == 0
    assert info["b"]["received_chunks"] == 1


def test_get_upload_not_found(client, auth_headers):
    response = client.get("/api/uploads/nope", headers=auth_headers)
    assert response.status_code == 404


def test_update_metadata_with_thumbnail(client, auth_headers, other_auth_headers, storage):
    _send(client, auth_headers, "t1", 0, 2, b"abc")

    response = client.put(
        "/api/uploads/t1/metadata",
        data={"title": "New Title"},
        files={"thumbnail": ("cover.png", b"\x89PNG...", "image/png")},
        headers=auth_headers,
    )

    assert response.status_code == 200
    assert response.json()["title"] == "New Title"
    assert response.json()["thumbnail_name"] == "t1.png"
    assert response.json()["upload_status"] == "uploading"
    assert storage["thumbnails"].exists("t1.png")

    response = client.put(
        "/api/uploads/t1/metadata", data={"title": "Hijack"}, headers=other_auth_headers,
    )
    assert response.status_code == 403


def test_storage_failure_returns_503(client, auth_headers):
    with patch.object(LocalChunkStore, "put", side_effect=StorageError("k", "disk full")):
        response = _send(client, auth_headers, "t1", 0, 2, b"abc")
    assert response.status_code == 503

    assert _send(client, auth_headers, "t1", 0, 2, b"abc").status_code == 200


def test_background_finalization_is_queued(client, auth_headers, monkeypatch):
    from tideway.config import settings
    monkeypatch.setattr(settings, "finalize_in_background", True)

    with patch("tideway.api.uploads.finalize_upload_task") as task:
        _send(client, auth_headers, "t1", 1, 2, b"def")
        task.delay.assert_not_called()
        response = _send(client, auth_headers, "t1", 0, 2, b"abc")

    task.delay.assert_called_once_with("t1")
    assert response.json()["complete"] is True
    assert response.json()["state"] == "uploading"


def test_chunk_rejects_overlong_track_id(client, db, auth_headers):
    response = _send(client, auth_headers, "x" * 80, 0, 2, b"abc")

    assert response.status_code == 422
    assert db.query(Track).count() == 0
