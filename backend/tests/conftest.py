"""Pytest fixtures for Tideway tests."""
import io
import struct

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from tideway.main import app
from tideway.config import settings
from tideway.database import Base, get_db
from tideway.exceptions import DecodeError
from tideway.models.track import Track, TrackStatus, new_id
from tideway.services.auth import AuthService
from tideway.services.chunk_store import LocalChunkStore
from tideway.services.finalizer import Finalizer
from tideway.services.upload_tracker import UploadTracker
from tideway.utils.duration import DurationTriple
from tideway.utils.locks import KeyedLock

# In-memory SQLite for tests
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def file_sessions(tmp_path):
    """Session factory on a file database, for tests that use threads."""
    file_engine = create_engine(
        f"sqlite:///{tmp_path / 'threads.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=file_engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=file_engine)
    finally:
        file_engine.dispose()


@pytest.fixture(autouse=True)
def storage(tmp_path, monkeypatch):
    """Point every storage root at a temporary directory."""
    roots = {}
    for name in ("chunks", "tracks", "thumbnails"):
        path = tmp_path / "data" / name
        path.mkdir(parents=True)
        monkeypatch.setattr(settings, f"storage_{name}", str(path))
        roots[name] = LocalChunkStore(path)
    return roots


@pytest.fixture(scope="function")
def client(db):
    """Create a test client with the test database."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Authorization headers for the test user."""
    token = AuthService().create_token(USER_ID)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_auth_headers():
    """Authorization headers for a second user."""
    token = AuthService().create_token(OTHER_USER_ID)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def locks():
    """Private lock registry so tests never contend with each other."""
    return KeyedLock()


@pytest.fixture
def tracker(db, storage, locks):
    return UploadTracker(db, store=storage["chunks"], locks=locks)


class FixedDecoder:
    """Decoder stub reporting a fixed duration."""

    def __init__(self, seconds: float = 180.0):
        self.seconds = seconds
        self.calls = []

    def decode(self, path):
        self.calls.append(path)
        return DurationTriple.from_seconds(self.seconds)


class BrokenDecoder:
    """Decoder stub that rejects every asset."""

    def decode(self, path):
        raise DecodeError("Unrecognized audio format")


@pytest.fixture
def decoder():
    return FixedDecoder()


@pytest.fixture
def finalizer(db, storage, decoder, locks):
    return Finalizer(
        db,
        store=storage["chunks"],
        track_store=storage["tracks"],
        decoder=decoder,
        locks=locks,
    )


@pytest.fixture
def upload(tracker):
    """Deliver a whole upload through the tracker.

    Returns the ack of the final chunk; nothing is finalized.
    """
    def _upload(data: bytes, total_chunks: int = 4, owner_id: str = USER_ID,
                track_id: str = None, original_name: str = "song.wav"):
        track_id = track_id or new_id()
        tracker.begin_or_continue(
            track_id, owner_id, total_chunks,
            declared_size=len(data), original_name=original_name,
        )
        ack = None
        for index, part in enumerate(split_chunks(data, total_chunks)):
            ack = tracker.receive_chunk(track_id, index, part)
        return ack

    return _upload


@pytest.fixture
def complete_track(db):
    """Factory for tracks that are already finalized."""
    def _complete_track(owner_id: str = USER_ID, title: str = "Test Track",
                        artist: str = "Test Artist", seconds: float = 200.0):
        duration = DurationTriple.from_seconds(seconds)
        track = Track(
            id=new_id(),
            owner_id=owner_id,
            title=title,
            artist=artist,
            file_name=None,
            duration_months=duration.months,
            duration_days=duration.days,
            duration_microseconds=duration.microseconds,
            upload_status=TrackStatus.COMPLETE.value,
        )
        db.add(track)
        db.commit()
        db.refresh(track)
        return track

    return _complete_track


@pytest.fixture
def uploading_track(tracker):
    """Factory for tracks with an open upload session and no chunks yet."""
    def _uploading_track(owner_id: str = USER_ID, total_chunks: int = 3):
        track_id = new_id()
        tracker.begin_or_continue(track_id, owner_id, total_chunks)
        return track_id

    return _uploading_track


def split_chunks(data: bytes, total_chunks: int) -> list:
    """Split bytes into ``total_chunks`` contiguous non-empty parts."""
    size = -(-len(data) // total_chunks)
    parts = [data[i * size:(i + 1) * size] for i in range(total_chunks)]
    assert all(parts), "data too short for the requested chunk count"
    return parts


@pytest.fixture
def real_audio_sample():
    """Generate a minimal valid WAV audio file for testing.

    One second of 16-bit stereo silence at 44.1kHz.
    """
    sample_rate = 44100
    num_channels = 2
    bits_per_sample = 16
    duration_seconds = 1

    num_samples = sample_rate * duration_seconds
    bytes_per_sample = bits_per_sample // 8
    data_size = num_samples * num_channels * bytes_per_sample

    # Generate silence (zeros) as audio data
    audio_data = b'\x00' * data_size

    wav_buffer = io.BytesIO()

    # RIFF header
    wav_buffer.write(b'RIFF')
    wav_buffer.write(struct.pack('<I', 36 + data_size))  # File size - 8
    wav_buffer.write(b'WAVE')

    # fmt chunk
    wav_buffer.write(b'fmt ')
    wav_buffer.write(struct.pack('<I', 16))  # Chunk size
    wav_buffer.write(struct.pack('<H', 1))   # Audio format (PCM)
    wav_buffer.write(struct.pack('<H', num_channels))
    wav_buffer.write(struct.pack('<I', sample_rate))
    wav_buffer.write(struct.pack('<I', sample_rate * num_channels * bytes_per_sample))  # Byte rate
    wav_buffer.write(struct.pack('<H', num_channels * bytes_per_sample))  # Block align
    wav_buffer.write(struct.pack('<H', bits_per_sample))

    # data chunk
    wav_buffer.write(b'data')
    wav_buffer.write(struct.pack('<I', data_size))
    wav_buffer.write(audio_data)

    return wav_buffer.getvalue()


@pytest.fixture
def chunks_of():
    """The chunk splitter, for tests that deliver chunks by hand."""
    return split_chunks
