"""Durable byte storage for chunk parts and assembled assets."""
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO, Iterable

from tideway.exceptions import StorageError

logger = logging.getLogger(__name__)

# Copy buffer for assembly
COPY_BUFFER_SIZE = 1024 * 1024


def chunk_prefix(track_id: str) -> str:
    """Key prefix holding every chunk part of a track."""
    return f"{track_id}/"


def chunk_key(track_id: str, chunk_index: int) -> str:
    """Key of one chunk part. Zero-padded so lexical order matches index order."""
    return f"{chunk_prefix(track_id)}{chunk_index:08d}.part"


class LocalChunkStore:
    """Filesystem-backed key/value byte store.

    Writes go to a temporary file in the target directory and are renamed
    into place, so a key is either absent or holds a complete value. Writing
    an existing key replaces it.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise StorageError(key, "Key escapes storage root")
        return path

    def put(self, key: str, data: bytes) -> None:
        """Store ``data`` under ``key``, replacing any previous value."""
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".tmp-")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(key, str(e)) from e

    def get_size(self, key: str) -> int:
        """Size in bytes of the value under ``key``."""
        try:
            return self._path(key).stat().st_size
        except OSError as e:
            raise StorageError(key, str(e)) from e

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def open(self, key: str) -> BinaryIO:
        """Open the value under ``key`` for reading."""
        try:
            return open(self._path(key), "rb")
        except OSError as e:
            raise StorageError(key, str(e)) from e

    def local_path(self, key: str) -> Path:
        """Filesystem path of ``key`` (for decoders and streaming)."""
        return self._path(key)

    def assemble(self, keys: Iterable[str], dest: Path) -> int:
        """Concatenate values in order into ``dest``. Returns bytes written."""
        dest = Path(dest)
        written = 0
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=dest.parent, prefix=".assemble-")
            try:
                with os.fdopen(fd, "wb") as out:
                    for key in keys:
                        with self.open(key) as part:
                            while True:
                                buf = part.read(COPY_BUFFER_SIZE)
                                if not buf:
                                    break
                                out.write(buf)
                                written += len(buf)
                    out.flush()
                    os.fsync(out.fileno())
                os.replace(tmp_name, dest)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(str(dest), str(e)) from e
        return written

    def delete_prefix(self, prefix: str) -> None:
        """Remove every value under ``prefix``."""
        path = self._path(prefix.rstrip("/"))
        if not path.exists():
            return
        try:
            shutil.rmtree(path)
        except OSError as e:
            raise StorageError(prefix, str(e)) from e
        logger.debug(f"Removed chunk parts under {prefix}")
