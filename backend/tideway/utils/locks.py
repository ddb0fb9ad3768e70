"""Per-key mutual exclusion for read-modify-write sections.

Serializes work on one logical key (a track, a playlist) inside this process
while leaving other keys uncontended. Cross-process safety comes from the
row locks and compare-and-swap updates the services issue alongside it.
"""
import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class KeyedLock:
    """Registry of reference-counted locks, one per key."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}
        self._waiters: Dict[str, int] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        """Hold the lock for ``key`` for the duration of the block."""
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
                self._waiters[key] = 0
            self._waiters[key] += 1

        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                self._waiters[key] -= 1
                if self._waiters[key] == 0:
                    del self._waiters[key]
                    del self._locks[key]

    def __len__(self) -> int:
        """Number of keys currently held or waited on."""
        with self._guard:
            return len(self._locks)


# Process-wide registry shared by every service instance.
upload_locks = KeyedLock()


def track_key(track_id: str) -> str:
    return f"track:{track_id}"


def playlist_key(playlist_id: str) -> str:
    return f"playlist:{playlist_id}"


def history_key(user_id: str, track_id: str) -> str:
    return f"history:{user_id}:{track_id}"
