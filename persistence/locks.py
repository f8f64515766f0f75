from __future__ import annotations

import threading
from pathlib import Path


class LockRegistry:
    """
    Hands out one stable lock per key (a resolved file path or a collection
    name) so unrelated collections never contend with each other.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    def lock_for_path(self, path: Path) -> threading.Lock:
        return self.lock_for(str(path.resolve()))

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


# Serializes file I/O on a given path across every store in the process.
FILE_LOCKS = LockRegistry()

# Serializes read-modify-write of a collection across every store in the process.
COLLECTION_LOCKS = LockRegistry()
