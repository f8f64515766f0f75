from __future__ import annotations

import logging
import re
import threading
from collections.abc import Callable
from pathlib import Path

from .collection import Collection, SharedState
from .disk_store import DiskRecordFile
from .interfaces import RecordFile
from .locks import COLLECTION_LOCKS
from .memory_store import MemoryRecordFile
from .paths import collection_path, ensure_dir
from .schema import CollectionSchema

logger = logging.getLogger(__name__)

COLLECTION_NAME_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")

RecordFileFactory = Callable[[str], RecordFile]


class _LiveMirrors:
    """
    Process-wide map from storage key to the SharedState loaded from it.

    Every store that opens the same file gets the same mirror and lock, so
    their read-modify-write cycles are serialized against each other. Callers
    hold COLLECTION_LOCKS.lock_for(key) around every method here.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._mirrors: dict[str, SharedState] = {}

    def get(self, key: str) -> SharedState | None:
        with self._guard:
            return self._mirrors.get(key)

    def put(self, key: str, shared: SharedState) -> SharedState | None:
        """Install shared for key and return the mirror it replaces."""
        with self._guard:
            previous = self._mirrors.get(key)
            self._mirrors[key] = shared
            return previous

    def release(self, key: str, shared: SharedState) -> None:
        with self._guard:
            shared.refs -= 1
            if shared.refs <= 0 and self._mirrors.get(key) is shared:
                del self._mirrors[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._mirrors)


LIVE_MIRRORS = _LiveMirrors()


class DocumentStore:
    """
    Opens and tracks named collections.

    Construct one per application (with a data directory, or a backing
    factory) and hand it to whoever needs it; the store keeps one Collection
    handle per name. Stores in the same process that open the same file share
    its in-memory mirror and lock, so they never overwrite each other.

    Only one process may use a given data directory. Atomic replaces keep the
    files intact if two processes share it, but their updates can still
    overwrite each other.
    """

    def __init__(self, base_dir: Path | str | None = None, *, backing: RecordFileFactory | None = None):
        if (base_dir is None) == (backing is None):
            raise ValueError("pass exactly one of base_dir or backing")
        if base_dir is not None:
            root = ensure_dir(Path(base_dir))
            self._base_dir: Path | None = root
            self._backing: RecordFileFactory = lambda name: DiskRecordFile(collection_path(root, name))
        else:
            self._base_dir = None
            self._backing = backing  # type: ignore[assignment]
        self._guard = threading.Lock()
        self._open: dict[str, tuple[Collection, str]] = {}

    @classmethod
    def in_memory(cls) -> "DocumentStore":
        files: dict[str, MemoryRecordFile] = {}

        def factory(name: str) -> RecordFile:
            # Reopening a name sees what the previous handle saved.
            if name not in files:
                files[name] = MemoryRecordFile(name)
            return files[name]

        return cls(backing=factory)

    @property
    def base_dir(self) -> Path | None:
        return self._base_dir

    def collections(self) -> list[str]:
        with self._guard:
            return sorted(self._open)

    def open(self, name: str, schema: CollectionSchema) -> Collection:
        _check_name(name)
        backing = self._backing(name)
        key = backing.key
        lock = COLLECTION_LOCKS.lock_for(key)
        with lock:
            with self._guard:
                entry = self._open.get(name)
            if entry is not None and not entry[0].closed:
                existing = entry[0]
                if existing.schema != schema:
                    raise ValueError(f"collection {name!r} is already open with a different schema")
                return existing
            if entry is not None:
                self._forget(name)

            shared = LIVE_MIRRORS.get(key)
            if shared is None:
                shared = SharedState(self._load(name, backing), lock)
                LIVE_MIRRORS.put(key, shared)
            else:
                logger.info("COLLECTION OPEN: %s shares the live mirror of %s", name, backing.location)
            shared.refs += 1

            coll = Collection(name, schema, backing, shared)
            with self._guard:
                self._open[name] = (coll, key)
            return coll

    def reset(self, name: str, schema: CollectionSchema) -> Collection:
        """
        Operator repair: move the stored payload aside and start the collection
        empty. The old payload is kept next to the original, never deleted.
        Every handle on the old payload, in any store, is closed.
        """
        _check_name(name)
        backing = self._backing(name)
        key = backing.key
        lock = COLLECTION_LOCKS.lock_for(key)
        with lock:
            self._forget(name)
            moved_to = backing.quarantine()
            if moved_to is not None:
                logger.warning("COLLECTION RESET: %s moved previous payload to %s", name, moved_to)
            backing.save([])

            shared = SharedState([], lock)
            shared.refs = 1
            previous = LIVE_MIRRORS.put(key, shared)
            if previous is not None:
                previous.retired = True

            coll = Collection(name, schema, backing, shared)
            with self._guard:
                self._open[name] = (coll, key)
            return coll

    def close(self, name: str) -> None:
        with self._guard:
            entry = self._open.get(name)
        if entry is None:
            return
        with COLLECTION_LOCKS.lock_for(entry[1]):
            self._forget(name)

    def close_all(self) -> None:
        for name in self.collections():
            self.close(name)

    def _forget(self, name: str) -> None:
        with self._guard:
            entry = self._open.pop(name, None)
        if entry is None:
            return
        coll, key = entry
        coll._close()
        LIVE_MIRRORS.release(key, coll._shared)

    def _load(self, name: str, backing: RecordFile) -> list:
        backing.clean_stale_temp_files()
        records = backing.load()
        if records is None:
            logger.info("COLLECTION OPEN: %s is new; initializing at %s", name, backing.location)
            records = []
            backing.save(records)
        else:
            logger.info("COLLECTION OPEN: %s (%d records) from %s", name, len(records), backing.location)
        return records


def _check_name(name: str) -> None:
    if not isinstance(name, str) or not COLLECTION_NAME_RE.match(name):
        raise ValueError(f"invalid collection name {name!r}")
