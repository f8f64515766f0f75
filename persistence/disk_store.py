from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any

from json_store import TEMP_SUFFIX, atomic_write_json, read_json, temp_prefix

from .errors import StorageCorruptError, StorageIOError
from .interfaces import RecordFile
from .locks import FILE_LOCKS
from .records import check_payload

logger = logging.getLogger(__name__)


class DiskRecordFile(RecordFile):
    """
    Stores one collection as a JSON array at a fixed path.

    - Missing or empty file loads as None.
    - Anything else that is not a record list raises StorageCorruptError.
    - Writes go through atomic_write_json; failures surface as StorageIOError.
    """

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def location(self) -> str:
        return str(self._path)

    @property
    def key(self) -> str:
        return str(self._path.resolve())

    def exists(self) -> bool:
        return self._path.exists()

    def load(self) -> list[dict[str, Any]] | None:
        lock = FILE_LOCKS.lock_for_path(self._path)
        with lock:
            try:
                raw = read_json(self._path)
            except json.JSONDecodeError as e:
                raise StorageCorruptError(self._path, f"invalid JSON ({e.msg} at line {e.lineno})") from e
            except UnicodeDecodeError as e:
                raise StorageCorruptError(self._path, "not UTF-8 text") from e
            except OSError as e:
                raise StorageIOError(self._path, e) from e
        if raw is None:
            return None
        return check_payload(raw, self.location)

    def save(self, records: list[dict[str, Any]]) -> None:
        lock = FILE_LOCKS.lock_for_path(self._path)
        with lock:
            try:
                atomic_write_json(self._path, records)
            except (OSError, TypeError, ValueError) as e:
                logger.warning("COLLECTION SAVE: failed to write %s: %r", self._path, e)
                raise StorageIOError(self._path, e) from e

    def quarantine(self) -> str | None:
        lock = FILE_LOCKS.lock_for_path(self._path)
        with lock:
            if not self._path.exists():
                return None
            stamp = time.strftime("%Y%m%dT%H%M%S", time.gmtime())
            target = self._path.with_name(f"{self._path.name}.corrupt-{stamp}")
            n = 1
            while target.exists():
                target = self._path.with_name(f"{self._path.name}.corrupt-{stamp}-{n}")
                n += 1
            try:
                self._path.replace(target)
            except OSError as e:
                raise StorageIOError(self._path, e) from e
            return str(target)

    def clean_stale_temp_files(self) -> int:
        removed = 0
        lock = FILE_LOCKS.lock_for_path(self._path)
        with lock:
            if not self._path.parent.exists():
                return 0
            for leftover in self._path.parent.glob(temp_prefix(self._path) + "*" + TEMP_SUFFIX):
                try:
                    leftover.unlink()
                except OSError as e:
                    logger.warning("COLLECTION OPEN: cannot remove stale temp file %s: %r", leftover, e)
                    continue
                logger.warning("COLLECTION OPEN: removed stale temp file %s", leftover)
                removed += 1
        return removed
