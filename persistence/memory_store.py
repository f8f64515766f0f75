from __future__ import annotations

import itertools
import json
import threading
from typing import Any

from json_store import dumps_json

from .errors import StorageCorruptError, StorageIOError
from .interfaces import RecordFile
from .records import check_payload

_SERIALS = itertools.count(1)


class MemoryRecordFile(RecordFile):
    """
    Keeps the serialized collection in memory instead of on disk.

    Useful on ephemeral (serverless) filesystems and in tests. The payload is
    held as JSON text, so loads and saves behave like the disk backend:
    callers never share objects with the stored copy, and unserializable
    values fail the save.
    """

    def __init__(self, name: str, text: str | None = None):
        self._name = name
        self._text = text
        self._quarantined: list[str] = []
        self._lock = threading.Lock()
        self._serial = next(_SERIALS)

    @property
    def location(self) -> str:
        return f"memory://{self._name}"

    @property
    def key(self) -> str:
        return f"{self.location}#{self._serial}"

    @property
    def text(self) -> str | None:
        return self._text

    def exists(self) -> bool:
        return self._text is not None

    def load(self) -> list[dict[str, Any]] | None:
        with self._lock:
            text = self._text
        if text is None or not text.strip():
            return None
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise StorageCorruptError(self.location, f"invalid JSON ({e.msg})") from e
        return check_payload(raw, self.location)

    def save(self, records: list[dict[str, Any]]) -> None:
        try:
            text = dumps_json(records)
        except (TypeError, ValueError) as e:
            raise StorageIOError(self.location, e) from e
        with self._lock:
            self._text = text

    def quarantine(self) -> str | None:
        with self._lock:
            if self._text is None:
                return None
            self._quarantined.append(self._text)
            self._text = None
            return f"{self.location}#corrupt-{len(self._quarantined)}"

    def clean_stale_temp_files(self) -> int:
        return 0
