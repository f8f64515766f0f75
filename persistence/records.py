"""
Record-level helpers shared by the storage backends and collections:
timestamps, id allocation and payload checks.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any

from .errors import StorageCorruptError

ID_FIELD = "id"
CREATED_AT_FIELD = "createdAt"
GENERATED_FIELDS = (ID_FIELD, CREATED_AT_FIELD)


def utc_timestamp(epoch_ms: int) -> str:
    """ISO-8601 UTC with milliseconds and a Z suffix, e.g. 2024-05-01T12:00:00.123Z."""
    dt = datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{epoch_ms % 1000:03d}Z"


def now_ms() -> int:
    return time.time_ns() // 1_000_000


class IdAllocator:
    """
    Millisecond-timestamp ids that are strictly increasing within a collection.

    A candidate equal to or below the last issued id, or already taken by a
    loaded record, is bumped until it is free, so two inserts in the same
    millisecond still get distinct ids.
    """

    def __init__(self, existing_ids: Iterable[str] = (), clock=now_ms) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._last = 0
        for rid in existing_ids:
            if rid.isdigit():
                self._last = max(self._last, int(rid))

    def allocate(self, taken: set[str] | dict[str, Any]) -> tuple[str, int]:
        """Return (id, epoch_ms) for a new record."""
        with self._lock:
            stamp = self._clock()
            candidate = max(stamp, self._last + 1)
            while str(candidate) in taken:
                candidate += 1
            self._last = candidate
            return str(candidate), stamp


def check_payload(payload: Any, location: str) -> list[dict[str, Any]]:
    """
    Verify that a decoded payload is a list of records with string ids and
    createdAt values and no duplicate ids.
    """
    if not isinstance(payload, list):
        raise StorageCorruptError(location, f"expected a JSON array, got {type(payload).__name__}")
    seen: set[str] = set()
    for pos, rec in enumerate(payload):
        if not isinstance(rec, dict):
            raise StorageCorruptError(location, f"item {pos} is not an object")
        rid = rec.get(ID_FIELD)
        if not isinstance(rid, str) or not rid:
            raise StorageCorruptError(location, f"item {pos} has no string id")
        if not isinstance(rec.get(CREATED_AT_FIELD), str):
            raise StorageCorruptError(location, f"item {pos} ({rid}) has no createdAt")
        if rid in seen:
            raise StorageCorruptError(location, f"duplicate id {rid!r}")
        seen.add(rid)
    return payload
