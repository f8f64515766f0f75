from __future__ import annotations

from typing import Any, Protocol


class RecordFile(Protocol):
    """
    Durable home of one collection: a single JSON array of record objects.
    """

    @property
    def location(self) -> str:
        """Human-readable location used in errors and logs."""
        ...

    @property
    def key(self) -> str:
        """Identity of the underlying storage; handles with equal keys share one in-memory mirror."""
        ...

    def exists(self) -> bool:
        ...

    def load(self) -> list[dict[str, Any]] | None:
        """
        Return the persisted records, or None when nothing (or only whitespace)
        is stored. Raises StorageCorruptError for anything else that is not a
        well-formed record list.
        """
        ...

    def save(self, records: list[dict[str, Any]]) -> None:
        """Replace the persisted records atomically. Raises StorageIOError."""
        ...

    def quarantine(self) -> str | None:
        """Move the current payload aside and return where it went (None if absent)."""
        ...

    def clean_stale_temp_files(self) -> int:
        """Drop leftovers of interrupted writes; return how many were removed."""
        ...
