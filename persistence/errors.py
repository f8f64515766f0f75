from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path


class DocumentStoreError(Exception):
    """Base error for the document store."""


class ValidationError(DocumentStoreError):
    """Caller-supplied fields failed the collection schema."""

    def __init__(self, message: str, fields: Iterable[str] = ()) -> None:
        self.fields = tuple(sorted(set(fields)))
        if self.fields:
            message = f"{message}: {', '.join(self.fields)}"
        super().__init__(message)


class NotFoundError(DocumentStoreError):
    def __init__(self, collection: str, record_id: str) -> None:
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"{collection}: no record with id {record_id!r}")


class StorageCorruptError(DocumentStoreError):
    """
    The persisted payload exists but is not a valid sequence of records.

    The file is left untouched; DocumentStore.reset() is the explicit way out.
    """

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"corrupt collection file {self.path}: {reason}")


class StorageIOError(DocumentStoreError):
    """Writing the collection failed; the previous durable state is intact."""

    def __init__(self, path: Path | str, cause: BaseException) -> None:
        self.path = str(path)
        self.cause = cause
        super().__init__(f"failed to persist {self.path}: {cause!r}")
