from __future__ import annotations

from .catalog import IMAGE_SCHEMA, IMAGES, QUIZ_SCHEMA, QUIZZES, ImageRecord, QuizRecord
from .collection import Collection
from .disk_store import DiskRecordFile
from .errors import (
    DocumentStoreError,
    NotFoundError,
    StorageCorruptError,
    StorageIOError,
    ValidationError,
)
from .memory_store import MemoryRecordFile
from .query import LATEST, POPULAR, RecordSnapshot, SortSpec
from .repositories import AsyncCollection
from .schema import CollectionSchema
from .store import DocumentStore

__all__ = [
    "DocumentStore",
    "Collection",
    "AsyncCollection",
    "CollectionSchema",
    "RecordSnapshot",
    "SortSpec",
    "LATEST",
    "POPULAR",
    "DiskRecordFile",
    "MemoryRecordFile",
    "DocumentStoreError",
    "ValidationError",
    "NotFoundError",
    "StorageCorruptError",
    "StorageIOError",
    "QuizRecord",
    "ImageRecord",
    "QUIZ_SCHEMA",
    "IMAGE_SCHEMA",
    "QUIZZES",
    "IMAGES",
]
