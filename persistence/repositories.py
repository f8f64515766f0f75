from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

from .collection import Collection
from .query import Predicate, Record, SortSpec


class AsyncCollection:
    """
    Async wrapper around a Collection.
    Uses asyncio.to_thread to avoid blocking the event loop on file I/O.
    """

    def __init__(self, collection: Collection) -> None:
        self._coll = collection

    @property
    def name(self) -> str:
        return self._coll.name

    @property
    def collection(self) -> Collection:
        return self._coll

    async def insert(self, fields: Mapping[str, Any]) -> Record:
        return await asyncio.to_thread(self._coll.insert, fields)

    async def get(self, record_id: str) -> Record:
        return await asyncio.to_thread(self._coll.get, record_id)

    async def list(
        self,
        filter: Predicate | Mapping[str, Any] | None = None,
        sort: str | SortSpec | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Record]:
        # Materialized here: iterating the snapshot copies records, which is
        # worth keeping off the event loop for large collections.
        snapshot = self._coll.list(filter=filter, sort=sort, limit=limit, offset=offset)
        return await asyncio.to_thread(snapshot.to_list)

    async def page(
        self,
        filter: Predicate | Mapping[str, Any] | None = None,
        sort: str | SortSpec | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> tuple[list[Record], int]:
        """One page of results plus the number of matching records, from a single snapshot."""
        snapshot = self._coll.list(filter=filter, sort=sort, limit=limit, offset=offset)
        return await asyncio.to_thread(lambda: (snapshot.to_list(), snapshot.total()))

    async def update(self, record_id: str, fields: Mapping[str, Any]) -> Record:
        return await asyncio.to_thread(self._coll.update, record_id, fields)

    async def delete(self, record_id: str) -> bool:
        return await asyncio.to_thread(self._coll.delete, record_id)

    async def increment_counter(self, record_id: str, field: str, amount: int = 1) -> int:
        return await asyncio.to_thread(self._coll.increment_counter, record_id, field, amount)

    async def count(self, filter: Predicate | Mapping[str, Any] | None = None) -> int:
        return await asyncio.to_thread(self._coll.count, filter)
