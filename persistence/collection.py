from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Callable, Mapping
from typing import Any

from .errors import DocumentStoreError, NotFoundError, ValidationError
from .interfaces import RecordFile
from .query import Predicate, Record, RecordSnapshot, SortSpec, resolve_filter, resolve_sort
from .records import CREATED_AT_FIELD, ID_FIELD, IdAllocator, utc_timestamp
from .schema import CollectionSchema

logger = logging.getLogger(__name__)


class _State:
    """An immutable generation of the collection: records in insertion order plus an id index."""

    __slots__ = ("records", "index")

    def __init__(self, records: tuple[Record, ...]) -> None:
        self.records = records
        self.index = {rec[ID_FIELD]: pos for pos, rec in enumerate(records)}


class SharedState:
    """
    The in-memory mirror of one stored collection, shared by every handle
    opened on the same file in this process.

    lock      serializes mutations (and open/reset/close of the file)
    state     the current published generation
    ids       id allocator seeded from the loaded records
    retired   set by reset(); handles bound to a retired mirror refuse writes
    refs      number of live handles, maintained by the store
    """

    def __init__(self, records: list[Record], lock: threading.Lock | None = None) -> None:
        self.lock = lock or threading.Lock()
        self.state = _State(tuple(records))
        self.ids = IdAllocator(self.state.index)
        self.retired = False
        self.refs = 0


class Collection:
    """
    A named, persisted, ordered set of records.

    Mutations run one at a time under the shared lock. Each one builds the
    next generation of records, persists it through the RecordFile, and only
    then publishes it; a failed write leaves the previous generation (which
    matches what is on storage) in place. Readers grab the current generation
    without taking the lock. Records inside a generation are never modified,
    so handing out the reference is enough for a consistent snapshot.
    """

    def __init__(
        self,
        name: str,
        schema: CollectionSchema,
        backing: RecordFile,
        shared: SharedState | list[Record],
    ) -> None:
        self.name = name
        self.schema = schema
        self._backing = backing
        self._shared = shared if isinstance(shared, SharedState) else SharedState(shared)
        self._closed = False

    def __repr__(self) -> str:
        return f"Collection({self.name!r}, records={len(self)}, location={self._backing.location!r})"

    @property
    def location(self) -> str:
        return self._backing.location

    @property
    def closed(self) -> bool:
        return self._closed or self._shared.retired

    def _close(self) -> None:
        self._closed = True

    @property
    def _state(self) -> _State:
        return self._shared.state

    def __len__(self) -> int:
        return len(self._state.records)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._state.index

    def count(self, filter: Predicate | Mapping[str, Any] | None = None) -> int:
        if filter is None:
            return len(self)
        return len(self.list(filter=filter))

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------
    def get(self, record_id: str) -> Record:
        state = self._state
        pos = state.index.get(record_id)
        if pos is None:
            raise NotFoundError(self.name, record_id)
        return copy.deepcopy(state.records[pos])

    def list(
        self,
        filter: Predicate | Mapping[str, Any] | None = None,
        sort: str | SortSpec | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> RecordSnapshot:
        return RecordSnapshot(
            self._state.records,
            where=resolve_filter(filter),
            order=resolve_sort(sort),
            limit=limit,
            offset=offset,
        )

    # ------------------------------------------------------------------
    # writes
    # ------------------------------------------------------------------
    def insert(self, fields: Mapping[str, Any]) -> Record:
        doc = self.schema.prepare_insert(fields)

        def build(state: _State) -> tuple[tuple[Record, ...], Record]:
            record_id, stamp = self._shared.ids.allocate(state.index)
            record = {**doc, ID_FIELD: record_id, CREATED_AT_FIELD: utc_timestamp(stamp)}
            record = self._materialize(record)
            return state.records + (record,), record

        record = self._commit("insert", build)
        logger.debug("COLLECTION INSERT: %s id=%s", self.name, record[ID_FIELD])
        return copy.deepcopy(record)

    def update(self, record_id: str, fields: Mapping[str, Any]) -> Record:
        changes = self.schema.prepare_update(fields)

        def build(state: _State) -> tuple[tuple[Record, ...], Record]:
            pos = self._position(state, record_id)
            current = state.records[pos]
            record = self._materialize({**current, **changes})
            return _replace_at(state.records, pos, record), record

        record = self._commit("update", build)
        return copy.deepcopy(record)

    def delete(self, record_id: str) -> bool:
        removed = False

        def build(state: _State) -> tuple[tuple[Record, ...], None] | None:
            nonlocal removed
            pos = state.index.get(record_id)
            if pos is None:
                return None
            removed = True
            return state.records[:pos] + state.records[pos + 1 :], None

        self._commit("delete", build)
        if removed:
            logger.debug("COLLECTION DELETE: %s id=%s", self.name, record_id)
        return removed

    def increment_counter(self, record_id: str, field: str, amount: int = 1) -> int:
        """Add a positive amount to a counter field; counters never go down."""
        self.schema.check_counter(field)
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 1:
            raise ValidationError("counter increment must be a positive integer", [field])

        def build(state: _State) -> tuple[tuple[Record, ...], int]:
            pos = self._position(state, record_id)
            current = state.records[pos]
            value = current.get(field, 0)
            if value is None:
                value = 0
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError("counter field holds a non-integer value", [field])
            record = self._materialize({**current, field: value + amount})
            return _replace_at(state.records, pos, record), record[field]

        return self._commit("increment", build)

    # ------------------------------------------------------------------
    # internals
    # ------------------------------------------------------------------
    def _position(self, state: _State, record_id: str) -> int:
        pos = state.index.get(record_id)
        if pos is None:
            raise NotFoundError(self.name, record_id)
        return pos

    def _materialize(self, record: Record) -> Record:
        out = self.schema.materialize(record)
        # A model may not drop or rewrite the generated fields.
        out[ID_FIELD] = record[ID_FIELD]
        out[CREATED_AT_FIELD] = record[CREATED_AT_FIELD]
        return out

    def _commit(self, op: str, build: Callable[[_State], Any]) -> Any:
        """
        Run build() against the current generation under the lock, persist the
        result and publish it. build() returns (new_records, result) or None
        when nothing changes.
        """
        shared = self._shared
        with shared.lock:
            if self.closed:
                raise DocumentStoreError(f"collection {self.name!r} is closed")
            state = shared.state
            outcome = build(state)
            if outcome is None:
                return None
            records, result = outcome
            try:
                self._backing.save(list(records))
            except DocumentStoreError:
                logger.warning("COLLECTION %s: %s write failed; keeping previous state", op.upper(), self.name)
                raise
            shared.state = _State(records)
            return result


def _replace_at(records: tuple[Record, ...], pos: int, record: Record) -> tuple[Record, ...]:
    return records[:pos] + (record,) + records[pos + 1 :]
