from __future__ import annotations

import copy
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from itertools import islice
from typing import Any

from .records import CREATED_AT_FIELD

Record = dict[str, Any]
Predicate = Callable[[Mapping[str, Any]], bool]


@dataclass(frozen=True)
class SortSpec:
    """Sort by key(record); ties keep insertion order (or reverse insertion order when reverse=True)."""

    key: Callable[[Mapping[str, Any]], Any]
    reverse: bool = False


def _views(rec: Mapping[str, Any]) -> Any:
    value = rec.get("views")
    return value if isinstance(value, (int, float)) and not isinstance(value, bool) else 0


LATEST = SortSpec(key=lambda r: r.get(CREATED_AT_FIELD, ""), reverse=True)
POPULAR = SortSpec(key=lambda r: (_views(r), r.get(CREATED_AT_FIELD, "")), reverse=True)

NAMED_SORTS: dict[str, SortSpec | None] = {
    "latest": LATEST,
    "popular": POPULAR,
    "oldest": None,
}


def resolve_sort(sort: str | SortSpec | None) -> SortSpec | None:
    if sort is None or isinstance(sort, SortSpec):
        return sort
    try:
        return NAMED_SORTS[sort]
    except KeyError:
        raise ValueError(f"unknown sort {sort!r} (expected one of {sorted(NAMED_SORTS)})") from None


class FieldEquals:
    """Filter built from a mapping of field -> expected value."""

    def __init__(self, expected: Mapping[str, Any]) -> None:
        self.expected = dict(expected)

    def __call__(self, rec: Mapping[str, Any]) -> bool:
        return all(rec.get(k) == v for k, v in self.expected.items())


def resolve_filter(flt: Predicate | Mapping[str, Any] | None) -> Predicate | None:
    if flt is None or callable(flt):
        return flt
    return FieldEquals(flt)


class RecordSnapshot:
    """
    Read-only view over the records a collection held when list() was called.

    Nothing is filtered or sorted until iteration, and each iteration starts
    over from the same snapshot, yielding fresh copies of the records.
    Caller-supplied predicates and sort keys are handed those copies too, so
    they can never reach the stored records.
    """

    def __init__(
        self,
        records: Sequence[Record],
        *,
        where: Predicate | None = None,
        order: SortSpec | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> None:
        if limit is not None and limit < 0:
            raise ValueError("limit must be >= 0")
        if offset < 0:
            raise ValueError("offset must be >= 0")
        self._records = records
        self._where = where
        self._order = order
        self._limit = limit
        self._offset = offset

    def _runs_caller_code(self) -> bool:
        custom_filter = self._where is not None and not isinstance(self._where, FieldEquals)
        custom_sort = self._order is not None and self._order not in (LATEST, POPULAR)
        return custom_filter or custom_sort

    def _select(self, owned: bool) -> Iterator[Record]:
        rows: Iterator[Record] | list[Record] = iter(self._records)
        if owned:
            rows = (copy.deepcopy(r) for r in rows)
        if self._where is not None:
            rows = (r for r in rows if self._where(r))
        if self._order is not None:
            order = self._order
            indexed = list(enumerate(rows))
            indexed.sort(key=lambda pair: (order.key(pair[1]), pair[0]), reverse=order.reverse)
            rows = (r for _, r in indexed)
        stop = None if self._limit is None else self._offset + self._limit
        return islice(rows, self._offset, stop)

    def __iter__(self) -> Iterator[Record]:
        owned = self._runs_caller_code()
        for rec in self._select(owned):
            yield rec if owned else copy.deepcopy(rec)

    def __len__(self) -> int:
        return sum(1 for _ in self._select(self._runs_caller_code()))

    def total(self) -> int:
        """Number of matching records in the snapshot, ignoring limit and offset."""
        if self._where is None:
            return len(self._records)
        owned = self._runs_caller_code()
        rows = (copy.deepcopy(r) for r in self._records) if owned else iter(self._records)
        return sum(1 for r in rows if self._where(r))

    def first(self) -> Record | None:
        return next(iter(self), None)

    def to_list(self) -> list[Record]:
        return list(self)
