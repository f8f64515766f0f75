from __future__ import annotations

import copy
import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import pydantic
from pydantic import BaseModel

from .errors import ValidationError
from .records import GENERATED_FIELDS

logger = logging.getLogger(__name__)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


@dataclass(frozen=True)
class CollectionSchema:
    """
    Per-collection contract supplied by the caller at open time.

    required        fields that must be present (and not None / blank) on insert
    mutable         whitelist for update()
    defaults        values applied to unset fields on insert
    counters        fields increment_counter() may touch
    seed_counters   accept initial counter values on insert (False: counters start at their default)
    strict_updates  reject non-whitelisted update fields (True) or drop them (False)
    allow_extra     accept insert fields the schema does not name
    model           optional pydantic model the materialized record must satisfy
    """

    required: tuple[str, ...] = ()
    mutable: tuple[str, ...] = ()
    defaults: Mapping[str, Any] = field(default_factory=dict)
    counters: tuple[str, ...] = ()
    seed_counters: bool = True
    strict_updates: bool = True
    allow_extra: bool = True
    model: type[BaseModel] | None = None

    def __post_init__(self) -> None:
        for name in ("required", "mutable", "counters"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        object.__setattr__(self, "defaults", dict(self.defaults))
        generated = [f for f in (*self.mutable, *self.counters, *self.defaults) if f in GENERATED_FIELDS]
        if generated:
            raise ValueError(f"generated fields cannot be mutable, defaulted or counters: {generated}")

    @property
    def known_fields(self) -> frozenset[str]:
        return frozenset((*self.required, *self.mutable, *self.defaults, *self.counters))

    def prepare_insert(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        """
        Check caller fields for insert and return them with defaults applied
        (without id/createdAt, which the collection assigns).
        """
        if not isinstance(fields, Mapping):
            raise ValidationError("record fields must be a mapping")
        supplied = [f for f in GENERATED_FIELDS if f in fields]
        if supplied:
            raise ValidationError("fields are assigned by the store", supplied)
        if not self.seed_counters:
            seeded = [f for f in self.counters if f in fields]
            if seeded:
                raise ValidationError("counter fields are maintained by the store", seeded)
        missing = [f for f in self.required if _is_blank(fields.get(f))]
        if missing:
            raise ValidationError("missing required fields", missing)
        if not self.allow_extra:
            unknown = [f for f in fields if f not in self.known_fields]
            if unknown:
                raise ValidationError("unknown fields", unknown)

        doc: dict[str, Any] = {}
        for key, value in self.defaults.items():
            if key not in fields:
                doc[key] = copy.deepcopy(value)
        doc.update(copy.deepcopy(dict(fields)))
        _check_json_values(doc)
        return doc

    def prepare_update(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Filter update fields through the whitelist according to the policy."""
        if not isinstance(fields, Mapping):
            raise ValidationError("update fields must be a mapping")
        allowed = set(self.mutable)
        rejected = [f for f in fields if f not in allowed]
        if rejected and self.strict_updates:
            raise ValidationError("fields are not updatable", rejected)
        if rejected:
            logger.info("COLLECTION UPDATE: dropping non-updatable fields %s", sorted(rejected))
        changes = {k: copy.deepcopy(v) for k, v in fields.items() if k in allowed}
        cleared = [f for f in self.required if f in changes and _is_blank(changes[f])]
        if cleared:
            raise ValidationError("required fields cannot be cleared", cleared)
        _check_json_values(changes)
        return changes

    def check_counter(self, name: str) -> None:
        if name not in self.counters:
            raise ValidationError("not a counter field", [name])

    def materialize(self, record: dict[str, Any]) -> dict[str, Any]:
        """Run the optional pydantic model over a complete record."""
        if self.model is None:
            return record
        try:
            parsed = self.model.model_validate(record)
        except pydantic.ValidationError as e:
            bad = {str(err["loc"][0]) for err in e.errors() if err.get("loc")}
            raise ValidationError("invalid field values", bad or ["<record>"]) from e
        return parsed.model_dump(mode="json")


def _check_json_values(doc: Mapping[str, Any]) -> None:
    bad = []
    for key, value in doc.items():
        if not isinstance(key, str):
            bad.append(repr(key))
            continue
        try:
            json.dumps(value, allow_nan=False)
        except (TypeError, ValueError):
            bad.append(key)
    if bad:
        raise ValidationError("values are not JSON-serializable", bad)
