from __future__ import annotations
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .errors import (
    CollectionExistsError,
    CollectionNotFoundError,
    InvalidRecordError,
    KeyNotFoundError,
    NoMatchError,
    ValidationError,
)
from .query import compare
from .schema import Schema
from .utils import deep_copy, is_json_value

Record = Dict[str, Any]
Collections = Dict[str, List[Record]]


def check_record(record: Any, what: str = "record") -> None:
    """
    A record is a non-empty field map with non-empty string field names
    and JSON-compatible values.
    """
    if not isinstance(record, Mapping) or not record:
        raise InvalidRecordError(f"'{what}' must be a non-empty mapping with valid field names.")
    for k, v in record.items():
        if not isinstance(k, str) or not k:
            raise InvalidRecordError(f"'{what}' has an invalid field name {k!r}; field names must be non-empty strings.")
        if not is_json_value(v):
            raise InvalidRecordError(f"'{what}' field '{k}' holds a value that is not JSON-compatible: {v!r}")


def merge_defaults(defaults: Mapping[str, Any], record: Mapping[str, Any]) -> Record:
    # Defaults fill the gaps; explicit fields always win
    merged: Record = {k: deep_copy(v) for k, v in defaults.items() if k not in record}
    merged.update(deep_copy(dict(record)))
    return merged


class RecordStore:
    """
    In-memory collections: name -> ordered list of records.
    Owns per-collection schemas and default values. Knows nothing about files;
    the owning Database decides when to persist.
    """
    def __init__(self, collections: Optional[Collections] = None) -> None:
        self.collections: Collections = collections if collections is not None else {}
        self.schemas: Dict[str, Schema] = {}
        self.defaults: Dict[str, Record] = {}

    # ----- Collection helpers -----

    def require(self, collection: str) -> List[Record]:
        try:
            return self.collections[collection]
        except KeyError:
            raise CollectionNotFoundError(collection) from None

    def ensure_collection(self, collection: str) -> bool:
        if not isinstance(collection, str) or not collection:
            raise ValidationError(f"collection name must be a non-empty string, got {collection!r}")
        if collection in self.collections:
            return False
        self.collections[collection] = []
        return True

    def has_key(self, collection: str, key: str) -> bool:
        return any(key in rec for rec in self.require(collection))

    def find_indices(self, collection: str, key: str, value: Any) -> List[int]:
        records = self.require(collection)
        if not any(key in rec for rec in records):
            raise KeyNotFoundError(collection, key)
        return [i for i, rec in enumerate(records) if key in rec and compare("==", rec[key], value)]

    # ----- Schema / defaults -----

    def set_schema(self, collection: str, rules: Optional[Mapping[str, Any]]) -> None:
        if not rules:
            self.schemas.pop(collection, None)
            return
        self.schemas[collection] = rules if isinstance(rules, Schema) else Schema(rules)

    def set_defaults(self, collection: str, defaults: Optional[Mapping[str, Any]]) -> None:
        if not defaults:
            self.defaults.pop(collection, None)
            return
        check_record(defaults, "default_values")
        self.defaults[collection] = deep_copy(dict(defaults))

    def _validate(self, collection: str, record: Mapping[str, Any]) -> None:
        schema = self.schemas.get(collection)
        if schema is not None:
            schema.validate(record, collection)

    def _prepare(self, collection: str, record: Mapping[str, Any]) -> Record:
        merged = merge_defaults(self.defaults.get(collection, {}), record)
        self._validate(collection, merged)
        return merged

    # ----- Mutations -----

    def insert(self, collection: str, record: Mapping[str, Any]) -> Record:
        check_record(record)
        prepared = self._prepare(collection, record)
        self.ensure_collection(collection)
        self.collections[collection].append(prepared)
        return prepared

    def bulk_insert(self, collection: str, records: Iterable[Mapping[str, Any]]) -> int:
        if isinstance(records, Mapping) or not isinstance(records, Iterable):
            raise InvalidRecordError("'records' must be a non-empty list of mappings.")
        records = list(records)
        if not records:
            raise InvalidRecordError("'records' must be a non-empty list of mappings.")
        for i, rec in enumerate(records):
            check_record(rec, f"records[{i}]")
        # Whole batch is prepared before any record is appended
        prepared = [self._prepare(collection, rec) for rec in records]
        self.ensure_collection(collection)
        self.collections[collection].extend(prepared)
        return len(prepared)

    def update(self, collection: str, key: str, value: Any, patch: Mapping[str, Any]) -> int:
        check_record(patch, "patch")
        idx = self.find_indices(collection, key, value)
        if not idx:
            raise NoMatchError(collection, key, value)
        records = self.collections[collection]
        merged: List[Record] = []
        for i in idx:
            rec = dict(records[i])
            rec.update(deep_copy(dict(patch)))
            self._validate(collection, rec)
            merged.append(rec)
        for i, rec in zip(idx, merged):
            records[i] = rec
        return len(idx)

    def upsert(self, collection: str, key: str, value: Any, patch: Mapping[str, Any]) -> bool:
        """
        Update records matching (key, value), or insert {key: value, **patch}.
        Returns True when a new record was inserted.
        """
        self.require(collection)
        check_record(patch, "patch")
        try:
            matched = bool(self.find_indices(collection, key, value))
        except KeyNotFoundError:
            matched = False
        if matched:
            self.update(collection, key, value, patch)
            return False
        record: Record = {key: value}
        record.update(patch)
        self.insert(collection, record)
        return True

    def delete(self, collection: str, key: str, value: Any) -> int:
        idx = self.find_indices(collection, key, value)
        if not idx:
            raise NoMatchError(collection, key, value)
        drop = set(idx)
        self.collections[collection] = [r for i, r in enumerate(self.collections[collection]) if i not in drop]
        return len(idx)

    def clear(self, collection: str) -> int:
        n = len(self.require(collection))
        self.collections[collection] = []
        return n

    def drop(self, collection: str) -> None:
        self.require(collection)
        del self.collections[collection]

    def drop_all(self) -> int:
        n = len(self.collections)
        self.collections.clear()
        return n

    def rename(self, old: str, new: str) -> None:
        self.require(old)
        if new in self.collections:
            raise CollectionExistsError(new)
        if not isinstance(new, str) or not new:
            raise ValidationError(f"collection name must be a non-empty string, got {new!r}")
        # Same position in the mapping, new name
        self.collections = {(new if name == old else name): records for name, records in self.collections.items()}

    def clone(self, source: str, target: str) -> int:
        records = self.require(source)
        if target in self.collections:
            raise CollectionExistsError(target)
        self.ensure_collection(target)
        self.collections[target] = deep_copy(records)
        return len(records)

    def apply_defaults(self, collection: str, defaults: Mapping[str, Any], replace_existing: bool = False) -> int:
        check_record(defaults, "default_values")
        records = self.require(collection)
        updated: List[Record] = []
        for rec in records:
            if replace_existing:
                new = dict(rec)
                new.update(deep_copy(dict(defaults)))
            else:
                new = merge_defaults(defaults, rec)
            self._validate(collection, new)
            updated.append(new)
        self.collections[collection] = updated
        return len(updated)

    # ----- Snapshots -----

    def snapshot(self) -> Collections:
        return deep_copy(self.collections)

    def load(self, collections: Collections) -> None:
        self.collections = collections
