from __future__ import annotations
import os
import random
import re
import warnings
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from .config import DatabaseConfig
from .errors import (
    BackupNotFoundError,
    ConditionError,
    InvalidPatternError,
    KeyNotFoundError,
    TransactionError,
)
from .progress import Progress, ProgressCallback
from .query import Condition
from .schema import Schema
from .storage import FileStorage, read_document
from .store import Record, RecordStore
from .utils import deep_copy, value_text


class Database:
    """
    File-backed document store: named collections of schema-less records kept
    in memory and mirrored into a single JSON file.

    In auto-commit mode (default) every mutation rewrites the file. In manual
    mode the file lags behind memory until commit().
    """
    def __init__(
        self,
        path: str,
        *,
        auto_commit: bool = True,
        verbose: bool = False,
        default_values: Optional[Dict[str, Dict[str, Any]]] = None,
        pretty: bool = False,
        schemas: Optional[Dict[str, Mapping[str, Any]]] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> None:
        config = DatabaseConfig(
            file_path=path,
            auto_commit=auto_commit,
            verbose=verbose,
            default_values=default_values or {},
            pretty=pretty,
        )
        self._setup(config, schemas, on_progress)

    @classmethod
    def from_config(
        cls,
        config: DatabaseConfig,
        *,
        schemas: Optional[Dict[str, Mapping[str, Any]]] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> "Database":
        db = cls.__new__(cls)
        db._setup(config, schemas, on_progress)
        return db

    def _setup(self, config: DatabaseConfig, schemas, on_progress) -> None:
        self.config = config
        self.path = config.file_path
        self._auto_commit = config.auto_commit
        self._fs = FileStorage(config.file_path, pretty=config.pretty, indent=config.indent)
        self._progress = Progress(on_progress, verbose=config.verbose)
        self._store = RecordStore()
        self._tx_depth = 0
        self._pending = False
        for name, defaults in config.default_values.items():
            self._store.set_defaults(name, defaults)
        for name, rules in (schemas or {}).items():
            self._store.set_schema(name, rules)
        self._open()

    def _open(self) -> None:
        """
        Load the backing file if present. A missing file is an empty database;
        it is created lazily on the first write.
        """
        self._progress.emit("open.start", 0)
        self._store.load(self._fs.read())
        n = len(self._store.collections)
        self._progress.notice("open.done", f"Opened '{self.path}' with {n} collection(s).")

    def __repr__(self) -> str:
        mode = "auto" if self._auto_commit else "manual"
        return f"Database(path={self.path!r}, collections={len(self._store.collections)}, commit={mode})"

    # ----- Persistence control -----

    @property
    def auto_commit(self) -> bool:
        return self._auto_commit

    @property
    def verbose(self) -> bool:
        return self._progress.verbose

    @property
    def pending(self) -> bool:
        """True when memory holds mutations not yet written to the backing file."""
        return self._pending

    def set_auto_commit(self, auto_commit: bool = True) -> None:
        self._auto_commit = bool(auto_commit)
        self._progress.notice("config.auto_commit", f"Auto-commit {'enabled' if self._auto_commit else 'disabled'}.")

    def set_verbose(self, verbose: bool = True) -> None:
        self._progress.verbose = bool(verbose)

    def commit(self) -> None:
        """Write the current in-memory state to the backing file."""
        self._flush()
        self._progress.notice("commit.done", f"Committed changes to '{self.path}'.")

    def _flush(self) -> None:
        self._fs.write(self._store.collections)
        self._pending = False

    def _changed(self, phase: str, msg: str) -> None:
        # Called after every successful mutation
        self._pending = True
        if self._tx_depth == 0 and self._auto_commit:
            self._flush()
        self._progress.notice(phase, msg)

    def backup(self, backup_path: str) -> None:
        self._fs.write_to(os.fspath(backup_path), self._store.collections)
        self._progress.notice("backup.done", f"Backup written to '{backup_path}'.")

    def restore(self, backup_path: str) -> None:
        """
        Replace the whole in-memory state with the content of a backup file.
        """
        backup_path = os.fspath(backup_path)
        if not os.path.isfile(backup_path):
            raise BackupNotFoundError(f"Backup file '{backup_path}' does not exist.")
        self._store.load(read_document(backup_path))
        self._changed("restore.done", f"Restored database from '{backup_path}'.")

    # ----- Transactions -----

    def transaction(self, body: Callable[[], Any]) -> None:
        """
        Run `body` (no arguments) against this database as a single unit.
        On success the cumulative result is flushed once (auto-commit mode).
        On any exception the collections are restored from a snapshot taken
        before `body` ran, and TransactionError wrapping the cause is raised.
        KeyboardInterrupt and SystemExit roll back too but propagate unwrapped.
        """
        if not callable(body):
            raise TypeError("'body' must be callable")
        snapshot = self._store.snapshot()
        pending = self._pending
        self._progress.emit("transaction.start", 0)
        self._tx_depth += 1
        try:
            body()
        except BaseException as e:
            self._store.load(snapshot)
            self._pending = pending
            self._progress.emit("transaction.rollback", 100, str(e) or type(e).__name__)
            # Interrupts and exits keep their own type; everything else is wrapped
            if not isinstance(e, Exception):
                raise
            raise TransactionError(e) from e
        finally:
            self._tx_depth -= 1
        if self._tx_depth == 0 and self._auto_commit and self._pending:
            self._flush()
        self._progress.notice("transaction.commit", "Transaction completed.")

    # ----- Schemas / default values -----

    def set_schema(self, collection: str, rules: Optional[Mapping[str, Any]]) -> None:
        """Bind validation rules to a collection; empty or None removes them."""
        self._store.set_schema(collection, rules)

    def get_schema(self, collection: str) -> Optional[Schema]:
        return self._store.schemas.get(collection)

    def set_default_values(self, collection: str, defaults: Optional[Mapping[str, Any]]) -> None:
        self._store.set_defaults(collection, defaults)

    @property
    def default_values(self) -> Dict[str, Record]:
        return deep_copy(self._store.defaults)

    def insert_default_values(self, collection: str, defaults: Mapping[str, Any], replace_existing: bool = False) -> None:
        """
        Apply `defaults` to every existing record of `collection`.
        Record values win unless `replace_existing` is set.
        """
        n = self._store.apply_defaults(collection, defaults, replace_existing)
        self._changed("defaults.done", f"Default values applied to {n} record(s) in '{collection}'.")

    # ----- Mutations -----

    def ensure_collection(self, collection: str) -> None:
        if self._store.ensure_collection(collection):
            self._changed("collection.create", f"Collection '{collection}' created.")

    def insert(self, collection: str, record: Mapping[str, Any]) -> None:
        self._store.insert(collection, record)
        self._changed("insert.done", f"Record inserted into '{collection}'.")

    def bulk_insert(self, collection: str, records: Iterable[Mapping[str, Any]]) -> None:
        n = self._store.bulk_insert(collection, records)
        self._changed("bulk_insert.done", f"{n} record(s) inserted into '{collection}'.")

    def update(self, collection: str, key: str, value: Any, new_data: Mapping[str, Any]) -> None:
        n = self._store.update(collection, key, value, new_data)
        self._changed("update.done", f"{n} record(s) updated in '{collection}' where '{key}' = '{value}'.")

    def upsert(self, collection: str, key: str, value: Any, new_data: Mapping[str, Any]) -> None:
        inserted = self._store.upsert(collection, key, value, new_data)
        action = "inserted into" if inserted else "updated in"
        self._changed("upsert.done", f"Record {action} '{collection}' where '{key}' = '{value}'.")

    def delete(self, collection: str, key: str, value: Any) -> None:
        n = self._store.delete(collection, key, value)
        self._changed("delete.done", f"{n} record(s) deleted from '{collection}' where '{key}' = '{value}'.")

    def clear(self, collection: str) -> None:
        self._store.clear(collection)
        self._changed("clear.done", f"Collection '{collection}' cleared.")

    def drop(self, collection: str) -> None:
        self._store.drop(collection)
        self._changed("drop.done", f"Collection '{collection}' dropped.")

    def drop_all(self) -> None:
        self._store.drop_all()
        self._changed("drop_all.done", "All collections dropped.")

    def rename_collection(self, old_name: str, new_name: str) -> None:
        self._store.rename(old_name, new_name)
        self._changed("rename.done", f"Collection '{old_name}' renamed to '{new_name}'.")

    def clone_collection(self, from_collection: str, to_collection: str) -> None:
        self._store.clone(from_collection, to_collection)
        self._changed("clone.done", f"Collection '{from_collection}' cloned to '{to_collection}'.")

    # ----- Reads -----

    def get_data(self) -> Dict[str, List[Record]]:
        return deep_copy(self._store.collections)

    def get_data_collection(self, collection: str) -> List[Record]:
        return deep_copy(self._store.require(collection))

    def get_data_key(self, collection: str, key: str) -> List[Any]:
        records = self._store.require(collection)
        if not self._store.has_key(collection, key):
            raise KeyNotFoundError(collection, key)
        return [deep_copy(rec[key]) for rec in records if key in rec]

    def find(self, collection: str, key: str, value: Any) -> List[Record]:
        idx = self._store.find_indices(collection, key, value)
        if not idx:
            self._progress.info("find.empty", f"No record found in '{collection}' where '{key}' = '{value}'.")
            return []
        records = self._store.collections[collection]
        return [deep_copy(records[i]) for i in idx]

    def query(self, collection: str, condition: Optional[str] = None) -> List[Record]:
        """
        Records for which `condition` holds, in store order. Conditions compare
        fields with literals (==, !=, >, <, >=, <=) joined by & and |, e.g.
        "views > 200 & id == 2". An empty condition matches everything.
        """
        records = self._store.require(collection)
        try:
            cond = Condition(condition)
            return [deep_copy(rec) for rec in records if cond.matches(rec)]
        except ConditionError as e:
            raise ConditionError(condition or "", e.reason) from e

    def filter(self, collection: str, predicate: Callable[[Record], Any]) -> List[Record]:
        """
        Records for which `predicate(record)` returns a truthy result. A
        predicate that raises excludes the record.
        """
        if not callable(predicate):
            raise TypeError("'predicate' must be callable")
        records = self._store.require(collection)
        out: List[Record] = []
        for rec in records:
            candidate = deep_copy(rec)
            try:
                keep = bool(predicate(candidate))
            except Exception:
                keep = False
            if keep:
                out.append(deep_copy(rec))
        return out

    def search(self, collection: str, key: str, term: Any, ignore_case: bool = False) -> List[Record]:
        """
        Records whose `key` value, as text, contains the regular expression `term`.
        """
        records = self._store.require(collection)
        if not self._store.has_key(collection, key):
            raise KeyNotFoundError(collection, key)
        try:
            pattern = re.compile(value_text(term), re.IGNORECASE if ignore_case else 0)
        except re.error as e:
            raise InvalidPatternError(value_text(term), str(e)) from e
        return [deep_copy(rec) for rec in records if key in rec and pattern.search(value_text(rec[key]))]

    def count(self, collection: str) -> int:
        return len(self._store.require(collection))

    def list_collections(self) -> List[str]:
        return list(self._store.collections)

    def exists_collection(self, collection: str) -> bool:
        return collection in self._store.collections

    def exists_key(self, collection: str, key: str) -> bool:
        return self._store.has_key(collection, key)

    def exists_value(self, collection: str, key: str, value: Any) -> bool:
        return bool(self._store.find_indices(collection, key, value))

    def list_keys(self, collection: str) -> List[str]:
        keys: Dict[str, None] = {}
        for rec in self._store.require(collection):
            for k in rec:
                keys.setdefault(k, None)
        return list(keys)

    def count_values(self, collection: str, key: str) -> Dict[str, int]:
        """
        Occurrences of each value of `key`, keyed and ordered by the value's text
        form, the same form `==` compares. `true` and `1` are distinct keys;
        arrays and objects are counted under their canonical JSON text.
        """
        records = self._store.require(collection)
        if not self._store.has_key(collection, key):
            raise KeyNotFoundError(collection, key)
        counts: Dict[str, int] = {}
        for rec in records:
            if key not in rec:
                continue
            label = value_text(rec[key])
            counts[label] = counts.get(label, 0) + 1
        return dict(sorted(counts.items()))

    def sample_records(self, collection: str, n: int, replace: bool = False, seed: Optional[int] = None) -> List[Record]:
        records = self._store.require(collection)
        if n < 0:
            raise ValueError("'n' must be non-negative")
        rng = random.Random(seed)
        if replace:
            if not records:
                return []
            return [deep_copy(rng.choice(records)) for _ in range(n)]
        if n > len(records):
            warnings.warn(
                f"Requested {n} records but '{collection}' holds {len(records)}. Returning all records.",
                UserWarning,
                stacklevel=2,
            )
            n = len(records)
        return [deep_copy(rec) for rec in rng.sample(records, n)]
