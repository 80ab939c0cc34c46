"""
suprimentos/collections.py

In-memory record collections kept in sync with the table store.

Write discipline (optimistic, no rollback):
    clean -> pending_write -> clean
                           -> error   (local change is KEPT, WriteFailed is raised)

The next change notification (or an explicit refresh()) re-reads the whole table and
reconciles the local copy. Nothing is retried.

Reads never raise: a failed select keeps the previous rows and records the error so the
caller can show the setup flow (missing table) or a connection banner (anything else).
"""

from __future__ import annotations

import logging
import time
from threading import Lock, RLock
from typing import Any, Callable, Dict, Iterable, List, Optional

from flask import current_app

from .errors import StoreError, write_error
from .form_fields import sanitize_form_fields
from .seed import repair_form_fields, seed_empty_tables
from .store import TableStore

logger = logging.getLogger(__name__)

CLEAN = "clean"
PENDING_WRITE = "pending_write"
ERROR = "error"

_id_lock = Lock()
_last_millis = 0


def next_millis() -> int:
    """Millisecond timestamp, strictly increasing within the process."""
    global _last_millis
    with _id_lock:
        now = int(time.time() * 1000)
        _last_millis = max(now, _last_millis + 1)
        return _last_millis


class RecordCollection:
    def __init__(
        self,
        table: str,
        store: TableStore,
        order_by: str | None = None,
        descending: bool = False,
        transform: Optional[Callable[[List[Dict[str, Any]]], List[Dict[str, Any]]]] = None,
        strip_keys: Iterable[str] = (),
    ) -> None:
        self.table = table
        self.store = store
        self.order_by = order_by
        self.descending = descending
        self.transform = transform
        self.strip_keys = tuple(strip_keys)

        self.state = CLEAN
        self.last_error: StoreError | None = None
        self.read_error: StoreError | None = None

        self._rows: List[Dict[str, Any]] = []
        self._lock = RLock()
        self._subscription = store.feed.subscribe(table, self._on_change)

    def __repr__(self):
        return f"<RecordCollection {self.table} rows={len(self._rows)} state={self.state}>"

    # -----------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------
    @property
    def rows(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(row) for row in self._rows]

    @property
    def missing(self) -> bool:
        return bool(self.read_error and self.read_error.is_missing_table)

    def get(self, record_id: Any) -> Dict[str, Any] | None:
        with self._lock:
            for row in self._rows:
                if str(row.get("id")) == str(record_id):
                    return dict(row)
        return None

    def refresh(self) -> List[Dict[str, Any]]:
        try:
            rows = self.store.select(self.table, order_by=self.order_by, descending=self.descending)
        except StoreError as exc:
            self.read_error = exc
            logger.warning(
                "collection_read_failed",
                extra={"table": self.table, "code": exc.code, "missing_table": exc.is_missing_table},
            )
            return self.rows

        rows = [self._local(row) for row in rows]
        if self.transform is not None:
            rows = self.transform(rows)

        with self._lock:
            self._rows = rows
            self.read_error = None
        return self.rows

    def _on_change(self, event) -> None:
        self.refresh()

    def close(self) -> None:
        self._subscription.close()

    def _local(self, row: Dict[str, Any]) -> Dict[str, Any]:
        local = dict(row)
        for key in self.strip_keys:
            local.pop(key, None)
        return local

    # -----------------------------------------------------------------
    # Optimistic writes
    # -----------------------------------------------------------------
    def _write(self, operation: Callable[[], Any]) -> None:
        try:
            operation()
        except StoreError as exc:
            with self._lock:
                self.state = ERROR
                self.last_error = exc
            logger.error("collection_write_failed", extra={"table": self.table, "code": exc.code})
            raise write_error(exc) from exc

        with self._lock:
            self.state = CLEAN
            self.last_error = None

    def add(self, row: Dict[str, Any], prepend: bool = False) -> Dict[str, Any]:
        local = self._local(row)
        with self._lock:
            if prepend:
                self._rows.insert(0, local)
            else:
                self._rows.append(local)
            self.state = PENDING_WRITE

        self._write(lambda: self.store.insert(self.table, row))
        return dict(local)

    def update(self, record_id: Any, changes: Dict[str, Any]) -> Dict[str, Any] | None:
        local_changes = self._local(changes)
        with self._lock:
            for row in self._rows:
                if str(row.get("id")) == str(record_id):
                    row.update(local_changes)
            self.state = PENDING_WRITE

        self._write(lambda: self.store.update(self.table, changes, record_id))
        return self.get(record_id)

    def remove(self, record_id: Any) -> None:
        with self._lock:
            self._rows = [row for row in self._rows if str(row.get("id")) != str(record_id)]
            self.state = PENDING_WRITE

        self._write(lambda: self.store.delete(self.table, record_id))

    def replace_all(self, rows: List[Dict[str, Any]]) -> None:
        """Batch save: replace the local list, then upsert every row in order."""
        with self._lock:
            self._rows = [self._local(row) for row in rows]
            self.state = PENDING_WRITE

        def _upsert_each():
            for row in rows:
                self.store.upsert(self.table, row)

        self._write(_upsert_each)


class Workspace:
    """Every collection the dashboard works with, loaded together."""

    def __init__(self, store: TableStore, auto_seed: bool = True) -> None:
        self.store = store
        self.auto_seed = auto_seed
        self.loaded = False
        self.missing_tables: List[str] = []
        self.connection_error: StoreError | None = None

        self.users = RecordCollection("users", store, order_by="id", strip_keys=("password_hash",))
        self.sectors = RecordCollection("sectors", store, order_by="id")
        self.requests = RecordCollection("requests", store, order_by="id", descending=True)
        self.form_fields = RecordCollection("form_fields", store, transform=sanitize_form_fields)
        self.statuses = RecordCollection("statuses", store, order_by="id")
        self.suppliers = RecordCollection("suppliers", store, order_by="name")
        self.price_maps = RecordCollection("price_maps", store, order_by="id", descending=True)
        self.thermal_analyses = RecordCollection("thermal_analyses", store, order_by="id", descending=True)
        self.app_config = RecordCollection("app_config", store, order_by="id")

    def collections(self) -> Dict[str, RecordCollection]:
        return {
            "users": self.users,
            "sectors": self.sectors,
            "requests": self.requests,
            "form_fields": self.form_fields,
            "statuses": self.statuses,
            "suppliers": self.suppliers,
            "price_maps": self.price_maps,
            "thermal_analyses": self.thermal_analyses,
            "app_config": self.app_config,
        }

    def load_all(self) -> Dict[str, Any]:
        for collection in self.collections().values():
            collection.refresh()
        self._collect_read_errors()

        if self.auto_seed and not self.missing_tables and self.connection_error is None:
            seed_empty_tables(self)
            repair_form_fields(self)

        self.loaded = not self.missing_tables and self.connection_error is None
        if self.missing_tables:
            logger.warning("schema_missing", extra={"tables": self.missing_tables})
        return self.status()

    def ensure_loaded(self) -> "Workspace":
        if not self.loaded:
            self.load_all()
        return self

    def _collect_read_errors(self) -> None:
        self.missing_tables = []
        self.connection_error = None
        for name, collection in self.collections().items():
            if collection.missing:
                self.missing_tables.append(name)
            elif collection.read_error is not None and self.connection_error is None:
                self.connection_error = collection.read_error

    def status(self) -> Dict[str, Any]:
        return {
            "ready": not self.missing_tables and self.connection_error is None,
            "missingTables": list(self.missing_tables),
            "connectionError": self.connection_error.message if self.connection_error else None,
        }

    def close(self) -> None:
        for collection in self.collections().values():
            collection.close()


def get_workspace() -> Workspace:
    """The app's Workspace, loaded on first use."""
    return current_app.extensions["suprimentos.workspace"].ensure_loaded()
