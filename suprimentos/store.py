"""
suprimentos/store.py

Table API over the record store.

Contract (mirrors the hosted backend the dashboard was built against):
- select(table, filters=None, order_by=None, descending=False) -> list of row dicts
- insert(table, row), update(table, values, match_id), upsert(table, row), delete(table, match_id)
- Failures raise StoreError with the backend's error codes:
    PGRST205  table unknown to the API
    42P01     table registered but not created in the database
    42703     column does not exist (schema lags the application's field set)
    23505     unique violation
    08006     anything else (connection / permission failure)

IMPORTANT:
- update() never sends "id" (the identifier only goes in the match clause) and drops keys whose
  value is None, so a lagging schema does not fail on columns the edit did not touch.
- Keys are validated against the LIVE table columns, not the model, so a database created by an
  older version of the app reports 42703 instead of silently losing data.
- Every successful write commits and publishes a ChangeEvent on the table's channel.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError, SQLAlchemyError

from .errors import (
    CONNECTION_FAILURE_CODE,
    MISSING_COLUMN_CODE,
    UNIQUE_VIOLATION_CODE,
    StoreError,
)
from .extensions import db
from .models import (
    AppConfig,
    FormField,
    PriceMap,
    Request,
    Sector,
    Status,
    Supplier,
    ThermalAnalysis,
    User,
)
from .realtime import DELETE, INSERT, UPDATE, ChangeEvent, ChangeFeed

logger = logging.getLogger(__name__)

TABLES: Dict[str, Any] = {
    "sectors": Sector,
    "users": User,
    "requests": Request,
    "form_fields": FormField,
    "statuses": Status,
    "suppliers": Supplier,
    "price_maps": PriceMap,
    "thermal_analyses": ThermalAnalysis,
    "app_config": AppConfig,
}


def _code_from_db_error(exc: SQLAlchemyError) -> str:
    """Best-effort translation of a DBAPI error into a backend error code."""
    pgcode = getattr(getattr(exc, "orig", None), "pgcode", None)
    if pgcode:
        return str(pgcode)

    if isinstance(exc, IntegrityError):
        return UNIQUE_VIOLATION_CODE

    text = str(getattr(exc, "orig", exc)).lower()
    if isinstance(exc, (OperationalError, ProgrammingError)):
        if "no such table" in text or ("relation" in text and "does not exist" in text):
            return "42P01"
        if "no such column" in text or "has no column" in text or ("column" in text and "does not exist" in text):
            return MISSING_COLUMN_CODE
    return CONNECTION_FAILURE_CODE


class TableStore:
    def __init__(self, feed: ChangeFeed | None = None) -> None:
        self.feed = feed or ChangeFeed()

    # -----------------------------------------------------------------
    # Schema helpers
    # -----------------------------------------------------------------
    def _table(self, name: str) -> sa.Table:
        model = TABLES.get(name)
        if model is None:
            raise StoreError("PGRST205", f"Could not find the table 'public.{name}' in the schema cache", name)

        try:
            exists = sa.inspect(db.engine).has_table(name)
        except SQLAlchemyError as exc:
            raise StoreError(CONNECTION_FAILURE_CODE, str(exc), name) from exc

        if not exists:
            raise StoreError("42P01", f'relation "public.{name}" does not exist', name)
        return model.__table__

    def live_columns(self, name: str) -> List[str]:
        """Column names that exist in the database right now (may lag the model)."""
        self._table(name)
        try:
            return [col["name"] for col in sa.inspect(db.engine).get_columns(name)]
        except SQLAlchemyError as exc:
            raise StoreError(CONNECTION_FAILURE_CODE, str(exc), name) from exc

    def missing_columns(self, name: str) -> List[str]:
        """Model columns absent from the live table."""
        live = set(self.live_columns(name))
        return [col.name for col in TABLES[name].__table__.columns if col.name not in live]

    def _check_columns(self, name: str, keys: Iterable[str]) -> None:
        live = set(self.live_columns(name))
        for key in keys:
            if key not in live:
                raise StoreError(
                    MISSING_COLUMN_CODE,
                    f'column "{key}" of relation "{name}" does not exist',
                    name,
                )

    def _run_write(self, name: str, statement) -> int:
        try:
            result = db.session.execute(statement)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            code = _code_from_db_error(exc)
            logger.warning("store_write_failed", extra={"table": name, "code": code})
            raise StoreError(code, str(getattr(exc, "orig", exc)), name) from exc
        return result.rowcount or 0

    # -----------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------
    def select(
        self,
        name: str,
        filters: Optional[Mapping[str, Any]] = None,
        order_by: str | None = None,
        descending: bool = False,
    ) -> List[Dict[str, Any]]:
        table = self._table(name)
        live = self.live_columns(name)
        columns = [table.c[col] for col in live if col in table.c]

        stmt = sa.select(*columns)
        if filters:
            self._check_columns(name, filters.keys())
            for key, value in filters.items():
                stmt = stmt.where(table.c[key] == value)
        if order_by:
            self._check_columns(name, [order_by])
            column = table.c[order_by]
            stmt = stmt.order_by(column.desc() if descending else column.asc())

        try:
            rows = db.session.execute(stmt).mappings().all()
        except SQLAlchemyError as exc:
            db.session.rollback()
            code = _code_from_db_error(exc)
            raise StoreError(code, str(getattr(exc, "orig", exc)), name) from exc
        return [dict(row) for row in rows]

    def get(self, name: str, record_id: Any) -> Dict[str, Any] | None:
        rows = self.select(name, filters={"id": record_id})
        return rows[0] if rows else None

    # -----------------------------------------------------------------
    # Writes
    # -----------------------------------------------------------------
    def insert(self, name: str, row: Mapping[str, Any]) -> None:
        table = self._table(name)
        payload = dict(row)
        self._check_columns(name, payload.keys())

        self._run_write(name, sa.insert(table).values(**payload))
        self.feed.publish(ChangeEvent(table=name, event_type=INSERT, record_id=payload.get("id")))

    def update(self, name: str, values: Mapping[str, Any], match_id: Any) -> int:
        table = self._table(name)
        payload = {k: v for k, v in values.items() if k != "id" and v is not None}
        if not payload:
            return 0
        self._check_columns(name, payload.keys())

        count = self._run_write(name, sa.update(table).where(table.c.id == match_id).values(**payload))
        self.feed.publish(ChangeEvent(table=name, event_type=UPDATE, record_id=match_id))
        return count

    def upsert(self, name: str, row: Mapping[str, Any]) -> None:
        table = self._table(name)
        payload = dict(row)
        record_id = payload.get("id")
        self._check_columns(name, payload.keys())

        exists = record_id is not None and self.get(name, record_id) is not None
        if exists:
            values = {k: v for k, v in payload.items() if k != "id"}
            self._run_write(name, sa.update(table).where(table.c.id == record_id).values(**values))
            event_type = UPDATE
        else:
            self._run_write(name, sa.insert(table).values(**payload))
            event_type = INSERT
        self.feed.publish(ChangeEvent(table=name, event_type=event_type, record_id=record_id))

    def delete(self, name: str, match_id: Any) -> int:
        table = self._table(name)
        count = self._run_write(name, sa.delete(table).where(table.c.id == match_id))
        self.feed.publish(ChangeEvent(table=name, event_type=DELETE, record_id=match_id))
        return count
