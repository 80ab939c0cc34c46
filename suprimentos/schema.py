"""
Database setup / repair script.

Shown to the operator when tables or columns are missing: CREATE TABLE IF NOT EXISTS for
every table and ADD COLUMN IF NOT EXISTS for every column, in PostgreSQL dialect.
"""

from __future__ import annotations

from typing import List

from sqlalchemy.dialects import postgresql
from sqlalchemy.schema import CreateTable

from .extensions import db
from .store import TABLES


def _create_statement(table) -> str:
    ddl = str(CreateTable(table, if_not_exists=True).compile(dialect=postgresql.dialect()))
    return ddl.strip() + ";"


def _add_column_statements(table) -> List[str]:
    dialect = postgresql.dialect()
    statements = []
    for column in table.columns:
        if column.primary_key:
            continue
        type_sql = column.type.compile(dialect=dialect)
        statements.append(f'ALTER TABLE {table.name} ADD COLUMN IF NOT EXISTS "{column.name}" {type_sql};')
    return statements


def setup_script() -> str:
    parts = ["-- Tabelas"]
    for table in (model.__table__ for model in TABLES.values()):
        parts.append(_create_statement(table))

    parts.append("")
    parts.append("-- Colunas adicionadas em versões posteriores")
    for table in (model.__table__ for model in TABLES.values()):
        parts.extend(_add_column_statements(table))
    return "\n".join(parts) + "\n"


def create_tables() -> None:
    db.create_all()
