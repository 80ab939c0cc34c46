"""
Helpers shared by the blueprints:
- workspace(): the loaded Workspace, or MissingSchemaError when the tables are not there yet.
- json_body(): the request JSON object (400 when it is not an object).
- user_name(), delivered_status(), today(): small accessors used by several screens.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict

from flask import current_app, request
from flask_login import current_user

from .collections import Workspace, get_workspace
from .errors import MissingSchemaError, NotFound, ValidationError


def workspace() -> Workspace:
    ws = get_workspace()
    if ws.missing_tables:
        raise MissingSchemaError(payload={"missingTables": ws.missing_tables})
    return ws


def json_body() -> Dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("O corpo da requisição deve ser um objeto JSON.")
    return data


def require_row(collection, record_id: Any, message: str = "Registro não encontrado.") -> Dict[str, Any]:
    row = collection.get(record_id)
    if row is None:
        raise NotFound(message)
    return row


def user_name() -> str | None:
    if current_user.is_authenticated:
        return current_user.name
    return None


def delivered_status() -> str:
    return current_app.config.get("DELIVERED_STATUS", "Entregue")


def today() -> date:
    return date.today()


def now() -> datetime:
    return datetime.now()
