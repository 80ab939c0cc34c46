"""
Form field configuration rules.

Fields are plain row dicts from the `form_fields` table. orderIndex drives the order of the
request form, the detail view and the list columns, and is kept contiguous (1..n) after
every reorder.
"""

from __future__ import annotations

from typing import Any, Dict, List

from .errors import ValidationError
from .models import FIELD_TYPES

DEFAULT_ORDER_INDEX = 99


def order_key(field: Dict[str, Any]) -> int:
    index = field.get("orderIndex")
    return DEFAULT_ORDER_INDEX if index is None else index


def sanitize_form_fields(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Fill list visibility for rows created before the column existed, then sort."""
    fields = []
    for row in rows:
        field = dict(row)
        if field.get("isVisibleInList") is None:
            field["isVisibleInList"] = bool(field.get("isStandard"))
        fields.append(field)
    return sorted(fields, key=order_key)


def active_fields(fields: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [f for f in sorted(fields, key=order_key) if f.get("isActive")]


def list_columns(fields: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [f for f in active_fields(fields) if f.get("isVisibleInList")]


def resequence(fields: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    resequenced = []
    for position, field in enumerate(fields, start=1):
        copy = dict(field)
        copy["orderIndex"] = position
        resequenced.append(copy)
    return resequenced


def move_field(fields: List[Dict[str, Any]], field_id: str, direction: str) -> List[Dict[str, Any]]:
    """Swap a field with its neighbour and renumber the whole list."""
    if direction not in ("up", "down"):
        raise ValidationError(f"Direção inválida: {direction}")

    ordered = sorted(fields, key=order_key)
    index = next((i for i, f in enumerate(ordered) if f.get("id") == field_id), None)
    if index is None:
        raise ValidationError(f"Campo não encontrado: {field_id}")

    target = index - 1 if direction == "up" else index + 1
    if 0 <= target < len(ordered):
        ordered[index], ordered[target] = ordered[target], ordered[index]
    return resequence(ordered)


def new_custom_field(fields: List[Dict[str, Any]], label: str, field_type: str, field_id: str) -> Dict[str, Any]:
    label = (label or "").strip()
    if not label:
        raise ValidationError("Informe o nome do campo.")
    if field_type not in FIELD_TYPES:
        raise ValidationError(f"Tipo de campo inválido: {field_type}")

    max_order = max([f.get("orderIndex") or 0 for f in fields] + [0])
    return {
        "id": field_id,
        "label": label,
        "type": field_type,
        "isActive": True,
        "required": False,
        "isStandard": False,
        "isVisibleInList": True,
        "orderIndex": max_order + 1,
    }


def ensure_deletable(field: Dict[str, Any]) -> None:
    if field.get("isStandard"):
        raise ValidationError("Campos padrão não podem ser excluídos, apenas desativados.")
