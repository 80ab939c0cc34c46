"""
suprimentos/audit.py

Field-level audit trail for request edits.

Goals:
- One history entry per active field whose value changed: WHO, WHEN, WHICH field, BEFORE/AFTER.
- History is append-only. Entries are never rewritten or removed.
- The diff runs once per save, against the snapshot taken when the edit form was opened.

IMPORTANT:
- Standard fields are read from the record itself (field id == record key); custom fields
  from record["customFields"].
- Setting a new, non-empty deliveryDate forces the delivered status BEFORE the diff, so the
  status change is recorded too.
- record_edit() returns ONE payload (changed values + full history) for a single write.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from .form_fields import order_key

EMPTY = "(vazio)"
SYSTEM_USER = "Sistema"
ITEMS_LABEL = "Itens da Solicitação"


def normalize(value: Any) -> str:
    """Stable string form for comparison and storage. None/blank -> "(vazio)"."""
    if value is None:
        return EMPTY
    text = str(value).strip()
    return text or EMPTY


def _field_value(record: Dict[str, Any], field: Dict[str, Any]) -> Any:
    if field.get("isStandard"):
        return record.get(field["id"])
    return (record.get("customFields") or {}).get(field["id"])


def _timestamp(now: Optional[datetime]) -> str:
    return (now or datetime.now()).isoformat()


def diff(
    old: Dict[str, Any],
    new: Dict[str, Any],
    fields: List[Dict[str, Any]],
    user_name: str | None = None,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    stamp = _timestamp(now)
    user = user_name or SYSTEM_USER

    entries = []
    for field in sorted(fields, key=order_key):
        if not field.get("isActive"):
            continue
        before = normalize(_field_value(old, field))
        after = normalize(_field_value(new, field))
        if before != after:
            entries.append(
                {
                    "date": stamp,
                    "user": user,
                    "field": field.get("label") or field["id"],
                    "oldValue": before,
                    "newValue": after,
                }
            )
    return entries


def apply_delivery_rule(old: Dict[str, Any], new: Dict[str, Any], delivered_status: str) -> Dict[str, Any]:
    """Return `new` with status forced to delivered when a new delivery date was entered."""
    delivery = normalize(new.get("deliveryDate"))
    if delivery == EMPTY or delivery == normalize(old.get("deliveryDate")):
        return new
    return dict(new, status=delivered_status)


def items_entry(
    old: Dict[str, Any],
    new: Dict[str, Any],
    user_name: str | None = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any] | None:
    old_items = old.get("items") or []
    new_items = new.get("items") or []
    if old_items == new_items:
        return None
    return {
        "date": _timestamp(now),
        "user": user_name or SYSTEM_USER,
        "field": ITEMS_LABEL,
        "oldValue": f"{len(old_items)} itens",
        "newValue": f"{len(new_items)} itens (lista modificada)",
    }


def record_edit(
    old: Dict[str, Any],
    submitted: Dict[str, Any],
    fields: List[Dict[str, Any]],
    delivered_status: str,
    user_name: str | None = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Build the single update payload for an edit.

    The payload holds every submitted value (after the delivery rule) plus the previous
    history with the new entries appended.
    """
    now = now or datetime.now()
    new = apply_delivery_rule(old, submitted, delivered_status)

    entries = diff(old, new, fields, user_name, now)
    if "items" in submitted:
        entry = items_entry(old, new, user_name, now)
        if entry is not None:
            entries.append(entry)

    payload = {k: v for k, v in new.items() if k not in ("id", "history")}
    payload["history"] = list(old.get("history") or []) + entries
    return payload
