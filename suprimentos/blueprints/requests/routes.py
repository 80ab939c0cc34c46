"""
Procurement request routes.

- GET    /requests/        visible requests (deep search ?q=, ?sort=<key>&order=asc|desc)
- GET    /requests/<id>    detail; denied outside the user's sector even by direct id
- POST   /requests/        create (admin)
- PUT    /requests/<id>    edit with audit trail (admin)
- DELETE /requests/<id>    delete (admin)

Rules:
- Writes are optimistic: the cached list changes first, then the store is called.
- An edit is ONE store update: changed values plus the history with new entries appended.
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from ...aggregation import delivery_status
from ...audit import record_edit
from ...collections import next_millis
from ...errors import ValidationError
from ...form_fields import active_fields, list_columns
from ...models import URGENCY_LEVELS
from ...security import admin_required, ensure_record_access, filter_visible
from ...utils import delivered_status, json_body, now, require_row, today, user_name, workspace

requests_bp = Blueprint("requests", __name__, url_prefix="/requests")

MAIN_SEARCH_FIELDS = ("orderNumber", "requester", "sector", "supplier", "description", "status", "responsible")
EDITABLE_KEYS = (
    "orderNumber",
    "requestDate",
    "requester",
    "sector",
    "supplier",
    "description",
    "urgency",
    "purchaseOrderDate",
    "forecastDate",
    "deliveryDate",
    "status",
    "responsible",
    "items",
    "customFields",
)


def _matches(record: dict, term: str) -> bool:
    needle = term.lower()
    if any(needle in str(record.get(key) or "").lower() for key in MAIN_SEARCH_FIELDS):
        return True
    for item in record.get("items") or []:
        if needle in str(item.get("name") or "").lower() or needle in str(item.get("status") or "").lower():
            return True
    return any(needle in str(value or "").lower() for value in (record.get("customFields") or {}).values())


def _sort_value(record: dict, key: str):
    if key in record:
        value = record.get(key)
    else:
        value = (record.get("customFields") or {}).get(key)
    return (value is None or value == "", str(value or "").lower())


def _clean_input(data: dict) -> dict:
    values = {k: data[k] for k in EDITABLE_KEYS if k in data}
    # Cleared inputs are stored as "", never null: the store skips None values.
    for key, value in values.items():
        if value is None:
            values[key] = [] if key == "items" else {} if key == "customFields" else ""
    if "urgency" in values and values["urgency"] and values["urgency"] not in URGENCY_LEVELS:
        raise ValidationError(f"Urgência inválida: {values['urgency']}")
    if "items" in values and not isinstance(values["items"], list):
        raise ValidationError("Itens devem ser uma lista.")
    if "customFields" in values and not isinstance(values["customFields"], dict):
        raise ValidationError("Campos personalizados devem ser um objeto.")
    return values


def _validate_required(record: dict, fields: list) -> None:
    missing = []
    for field in active_fields(fields):
        if not field.get("required"):
            continue
        if field.get("isStandard"):
            value = record.get(field["id"])
        else:
            value = (record.get("customFields") or {}).get(field["id"])
        if value is None or str(value).strip() == "":
            missing.append(field.get("label") or field["id"])
    if missing:
        raise ValidationError("Preencha os campos obrigatórios.", payload={"fields": missing})


def _with_state(record: dict) -> dict:
    return dict(record, deliveryState=delivery_status(record, today(), delivered_status()))


# ---------------------------------------------------------------------
# LIST / DETAIL
# ---------------------------------------------------------------------

@requests_bp.route("/")
@login_required
def list_requests():
    ws = workspace()
    records = filter_visible(ws.requests.rows, current_user)

    term = (request.args.get("q") or "").strip()
    if term:
        records = [r for r in records if _matches(r, term)]

    sort_key = request.args.get("sort")
    if sort_key:
        descending = request.args.get("order", "asc") == "desc"
        records = sorted(records, key=lambda r: _sort_value(r, sort_key), reverse=descending)

    return jsonify(
        {
            "requests": [_with_state(r) for r in records],
            "columns": list_columns(ws.form_fields.rows),
            "statuses": ws.statuses.rows,
        }
    )


@requests_bp.route("/<int:request_id>")
@login_required
def detail(request_id: int):
    ws = workspace()
    record = require_row(ws.requests, request_id, "Solicitação não encontrada.")
    ensure_record_access(record, current_user)
    return jsonify({"request": _with_state(record), "fields": active_fields(ws.form_fields.rows)})


# ---------------------------------------------------------------------
# CREATE
# ---------------------------------------------------------------------

@requests_bp.route("/", methods=["POST"])
@login_required
@admin_required
def create():
    ws = workspace()
    statuses = ws.statuses.rows
    new_id = next_millis()

    record = {
        "orderNumber": f"PED-{str(new_id)[-6:]}",
        "requestDate": today().isoformat(),
        "requester": current_user.name,
        "sector": current_user.sector,
        "urgency": "Normal",
        "status": statuses[0]["name"] if statuses else None,
        "items": [],
        "customFields": {},
    }
    record.update(_clean_input(json_body()))
    record["id"] = new_id
    record["history"] = []

    _validate_required(record, ws.form_fields.rows)

    ws.requests.add(record, prepend=True)
    return jsonify({"request": _with_state(record)}), 201


# ---------------------------------------------------------------------
# EDIT
# ---------------------------------------------------------------------

@requests_bp.route("/<int:request_id>", methods=["PUT", "PATCH"])
@login_required
@admin_required
def edit(request_id: int):
    ws = workspace()
    old = require_row(ws.requests, request_id, "Solicitação não encontrada.")
    ensure_record_access(old, current_user)

    changes = _clean_input(json_body())
    submitted = dict(old, **changes)
    if "customFields" in changes:
        submitted["customFields"] = dict(old.get("customFields") or {}, **changes["customFields"])

    _validate_required(submitted, ws.form_fields.rows)

    payload = record_edit(old, submitted, ws.form_fields.rows, delivered_status(), user_name(), now())
    ws.requests.update(request_id, payload)
    return jsonify({"request": _with_state(ws.requests.get(request_id) or dict(old, **payload))})


# ---------------------------------------------------------------------
# DELETE
# ---------------------------------------------------------------------

@requests_bp.route("/<int:request_id>", methods=["DELETE"])
@login_required
@admin_required
def delete(request_id: int):
    ws = workspace()
    require_row(ws.requests, request_id, "Solicitação não encontrada.")
    ws.requests.remove(request_id)
    return jsonify({"ok": True})
