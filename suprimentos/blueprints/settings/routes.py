"""
Settings (admin for every write):

Form fields:
- GET    /settings/form-fields
- POST   /settings/form-fields                 add custom field {label, type}
- PUT    /settings/form-fields                 batch save of the whole list
- PATCH  /settings/form-fields/<id>            toggle active/required/visible, rename
- DELETE /settings/form-fields/<id>            custom fields only
- POST   /settings/form-fields/<id>/move       {direction: up|down}

Statuses: GET/POST /settings/statuses, PATCH/DELETE /settings/statuses/<id>
SLA thresholds: GET/PUT /settings/sla
Local preferences: GET/PUT /settings/preferences
"""

from flask import Blueprint, current_app, jsonify
from flask_login import login_required

from ...collections import next_millis
from ...errors import ValidationError
from ...form_fields import ensure_deletable, move_field, new_custom_field, resequence
from ...models import STATUS_COLORS
from ...performance import sla_thresholds
from ...security import admin_required
from ...utils import json_body, require_row, workspace

settings_bp = Blueprint("settings", __name__, url_prefix="/settings")

FIELD_FLAGS = ("label", "isActive", "required", "isVisibleInList")
APP_CONFIG_ID = 1


# ---------------------------------------------------------------------
# FORM FIELDS
# ---------------------------------------------------------------------

@settings_bp.route("/form-fields")
@login_required
def form_fields():
    return jsonify({"fields": workspace().form_fields.rows})


@settings_bp.route("/form-fields", methods=["POST"])
@login_required
@admin_required
def add_form_field():
    ws = workspace()
    data = json_body()
    field = new_custom_field(
        ws.form_fields.rows,
        data.get("label"),
        data.get("type", "text"),
        f"custom-{next_millis()}",
    )
    ws.form_fields.add(field)
    return jsonify({"field": field}), 201


@settings_bp.route("/form-fields", methods=["PUT"])
@login_required
@admin_required
def save_form_fields():
    ws = workspace()
    fields = json_body().get("fields")
    if not isinstance(fields, list) or not all(isinstance(f, dict) and f.get("id") for f in fields):
        raise ValidationError("Envie a lista completa de campos.")

    ws.form_fields.replace_all(resequence(fields))
    return jsonify({"fields": ws.form_fields.rows})


@settings_bp.route("/form-fields/<field_id>", methods=["PATCH"])
@login_required
@admin_required
def update_form_field(field_id: str):
    ws = workspace()
    require_row(ws.form_fields, field_id, "Campo não encontrado.")

    data = json_body()
    changes = {k: data[k] for k in FIELD_FLAGS if k in data}
    if "label" in changes and not str(changes["label"] or "").strip():
        raise ValidationError("Informe o nome do campo.")

    return jsonify({"field": ws.form_fields.update(field_id, changes)})


@settings_bp.route("/form-fields/<field_id>", methods=["DELETE"])
@login_required
@admin_required
def delete_form_field(field_id: str):
    ws = workspace()
    ensure_deletable(require_row(ws.form_fields, field_id, "Campo não encontrado."))
    ws.form_fields.remove(field_id)
    return jsonify({"ok": True})


@settings_bp.route("/form-fields/<field_id>/move", methods=["POST"])
@login_required
@admin_required
def move_form_field(field_id: str):
    ws = workspace()
    fields = move_field(ws.form_fields.rows, field_id, json_body().get("direction"))
    ws.form_fields.replace_all(fields)
    return jsonify({"fields": ws.form_fields.rows})


# ---------------------------------------------------------------------
# STATUSES
# ---------------------------------------------------------------------

def _status_values(data: dict, partial: bool = False) -> dict:
    values = {}
    if "name" in data or not partial:
        name = str(data.get("name") or "").strip()
        if not name:
            raise ValidationError("Informe o nome do status.")
        values["name"] = name
    if "color" in data or not partial:
        color = data.get("color") or "gray"
        if color not in STATUS_COLORS:
            raise ValidationError(f"Cor inválida: {color}")
        values["color"] = color
    return values


@settings_bp.route("/statuses")
@login_required
def statuses():
    return jsonify({"statuses": workspace().statuses.rows})


@settings_bp.route("/statuses", methods=["POST"])
@login_required
@admin_required
def add_status():
    ws = workspace()
    status = dict(_status_values(json_body()), id=f"status-{next_millis()}")
    ws.statuses.add(status)
    return jsonify({"status": status}), 201


@settings_bp.route("/statuses/<status_id>", methods=["PATCH"])
@login_required
@admin_required
def update_status(status_id: str):
    ws = workspace()
    require_row(ws.statuses, status_id, "Status não encontrado.")
    return jsonify({"status": ws.statuses.update(status_id, _status_values(json_body(), partial=True))})


@settings_bp.route("/statuses/<status_id>", methods=["DELETE"])
@login_required
@admin_required
def delete_status(status_id: str):
    ws = workspace()
    require_row(ws.statuses, status_id, "Status não encontrado.")
    ws.statuses.remove(status_id)
    return jsonify({"ok": True})


# ---------------------------------------------------------------------
# SLA THRESHOLDS
# ---------------------------------------------------------------------

def _current_sla(ws) -> dict:
    excellent, good = sla_thresholds(
        ws.app_config.rows,
        current_app.config.get("SLA_EXCELLENT_DAYS", 5),
        current_app.config.get("SLA_GOOD_DAYS", 10),
    )
    return {"excellent": excellent, "good": good}


@settings_bp.route("/sla")
@login_required
def sla():
    return jsonify(_current_sla(workspace()))


@settings_bp.route("/sla", methods=["PUT"])
@login_required
@admin_required
def save_sla():
    ws = workspace()
    data = json_body()
    try:
        excellent = int(data.get("excellent"))
        good = int(data.get("good"))
    except (TypeError, ValueError):
        raise ValidationError("Informe prazos numéricos em dias.") from None
    if excellent <= 0 or good <= 0:
        raise ValidationError("Os prazos devem ser maiores que zero.")

    row = {"id": APP_CONFIG_ID, "sla_excellent": excellent, "sla_good": good}
    ws.app_config.replace_all([row])

    preferences = current_app.extensions["suprimentos.preferences"]
    preferences.sla_excellent = excellent
    preferences.sla_good = good
    preferences.save(current_app.config["PREFERENCES_PATH"])
    return jsonify(_current_sla(ws))


# ---------------------------------------------------------------------
# LOCAL PREFERENCES
# ---------------------------------------------------------------------

@settings_bp.route("/preferences")
@login_required
def preferences():
    return jsonify(current_app.extensions["suprimentos.preferences"].to_dict())


@settings_bp.route("/preferences", methods=["PUT"])
@login_required
def save_preferences():
    prefs = current_app.extensions["suprimentos.preferences"]
    widths = json_body().get("column_widths") or {}
    if not isinstance(widths, dict):
        raise ValidationError("column_widths deve ser um objeto.")
    try:
        for column_id, width in widths.items():
            prefs.set_column_width(column_id, width)
    except (TypeError, ValueError):
        raise ValidationError("Larguras de coluna devem ser numéricas.") from None

    prefs.save(current_app.config["PREFERENCES_PATH"])
    return jsonify(prefs.to_dict())
