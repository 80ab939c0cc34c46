"""
Thermal analyses.

- GET  /thermal/                      analyses of the user's sector (all for full visibility); ?q= matches tag or equipment
- POST /thermal/                      create (admin)
- GET  /thermal/<id>                  detail
- POST /thermal/<id>/measurements     {measuredTemp, notes}; status is recomputed
"""

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from ...collections import next_millis
from ...security import admin_required, ensure_record_access, filter_visible, has_full_visibility
from ...thermal import add_measurement, new_analysis
from ...utils import json_body, require_row, user_name, workspace

thermal_bp = Blueprint("thermal", __name__, url_prefix="/thermal")


@thermal_bp.route("/")
@login_required
def list_analyses():
    analyses = filter_visible(workspace().thermal_analyses.rows, current_user)

    term = (request.args.get("q") or "").strip().lower()
    if term:
        analyses = [
            a
            for a in analyses
            if term in str(a.get("tag") or "").lower() or term in str(a.get("equipmentName") or "").lower()
        ]
    return jsonify({"analyses": analyses})


@thermal_bp.route("/", methods=["POST"])
@login_required
@admin_required
def create():
    ws = workspace()
    data = json_body()
    if not has_full_visibility(current_user) or not data.get("sector"):
        data["sector"] = current_user.sector

    analysis = new_analysis(next_millis(), data)
    ws.thermal_analyses.add(analysis, prepend=True)
    return jsonify({"analysis": analysis}), 201


@thermal_bp.route("/<int:analysis_id>")
@login_required
def detail(analysis_id: int):
    analysis = require_row(workspace().thermal_analyses, analysis_id, "Análise não encontrada.")
    ensure_record_access(analysis, current_user, "Você não tem permissão para visualizar esta análise.")
    return jsonify({"analysis": analysis})


@thermal_bp.route("/<int:analysis_id>/measurements", methods=["POST"])
@login_required
def measure(analysis_id: int):
    ws = workspace()
    analysis = require_row(ws.thermal_analyses, analysis_id, "Análise não encontrada.")
    ensure_record_access(analysis, current_user, "Você não tem permissão para visualizar esta análise.")

    data = json_body()
    changes = add_measurement(analysis, data.get("measuredTemp"), data.get("notes"), user_name())
    return jsonify({"analysis": ws.thermal_analyses.update(analysis_id, changes)}), 201
