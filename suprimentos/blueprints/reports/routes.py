"""
Spreadsheet export (management and admins).

POST /reports/export {start, end, columns: [field ids | "items"], includeHistory}
"""

from flask import Blueprint, current_app
from flask_login import login_required

from ...errors import ValidationError
from ...reports import ITEMS_COLUMN, export_requests
from ...security import full_visibility_required
from ...utils import json_body, workspace

reports_bp = Blueprint("reports", __name__, url_prefix="/reports")

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@reports_bp.route("/export", methods=["POST"])
@login_required
@full_visibility_required
def export():
    ws = workspace()
    data = json_body()

    start = str(data.get("start") or "").strip()
    end = str(data.get("end") or "").strip()
    if not start or not end:
        raise ValidationError("Informe o período do relatório.")
    if start > end:
        raise ValidationError("A data inicial deve ser anterior à data final.")

    fields = ws.form_fields.rows
    columns = data.get("columns") or [f["id"] for f in fields] + [ITEMS_COLUMN]
    if not isinstance(columns, list):
        raise ValidationError("columns deve ser uma lista.")

    filename, content = export_requests(
        ws.requests.rows, fields, columns, start, end, include_history=bool(data.get("includeHistory"))
    )
    response = current_app.response_class(content, mimetype=XLSX_MIMETYPE)
    response.headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response
