"""
Suppliers and the evaluation screen.

- GET    /suppliers/               list (?q= search); restricted users see suppliers of their sector's requests
- GET    /suppliers/<id>           detail + request history scoped to the user's sector
- POST   /suppliers/               create        (full visibility)
- PATCH  /suppliers/<id>           update        (full visibility)
- DELETE /suppliers/<id>           delete        (full visibility)
- GET    /suppliers/evaluation     efficiency, purchase-order deadlines, lead time, supplier activity

Suppliers are matched to requests by NAME.
"""

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from ...collections import next_millis
from ...errors import AccessDenied, ValidationError
from ...performance import (
    average_days_to_purchase_order,
    classify,
    efficiency_by_buyer,
    lead_time_by_responsible,
    search_suppliers,
    sla_thresholds,
    supplier_activity,
)
from ...security import can_view_supplier, filter_visible, full_visibility_required
from ...utils import delivered_status, json_body, require_row, workspace

suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/suppliers")

SUPPLIER_TEXT_FIELDS = ("name", "contactName", "email", "phone", "category", "notes")


def _supplier_values(data: dict, partial: bool = False) -> dict:
    values = {k: str(data.get(k) or "").strip() for k in SUPPLIER_TEXT_FIELDS if k in data or not partial}
    if "name" in values and not values["name"]:
        raise ValidationError("Informe o nome do fornecedor.")

    if "rating" in data or not partial:
        try:
            rating = int(data.get("rating") or 0)
        except (TypeError, ValueError):
            raise ValidationError("Avaliação inválida.") from None
        if not 0 <= rating <= 5:
            raise ValidationError("A avaliação deve estar entre 0 e 5 estrelas.")
        values["rating"] = rating
    return values


@suppliers_bp.route("/")
@login_required
def list_suppliers():
    ws = workspace()
    requests = ws.requests.rows
    suppliers = [s for s in ws.suppliers.rows if can_view_supplier(s, requests, current_user)]
    suppliers = search_suppliers(suppliers, request.args.get("q"))

    activity = supplier_activity(filter_visible(requests, current_user))
    return jsonify(
        {
            "suppliers": [
                dict(s, **activity.get(s.get("name"), {"count": 0, "lastDate": ""})) for s in suppliers
            ]
        }
    )


@suppliers_bp.route("/<supplier_id>")
@login_required
def detail(supplier_id: str):
    ws = workspace()
    supplier = require_row(ws.suppliers, supplier_id, "Fornecedor não encontrado.")
    requests = ws.requests.rows
    if not can_view_supplier(supplier, requests, current_user):
        raise AccessDenied("Você não tem permissão para visualizar este fornecedor.")

    history = [r for r in filter_visible(requests, current_user) if r.get("supplier") == supplier.get("name")]
    history.sort(key=lambda r: str(r.get("requestDate") or ""), reverse=True)
    return jsonify({"supplier": supplier, "requests": history})


@suppliers_bp.route("/", methods=["POST"])
@login_required
@full_visibility_required
def create():
    ws = workspace()
    supplier = dict(_supplier_values(json_body()), id=f"supplier-{next_millis()}")
    ws.suppliers.add(supplier)
    return jsonify({"supplier": supplier}), 201


@suppliers_bp.route("/<supplier_id>", methods=["PATCH"])
@login_required
@full_visibility_required
def update(supplier_id: str):
    ws = workspace()
    require_row(ws.suppliers, supplier_id, "Fornecedor não encontrado.")
    return jsonify({"supplier": ws.suppliers.update(supplier_id, _supplier_values(json_body(), partial=True))})


@suppliers_bp.route("/<supplier_id>", methods=["DELETE"])
@login_required
@full_visibility_required
def delete(supplier_id: str):
    ws = workspace()
    require_row(ws.suppliers, supplier_id, "Fornecedor não encontrado.")
    ws.suppliers.remove(supplier_id)
    return jsonify({"ok": True})


# ---------------------------------------------------------------------
# EVALUATION
# ---------------------------------------------------------------------

@suppliers_bp.route("/evaluation")
@login_required
@full_visibility_required
def evaluation():
    ws = workspace()
    requests = ws.requests.rows
    excellent, good = sla_thresholds(
        ws.app_config.rows,
        current_app.config.get("SLA_EXCELLENT_DAYS", 5),
        current_app.config.get("SLA_GOOD_DAYS", 10),
    )

    lead_time = lead_time_by_responsible(requests, delivered_status())
    for entry in lead_time:
        entry["classification"] = classify(entry["avgLeadTimeDays"], excellent, good)

    return jsonify(
        {
            "thresholds": {"excellent": excellent, "good": good},
            "efficiency": efficiency_by_buyer(requests, [u.get("name") for u in ws.users.rows]),
            "deadlines": average_days_to_purchase_order(requests),
            "leadTime": lead_time,
            "supplierActivity": supplier_activity(requests),
        }
    )
