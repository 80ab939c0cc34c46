"""
Price maps (quote comparison).

- GET    /pricemaps/                          list (?q= matches the title)
- POST   /pricemaps/                          create {title, items, supplierIds}
- GET    /pricemaps/<id>                      map + comparison (lowest prices, totals, winner, spread)
- PATCH  /pricemaps/<id>                      title / status
- PATCH  /pricemaps/<id>/offers/<supplier>    {itemId, price} or {field, value}
- DELETE /pricemaps/<id>

Updating one offer rewrites the offers list with only that supplier's offer replaced.
"""

from flask import Blueprint, jsonify, request
from flask_login import login_required

from ...collections import next_millis
from ...errors import NotFound, ValidationError
from ...quotes import OFFER_META_FIELDS, comparison, new_price_map, set_offer_meta, set_offer_price
from ...security import admin_required
from ...utils import json_body, require_row, today, user_name, workspace

pricemaps_bp = Blueprint("pricemaps", __name__, url_prefix="/pricemaps")


def _number(value, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Valor numérico inválido para {name}.") from None


def _items(raw) -> list:
    if not isinstance(raw, list) or not raw:
        raise ValidationError("Adicione ao menos um item à cotação.")

    items = []
    for position, item in enumerate(raw, start=1):
        description = str((item or {}).get("description") or "").strip()
        if not description:
            raise ValidationError("Todo item precisa de uma descrição.")
        items.append(
            {
                "id": str(item.get("id") or f"item-{position}"),
                "description": description,
                "unit": str(item.get("unit") or "UN"),
                "quantity": _number(item.get("quantity", 1), "quantity"),
            }
        )
    return items


@pricemaps_bp.route("/")
@login_required
def list_maps():
    price_maps = workspace().price_maps.rows
    term = (request.args.get("q") or "").strip().lower()
    if term:
        price_maps = [m for m in price_maps if term in str(m.get("title") or "").lower()]
    return jsonify({"priceMaps": price_maps})


@pricemaps_bp.route("/", methods=["POST"])
@login_required
@admin_required
def create():
    ws = workspace()
    data = json_body()
    title = str(data.get("title") or "").strip()
    if not title:
        raise ValidationError("Informe o título da cotação.")

    supplier_ids = {str(s) for s in data.get("supplierIds") or []}
    suppliers = [s for s in ws.suppliers.rows if str(s.get("id")) in supplier_ids]
    if not suppliers:
        raise ValidationError("Selecione ao menos um fornecedor.")

    price_map = new_price_map(next_millis(), title, _items(data.get("items")), suppliers, user_name(), today())
    ws.price_maps.add(price_map, prepend=True)
    return jsonify({"priceMap": price_map}), 201


@pricemaps_bp.route("/<int:map_id>")
@login_required
def detail(map_id: int):
    price_map = require_row(workspace().price_maps, map_id, "Cotação não encontrada.")
    return jsonify({"priceMap": price_map, "comparison": comparison(price_map)})


@pricemaps_bp.route("/<int:map_id>", methods=["PATCH"])
@login_required
@admin_required
def update(map_id: int):
    ws = workspace()
    require_row(ws.price_maps, map_id, "Cotação não encontrada.")
    data = json_body()
    changes = {k: str(data[k]).strip() for k in ("title", "status") if data.get(k)}
    return jsonify({"priceMap": ws.price_maps.update(map_id, changes)})


@pricemaps_bp.route("/<int:map_id>/offers/<supplier_id>", methods=["PATCH"])
@login_required
@admin_required
def update_offer(map_id: int, supplier_id: str):
    ws = workspace()
    price_map = require_row(ws.price_maps, map_id, "Cotação não encontrada.")
    if not any(o.get("supplierId") == supplier_id for o in price_map.get("offers") or []):
        raise NotFound("Fornecedor não participa desta cotação.")

    data = json_body()
    if "itemId" in data:
        if not any(i.get("id") == data["itemId"] for i in price_map.get("items") or []):
            raise NotFound("Item não encontrado.")
        offers = set_offer_price(price_map, supplier_id, data["itemId"], _number(data.get("price"), "price"))
    elif data.get("field") in OFFER_META_FIELDS:
        offers = set_offer_meta(price_map, supplier_id, data["field"], _number(data.get("value"), data["field"]))
    else:
        raise ValidationError("Informe itemId/price ou field/value (freight, deliveryDeadline).")

    updated = ws.price_maps.update(map_id, {"offers": offers})
    return jsonify({"priceMap": updated, "comparison": comparison(updated)})


@pricemaps_bp.route("/<int:map_id>", methods=["DELETE"])
@login_required
@admin_required
def delete(map_id: int):
    ws = workspace()
    require_row(ws.price_maps, map_id, "Cotação não encontrada.")
    ws.price_maps.remove(map_id)
    return jsonify({"ok": True})
