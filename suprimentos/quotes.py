"""
Quote comparison for price maps.

A price map holds requested items ({id, description, unit, quantity}) and one offer per
supplier ({supplierId, supplierName, prices: {itemId: price}, freight, deliveryDeadline}).
A price that is missing, zero or negative means the supplier did not bid on that item.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Optional

DEADLINE_SCALE_DAYS = 30
OPEN_STATUS = "Aberta"
OFFER_META_FIELDS = ("freight", "deliveryDeadline")


def _number(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


def _price(offer: Dict[str, Any], item_id: str) -> float:
    return _number((offer.get("prices") or {}).get(item_id))


def lowest_prices(price_map: Dict[str, Any]) -> Dict[str, float]:
    """Lowest positive bid per item id. Items nobody bid on are left out."""
    lowest = {}
    offers = price_map.get("offers") or []
    for item in price_map.get("items") or []:
        bids = [p for p in (_price(o, item["id"]) for o in offers) if p > 0]
        if bids:
            lowest[item["id"]] = min(bids)
    return lowest


def supplier_totals(price_map: Dict[str, Any]) -> List[Dict[str, Any]]:
    items = price_map.get("items") or []
    totals = []
    for offer in price_map.get("offers") or []:
        products = sum(_price(offer, item["id"]) * _number(item.get("quantity")) for item in items)
        totals.append(
            {
                "supplierId": offer.get("supplierId"),
                "supplierName": offer.get("supplierName"),
                "totalProducts": products,
                "totalWithFreight": products + _number(offer.get("freight")),
            }
        )
    return totals


def global_winner(totals: Iterable[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Lowest positive total with freight. An offer without bids (total 0) never wins."""
    winner = None
    for total in totals:
        if total["totalWithFreight"] <= 0:
            continue
        if winner is None or total["totalWithFreight"] < winner["totalWithFreight"]:
            winner = total
    return winner


def max_total(totals: Iterable[Dict[str, Any]]) -> float:
    positive = [t["totalWithFreight"] for t in totals if t["totalWithFreight"] > 0]
    return max(positive) if positive else 0.0


def price_spread(winner_total: float, highest_total: float) -> float:
    """Variation between the most expensive and the winning offer, in percent."""
    if winner_total <= 0:
        return 0.0
    return (highest_total / winner_total - 1) * 100


def _replace_offer(price_map: Dict[str, Any], supplier_id: str, update) -> List[Dict[str, Any]]:
    offers = []
    for offer in price_map.get("offers") or []:
        if offer.get("supplierId") == supplier_id:
            offer = update(dict(offer))
        offers.append(offer)
    return offers


def set_offer_price(price_map: Dict[str, Any], supplier_id: str, item_id: str, price: float) -> List[Dict[str, Any]]:
    """New offers list with one price changed. Other offers are returned untouched."""

    def _update(offer):
        offer["prices"] = dict(offer.get("prices") or {}, **{item_id: price})
        return offer

    return _replace_offer(price_map, supplier_id, _update)


def set_offer_meta(price_map: Dict[str, Any], supplier_id: str, field: str, value: float) -> List[Dict[str, Any]]:
    if field not in OFFER_META_FIELDS:
        raise ValueError(f"Unknown offer field: {field}")

    def _update(offer):
        offer[field] = value
        return offer

    return _replace_offer(price_map, supplier_id, _update)


def comparison(price_map: Dict[str, Any]) -> Dict[str, Any]:
    totals = supplier_totals(price_map)
    winner = global_winner(totals)
    highest = max_total(totals)
    winner_total = winner["totalWithFreight"] if winner else 0.0

    deadlines = {o.get("supplierId"): _number(o.get("deliveryDeadline")) for o in price_map.get("offers") or []}
    for total in totals:
        total["isWinner"] = winner is not None and total["supplierId"] == winner["supplierId"]
        total["barPercent"] = (total["totalWithFreight"] / highest * 100) if highest > 0 else 0.0
        deadline = deadlines.get(total["supplierId"], 0.0)
        total["deliveryDeadline"] = deadline
        total["deadlinePercent"] = min(deadline / DEADLINE_SCALE_DAYS * 100, 100)

    return {
        "lowestPrices": lowest_prices(price_map),
        "totals": totals,
        "winner": winner,
        "maxTotal": highest,
        "spreadPercent": price_spread(winner_total, highest),
    }


def new_price_map(
    map_id: int,
    title: str,
    items: List[Dict[str, Any]],
    suppliers: List[Dict[str, Any]],
    responsible: str | None,
    today: date,
) -> Dict[str, Any]:
    offers = [
        {
            "supplierId": s.get("id"),
            "supplierName": s.get("name") or "Fornecedor",
            "prices": {},
            "freight": 0,
            "deliveryDeadline": 0,
        }
        for s in suppliers
    ]
    return {
        "id": map_id,
        "title": title,
        "date": today.isoformat(),
        "status": OPEN_STATUS,
        "responsible": responsible or "Admin",
        "items": items,
        "offers": offers,
    }
