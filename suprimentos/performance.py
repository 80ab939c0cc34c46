"""
Lead-time and purchasing-efficiency metrics for the evaluation screen.

Dates are ISO "YYYY-MM-DD" strings; day differences are whole calendar days rounded up.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .aggregation import parse_date

EXCELLENT = "Excelente"
GOOD = "Bom"
ATTENTION = "Atenção"
UNDEFINED = "Indefinido"
UNASSIGNED = "Não atribuído"

DEFAULT_EXCELLENT_DAYS = 5
DEFAULT_GOOD_DAYS = 10

SUPPLIER_SEARCH_FIELDS = ("name", "contactName", "email", "phone", "category", "notes")


def _days_between(start: Any, end: Any) -> Optional[float]:
    start_date = parse_date(start)
    end_date = parse_date(end)
    if start_date is None or end_date is None:
        return None
    return float((end_date - start_date).days)


def sla_thresholds(app_config: Iterable[Dict[str, Any]], excellent: int = DEFAULT_EXCELLENT_DAYS, good: int = DEFAULT_GOOD_DAYS) -> Tuple[int, int]:
    """(excellent, good) from the shared app_config row, falling back to the given defaults."""
    row = next(iter(app_config), None) or {}
    return row.get("sla_excellent") or excellent, row.get("sla_good") or good


def lead_time_by_responsible(requests: Iterable[Dict[str, Any]], delivered_status: str) -> List[Dict[str, Any]]:
    """
    Per responsible party: total assigned, completed (delivered with both dates) and the
    average lead time in days over completed requests (None when nothing was completed).
    """
    groups: Dict[str, Dict[str, Any]] = {}
    for request in requests:
        name = request.get("responsible") or UNASSIGNED
        group = groups.setdefault(name, {"responsible": name, "total": 0, "completed": 0, "_days": 0})
        group["total"] += 1

        if request.get("status") != delivered_status:
            continue
        days = _days_between(request.get("requestDate"), request.get("deliveryDate"))
        if days is None:
            continue
        group["completed"] += 1
        group["_days"] += math.ceil(abs(days))

    result = []
    for group in groups.values():
        days = group.pop("_days")
        group["avgLeadTimeDays"] = round(days / group["completed"], 1) if group["completed"] else None
        result.append(group)
    return result


def classify(avg_days: Optional[float], excellent: float, good: float) -> str:
    if avg_days is None:
        return UNDEFINED
    if avg_days <= excellent:
        return EXCELLENT
    if avg_days <= good:
        return GOOD
    return ATTENTION


def days_to_purchase_order(request: Dict[str, Any]) -> Optional[int]:
    """Days from request to purchase order. Negative differences (bad data entry) count as 0."""
    days = _days_between(request.get("requestDate"), request.get("purchaseOrderDate"))
    if days is None:
        return None
    return max(0, math.ceil(days))


def average_days_to_purchase_order(requests: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    rows = []
    for request in requests:
        days = days_to_purchase_order(request)
        if days is not None:
            rows.append(dict(request, daysToPO=days))

    average = round(sum(r["daysToPO"] for r in rows) / len(rows), 1) if rows else 0.0
    return {"list": rows, "avgDays": average}


def efficiency_by_buyer(requests: Iterable[Dict[str, Any]], user_names: Iterable[str]) -> List[Dict[str, Any]]:
    """Purchase-order conversion per responsible. Every user appears, even with no requests."""
    metrics: Dict[str, Dict[str, Any]] = {}
    for name in user_names:
        metrics[name] = {"responsible": name, "total": 0, "converted": 0, "totalDays": 0, "avgDaysToOC": 0.0}

    for request in requests:
        name = request.get("responsible") or UNASSIGNED
        entry = metrics.setdefault(
            name, {"responsible": name, "total": 0, "converted": 0, "totalDays": 0, "avgDaysToOC": 0.0}
        )
        entry["total"] += 1

        days = days_to_purchase_order(request)
        if days is not None:
            entry["converted"] += 1
            entry["totalDays"] += days

    for entry in metrics.values():
        if entry["converted"]:
            entry["avgDaysToOC"] = round(entry["totalDays"] / entry["converted"], 1)

    return sorted(metrics.values(), key=lambda m: m["total"], reverse=True)


def supplier_activity(requests: Iterable[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    """Request count and latest request date per supplier name."""
    activity: Dict[str, Dict[str, Any]] = {}
    for request in requests:
        name = request.get("supplier")
        if not name:
            continue
        entry = activity.setdefault(name, {"count": 0, "lastDate": ""})
        entry["count"] += 1
        request_date = request.get("requestDate") or ""
        if not entry["lastDate"] or request_date > entry["lastDate"]:
            entry["lastDate"] = request_date
    return activity


def search_suppliers(suppliers: Iterable[Dict[str, Any]], term: str | None) -> List[Dict[str, Any]]:
    suppliers = list(suppliers)
    if not term:
        return suppliers
    needle = term.lower()
    return [
        s
        for s in suppliers
        if any(needle in str(s.get(key) or "").lower() for key in SUPPLIER_SEARCH_FIELDS)
    ]
