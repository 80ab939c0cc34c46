"""
Dashboard aggregation.

Every function takes requests that were already passed through security.filter_visible()
and returns plain dicts/lists ready to be serialized. Nothing here touches the store.
"""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Dict, Iterable, List

from .models import URGENT

NO_SECTOR = "Sem Setor"
MONTHS = 6
TOP_SECTORS = 6
SMALL_SECTOR_COUNT = 5
DUE_SOON_DAYS = 5

MONTH_ABBR = ["jan", "fev", "mar", "abr", "mai", "jun", "jul", "ago", "set", "out", "nov", "dez"]
MONTH_NAMES = [
    "janeiro",
    "fevereiro",
    "março",
    "abril",
    "maio",
    "junho",
    "julho",
    "agosto",
    "setembro",
    "outubro",
    "novembro",
    "dezembro",
]


def parse_date(value: Any) -> date | None:
    """ISO date (or datetime) string -> date. Empty or malformed values give None."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def _is_urgent(request: Dict[str, Any]) -> bool:
    return request.get("urgency") == URGENT


def _sector_of(request: Dict[str, Any]) -> str:
    return request.get("sector") or NO_SECTOR


def status_tally(requests: Iterable[Dict[str, Any]], statuses: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """Count per configured status name. Unknown status strings only count toward the total."""
    requests = list(requests)
    counts = {s["name"]: 0 for s in statuses}
    for request in requests:
        name = request.get("status")
        if name in counts:
            counts[name] += 1

    return {
        "total": len(requests),
        "byStatus": [{"name": name, "count": count} for name, count in counts.items()],
    }


def _month_start(year: int, month: int, offset: int) -> tuple:
    index = year * 12 + (month - 1) - offset
    return index // 12, index % 12 + 1


def monthly_series(requests: Iterable[Dict[str, Any]], now: date | datetime) -> List[Dict[str, Any]]:
    """Trailing six calendar months, oldest first, ending with the month of `now`."""
    requests = list(requests)
    series = []
    for offset in range(MONTHS - 1, -1, -1):
        year, month = _month_start(now.year, now.month, offset)
        key = f"{year:04d}-{month:02d}"
        bucket = [r for r in requests if str(r.get("requestDate") or "")[:7] == key]

        sectors: Dict[str, Dict[str, Any]] = {}
        for request in bucket:
            entry = sectors.setdefault(_sector_of(request), {"name": _sector_of(request), "total": 0, "urgent": 0})
            entry["total"] += 1
            if _is_urgent(request):
                entry["urgent"] += 1

        series.append(
            {
                "key": key,
                "label": f"{MONTH_ABBR[month - 1]}/{year % 100:02d}",
                "fullDate": f"{MONTH_NAMES[month - 1]} de {year}",
                "count": len(bucket),
                "urgentCount": sum(1 for r in bucket if _is_urgent(r)),
                "sectors": sorted(sectors.values(), key=lambda s: s["total"], reverse=True),
            }
        )
    return series


def sector_series(
    requests: Iterable[Dict[str, Any]],
    sectors: Iterable[Dict[str, Any]],
    top: bool = False,
) -> List[Dict[str, Any]]:
    """
    Totals per configured sector plus "Sem Setor", sorted by total (stable).

    With top=True: keep zero-count sectors only when there are at most five configured
    sectors, then cut to the first six.
    """
    sectors = list(sectors)
    totals: Dict[str, Dict[str, Any]] = {s["name"]: {"name": s["name"], "total": 0, "urgent": 0} for s in sectors}

    for request in requests:
        name = _sector_of(request)
        entry = totals.setdefault(name, {"name": name, "total": 0, "urgent": 0})
        entry["total"] += 1
        if _is_urgent(request):
            entry["urgent"] += 1

    ordered = sorted(totals.values(), key=lambda s: s["total"], reverse=True)
    if not top:
        return ordered

    if len(sectors) > SMALL_SECTOR_COUNT:
        ordered = [s for s in ordered if s["total"] > 0]
    return ordered[:TOP_SECTORS]


def y_axis_max(max_count: int) -> int:
    return int(math.ceil((max(max_count, 1) + 1) / 5.0) * 5)


def y_axis_steps(axis_max: int) -> List[int]:
    return [axis_max, round(axis_max * 0.75), round(axis_max * 0.5), round(axis_max * 0.25), 0]


def bar_percent(value: float, maximum: float) -> float:
    return (value / max(maximum, 1)) * 100


def delivery_status(request: Dict[str, Any], today: date, delivered_status: str) -> str | None:
    """delivered / overdue / due_soon / on_track, or None when no delivery date is set."""
    if request.get("status") == delivered_status:
        return "delivered"

    due = parse_date(request.get("deliveryDate"))
    if due is None:
        return None

    remaining = (due - today).days
    if remaining < 0:
        return "overdue"
    if remaining <= DUE_SOON_DAYS:
        return "due_soon"
    return "on_track"


def dashboard_summary(
    requests: Iterable[Dict[str, Any]],
    statuses: Iterable[Dict[str, Any]],
    sectors: Iterable[Dict[str, Any]],
    now: datetime,
    delivered_status: str,
) -> Dict[str, Any]:
    requests = list(requests)
    monthly = monthly_series(requests, now)
    axis_max = y_axis_max(max([m["count"] for m in monthly] + [0]))

    for month in monthly:
        month["percent"] = bar_percent(month["count"], axis_max)

    recent = sorted(requests, key=lambda r: str(r.get("requestDate") or ""), reverse=True)[:5]
    return {
        "total": len(requests),
        "delivered": sum(1 for r in requests if r.get("status") == delivered_status),
        "urgent": sum(1 for r in requests if _is_urgent(r)),
        "statusTally": status_tally(requests, statuses),
        "monthly": monthly,
        "yAxis": {"max": axis_max, "steps": y_axis_steps(axis_max)},
        "sectors": sector_series(requests, sectors, top=True),
        "recent": [
            dict(r, deliveryState=delivery_status(r, now.date(), delivered_status)) for r in recent
        ],
    }
