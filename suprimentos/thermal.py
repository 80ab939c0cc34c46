"""
Thermal analysis status.

Status follows the deviation of the latest measurement from the operating temperature:
beyond the critical threshold -> Crítico, beyond half of it -> Atenção, otherwise Normal.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from .errors import ValidationError
from .models import THERMAL_ATTENTION, THERMAL_CRITICAL, THERMAL_NORMAL

DEFAULT_OPERATING_TEMP = 60.0
DEFAULT_THRESHOLD = 10.0


def evaluate_status(measured: float, target: float, threshold: float) -> str:
    deviation = abs(measured - target)
    if deviation > threshold:
        return THERMAL_CRITICAL
    if deviation > threshold / 2:
        return THERMAL_ATTENTION
    return THERMAL_NORMAL


def _float(value: Any, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Valor numérico inválido para {name}.") from None


def new_analysis(analysis_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    tag = (data.get("tag") or "").strip()
    if not tag:
        raise ValidationError("Informe a TAG do equipamento.")

    return {
        "id": analysis_id,
        "tag": tag,
        "equipmentName": (data.get("equipmentName") or "").strip(),
        "sector": data.get("sector"),
        "operatingTemp": _float(data.get("operatingTemp", DEFAULT_OPERATING_TEMP), "operatingTemp"),
        "criticalThreshold": _float(data.get("criticalThreshold", DEFAULT_THRESHOLD), "criticalThreshold"),
        "status": THERMAL_NORMAL,
        "measurements": [],
    }


def add_measurement(
    analysis: Dict[str, Any],
    measured_temp: Any,
    notes: str | None,
    responsible: str | None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Changes to persist: measurement list with the new reading appended, and the new status."""
    measured = _float(measured_temp, "measuredTemp")
    measurement = {
        "date": (now or datetime.now()).isoformat(),
        "measuredTemp": measured,
        "notes": notes or "",
        "responsible": responsible or "Sistema",
    }
    status = evaluate_status(
        measured,
        float(analysis.get("operatingTemp") or DEFAULT_OPERATING_TEMP),
        float(analysis.get("criticalThreshold") or DEFAULT_THRESHOLD),
    )
    return {
        "measurements": list(analysis.get("measurements") or []) + [measurement],
        "status": status,
    }
