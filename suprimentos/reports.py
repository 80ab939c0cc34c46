"""
Spreadsheet export of requests.

Rows: requests whose requestDate falls inside [start, end] (inclusive, ISO string compare).
Columns: the selected form-field ids, in form order, plus the pseudo column "items".
Optional second sheet "Histórico": one row per audit entry, keyed by order number.
"""

from __future__ import annotations

import io
import logging
from typing import Any, Dict, Iterable, List

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font

from .errors import ValidationError
from .form_fields import order_key

logger = logging.getLogger(__name__)

ITEMS_COLUMN = "items"
ITEMS_HEADER = "Itens da Solicitação"
REQUESTS_SHEET = "Solicitações"
HISTORY_SHEET = "Histórico"
HISTORY_HEADERS = ["Nº do Pedido", "Data", "Usuário", "Campo", "Valor Anterior", "Novo Valor"]


def filter_by_period(requests: Iterable[Dict[str, Any]], start: str, end: str) -> List[Dict[str, Any]]:
    return [r for r in requests if r.get("requestDate") and start <= r["requestDate"] <= end]


def format_items(items: Iterable[Dict[str, Any]] | None) -> str:
    return "; \n".join(f"{i.get('quantity')}x {i.get('name')} ({i.get('status')})" for i in items or [])


def project(
    requests: Iterable[Dict[str, Any]],
    fields: List[Dict[str, Any]],
    column_ids: Iterable[str],
) -> tuple[List[str], List[List[Any]]]:
    """(headers, rows) for the selected columns."""
    selected = set(column_ids)
    columns = [f for f in sorted(fields, key=order_key) if f["id"] in selected]
    with_items = ITEMS_COLUMN in selected

    headers = [f["label"] for f in columns]
    if with_items:
        headers.append(ITEMS_HEADER)

    rows = []
    for request in requests:
        row = []
        for field in columns:
            if field.get("isStandard"):
                value = request.get(field["id"])
            else:
                value = (request.get("customFields") or {}).get(field["id"])
            row.append("" if value is None else value)
        if with_items:
            row.append(format_items(request.get("items")))
        rows.append(row)
    return headers, rows


def history_rows(requests: Iterable[Dict[str, Any]]) -> List[List[Any]]:
    rows = []
    for request in requests:
        for entry in request.get("history") or []:
            rows.append(
                [
                    request.get("orderNumber"),
                    entry.get("date"),
                    entry.get("user"),
                    entry.get("field"),
                    entry.get("oldValue"),
                    entry.get("newValue"),
                ]
            )
    return rows


def _write_sheet(sheet, headers: List[str], rows: List[List[Any]]) -> None:
    sheet.append(headers)
    for cell in sheet[1]:
        cell.font = Font(bold=True)
    for row in rows:
        sheet.append(row)
    for row in sheet.iter_rows(min_row=2):
        for cell in row:
            cell.alignment = Alignment(wrap_text=True, vertical="top")


def report_filename(start: str, end: str) -> str:
    return f"Relatorio_Suprimentos_{start}_a_{end}.xlsx"


def export_requests(
    requests: Iterable[Dict[str, Any]],
    fields: List[Dict[str, Any]],
    column_ids: Iterable[str],
    start: str,
    end: str,
    include_history: bool = False,
) -> tuple[str, bytes]:
    """Build the workbook. Returns (filename, xlsx bytes)."""
    selected = filter_by_period(requests, start, end)
    if not selected:
        raise ValidationError("Nenhuma solicitação encontrada no período selecionado.")

    headers, rows = project(selected, fields, column_ids)

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = REQUESTS_SHEET
    _write_sheet(sheet, headers, rows)

    if include_history:
        _write_sheet(workbook.create_sheet(HISTORY_SHEET), HISTORY_HEADERS, history_rows(selected))

    output = io.BytesIO()
    workbook.save(output)
    logger.info("report_exported", extra={"rows": len(rows), "start": start, "end": end})
    return report_filename(start, end), output.getvalue()
