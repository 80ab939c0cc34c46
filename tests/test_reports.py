import io
import unittest

from openpyxl import load_workbook

from suprimentos.errors import ValidationError
from suprimentos.reports import export_requests, filter_by_period, format_items
from suprimentos.seed import DEFAULT_FORM_FIELDS

REQUESTS = [
    {
        "orderNumber": "PED-001",
        "requestDate": "2023-10-01",
        "supplier": "Fornecedor A",
        "status": "Entregue",
        "items": [
            {"name": "Mouse", "quantity": 5, "status": "Entregue"},
            {"name": "Teclado", "quantity": 2, "status": "Pendente"},
        ],
        "customFields": {"notes": "Urgente"},
        "history": [{"date": "2023-10-05", "user": "Admin", "field": "Status", "oldValue": "Pendente", "newValue": "Entregue"}],
    },
    {"orderNumber": "PED-002", "requestDate": "2023-10-31", "supplier": None, "items": []},
    {"orderNumber": "PED-003", "requestDate": "2023-11-01", "items": []},
    {"orderNumber": "PED-004", "requestDate": None, "items": []},
]


class ReportTest(unittest.TestCase):
    def test_period_is_inclusive(self) -> None:
        selected = filter_by_period(REQUESTS, "2023-10-01", "2023-10-31")
        self.assertEqual([r["orderNumber"] for r in selected], ["PED-001", "PED-002"])

    def test_items_format(self) -> None:
        self.assertEqual(format_items(REQUESTS[0]["items"]), "5x Mouse (Entregue); \n2x Teclado (Pendente)")
        self.assertEqual(format_items(None), "")

    def test_workbook_layout(self) -> None:
        filename, content = export_requests(
            REQUESTS,
            DEFAULT_FORM_FIELDS,
            ["orderNumber", "supplier", "notes", "items"],
            "2023-10-01",
            "2023-10-31",
            include_history=True,
        )
        self.assertEqual(filename, "Relatorio_Suprimentos_2023-10-01_a_2023-10-31.xlsx")

        workbook = load_workbook(io.BytesIO(content))
        self.assertEqual(workbook.sheetnames, ["Solicitações", "Histórico"])

        rows = list(workbook["Solicitações"].iter_rows(values_only=True))
        self.assertEqual(rows[0], ("Nº do Pedido", "Fornecedor", "Observações", "Itens da Solicitação"))
        self.assertEqual(rows[1][0], "PED-001")
        self.assertEqual(rows[1][2], "Urgente")
        self.assertEqual(len(rows), 3)

        history = list(workbook["Histórico"].iter_rows(values_only=True))
        self.assertEqual(history[1][0], "PED-001")
        self.assertEqual(history[1][3], "Status")

    def test_empty_period_is_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            export_requests(REQUESTS, DEFAULT_FORM_FIELDS, ["orderNumber"], "2030-01-01", "2030-12-31")


if __name__ == "__main__":
    unittest.main()
