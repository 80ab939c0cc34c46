import unittest

from suprimentos.performance import (
    average_days_to_purchase_order,
    classify,
    days_to_purchase_order,
    efficiency_by_buyer,
    lead_time_by_responsible,
    search_suppliers,
    sla_thresholds,
    supplier_activity,
)


class LeadTimeTest(unittest.TestCase):
    def test_two_delivered_requests_average(self) -> None:
        requests = [
            {"requestDate": "2023-10-01", "deliveryDate": "2023-10-10", "status": "Entregue", "responsible": "John Doe"},
            {"requestDate": "2023-10-02", "deliveryDate": "2023-10-20", "status": "Entregue", "responsible": "John Doe"},
        ]
        (john,) = lead_time_by_responsible(requests, "Entregue")
        self.assertEqual(john["total"], 2)
        self.assertEqual(john["completed"], 2)
        self.assertEqual(john["avgLeadTimeDays"], 13.5)
        self.assertEqual(classify(john["avgLeadTimeDays"], 5, 10), "Atenção")

    def test_incomplete_requests_do_not_count_as_completed(self) -> None:
        requests = [
            {"requestDate": "2023-10-01", "deliveryDate": "2023-10-10", "status": "Pendente", "responsible": "Jane"},
            {"requestDate": "2023-10-01", "status": "Entregue", "responsible": "Jane"},
        ]
        (jane,) = lead_time_by_responsible(requests, "Entregue")
        self.assertEqual(jane["total"], 2)
        self.assertEqual(jane["completed"], 0)
        self.assertIsNone(jane["avgLeadTimeDays"])


class ClassifyTest(unittest.TestCase):
    def test_boundaries(self) -> None:
        self.assertEqual(classify(5.0, 5, 10), "Excelente")
        self.assertEqual(classify(10.0, 5, 10), "Bom")
        self.assertEqual(classify(10.1, 5, 10), "Atenção")
        self.assertEqual(classify(None, 5, 10), "Indefinido")

    def test_thresholds_from_app_config(self) -> None:
        self.assertEqual(sla_thresholds([]), (5, 10))
        self.assertEqual(sla_thresholds([{"sla_excellent": 3, "sla_good": 7}]), (3, 7))
        self.assertEqual(sla_thresholds([{"sla_excellent": None, "sla_good": 7}], 4, 8), (4, 7))


class PurchaseOrderTest(unittest.TestCase):
    def test_negative_difference_is_clamped(self) -> None:
        self.assertEqual(days_to_purchase_order({"requestDate": "2024-01-10", "purchaseOrderDate": "2024-01-05"}), 0)
        self.assertEqual(days_to_purchase_order({"requestDate": "2024-01-01", "purchaseOrderDate": "2024-01-04"}), 3)
        self.assertIsNone(days_to_purchase_order({"requestDate": "2024-01-01"}))

    def test_average(self) -> None:
        requests = [
            {"requestDate": "2024-01-01", "purchaseOrderDate": "2024-01-04"},
            {"requestDate": "2024-01-01", "purchaseOrderDate": "2024-01-02"},
            {"requestDate": "2024-01-01"},
        ]
        result = average_days_to_purchase_order(requests)
        self.assertEqual(len(result["list"]), 2)
        self.assertEqual(result["avgDays"], 2.0)
        self.assertEqual(average_days_to_purchase_order([])["avgDays"], 0.0)


class EfficiencyTest(unittest.TestCase):
    def test_every_user_listed_and_unassigned_bucket(self) -> None:
        requests = [
            {"responsible": "John Doe", "requestDate": "2024-01-01", "purchaseOrderDate": "2024-01-03"},
            {"responsible": "John Doe", "requestDate": "2024-01-01"},
            {"responsible": "", "requestDate": "2024-01-01"},
        ]
        rows = efficiency_by_buyer(requests, ["Administrador", "John Doe"])
        self.assertEqual(rows[0]["responsible"], "John Doe")
        self.assertEqual(rows[0]["total"], 2)
        self.assertEqual(rows[0]["converted"], 1)
        self.assertEqual(rows[0]["avgDaysToOC"], 2.0)
        names = {r["responsible"] for r in rows}
        self.assertEqual(names, {"Administrador", "John Doe", "Não atribuído"})


class SupplierMetricsTest(unittest.TestCase):
    def test_activity_and_search(self) -> None:
        requests = [
            {"supplier": "Alfa", "requestDate": "2024-01-01"},
            {"supplier": "Alfa", "requestDate": "2024-03-01"},
            {"supplier": "", "requestDate": "2024-03-01"},
        ]
        self.assertEqual(supplier_activity(requests), {"Alfa": {"count": 2, "lastDate": "2024-03-01"}})

        suppliers = [{"name": "Alfa", "category": "TI"}, {"name": "Beta", "notes": "Móveis de escritório"}]
        self.assertEqual(search_suppliers(suppliers, "MÓVEIS"), [suppliers[1]])
        self.assertEqual(search_suppliers(suppliers, ""), suppliers)


if __name__ == "__main__":
    unittest.main()
