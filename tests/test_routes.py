import io
import unittest

from openpyxl import load_workbook

from tests.helpers import AppTestCase


def _new_request(client, **fields):
    body = {"supplier": "Fornecedor A", "responsible": "Administrador", "description": "Compra"}
    body.update(fields)
    response = client.post("/requests/", json=body)
    assert response.status_code == 201, response.get_data(as_text=True)
    return response.get_json()["request"]


class AuthRoutesTest(AppTestCase):
    def test_login_seeds_defaults_and_hides_password(self) -> None:
        payload = self.login()
        self.assertEqual(payload["user"]["name"], "Administrador")
        self.assertTrue(payload["hasFullVisibility"])
        self.assertNotIn("password_hash", payload["user"])

        users = self.client.get("/admin/users").get_json()["users"]
        self.assertEqual(len(users), 3)
        self.assertTrue(all("password_hash" not in u for u in users))

    def test_wrong_password(self) -> None:
        self.client.get("/setup/status")
        response = self.client.post("/auth/login", json={"email": "admin@empresa.com", "password": "nope"})
        self.assertEqual(response.status_code, 401)

    def test_anonymous_is_rejected(self) -> None:
        response = self.client.get("/requests/")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()["error"], "unauthorized")


class RequestRoutesTest(AppTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.login()
        self.ti_request = _new_request(self.client, sector="TI")
        self.rh_request = _new_request(self.client, sector="RH", urgency="Alta")
        self.logout()

    def test_create_defaults(self) -> None:
        self.assertTrue(self.ti_request["orderNumber"].startswith("PED-"))
        self.assertEqual(len(self.ti_request["orderNumber"]), 10)
        self.assertEqual(self.ti_request["requester"], "Administrador")
        self.assertEqual(self.ti_request["status"], "Pendente")
        self.assertEqual(self.ti_request["urgency"], "Normal")
        self.assertEqual(self.ti_request["history"], [])

    def test_required_fields_are_validated(self) -> None:
        self.login()
        response = self.client.post("/requests/", json={"responsible": "Administrador"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("Fornecedor", response.get_json()["fields"])

    def test_restricted_user_sees_own_sector_only(self) -> None:
        self.login("john@example.com", "password")
        listed = self.client.get("/requests/").get_json()["requests"]
        self.assertEqual([r["id"] for r in listed], [self.rh_request["id"]])

        response = self.client.get(f"/requests/{self.ti_request['id']}")
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.get_json()["error"], "access_denied")

        self.assertEqual(self.client.get(f"/requests/{self.rh_request['id']}").status_code, 200)

    def test_restricted_user_cannot_edit(self) -> None:
        self.login("john@example.com", "password")
        response = self.client.put(f"/requests/{self.rh_request['id']}", json={"supplier": "X"})
        self.assertEqual(response.status_code, 403)
        response = self.client.post("/requests/", json={"supplier": "X", "responsible": "John Doe"})
        self.assertEqual(response.status_code, 403)

    def test_setting_delivery_date_marks_delivered_with_history(self) -> None:
        self.login()
        request_id = self.rh_request["id"]
        self.client.put(f"/requests/{request_id}", json={"status": "Em Andamento"})

        response = self.client.put(f"/requests/{request_id}", json={"deliveryDate": "2024-01-05"})
        self.assertEqual(response.status_code, 200, response.get_data(as_text=True))

        record = self.client.get(f"/requests/{request_id}").get_json()["request"]
        self.assertEqual(record["status"], "Entregue")
        self.assertEqual(record["deliveryState"], "delivered")

        latest = record["history"][1:]
        self.assertEqual({e["field"] for e in latest}, {"Previsão de Entrega", "Status"})
        status_entry = next(e for e in latest if e["field"] == "Status")
        self.assertEqual((status_entry["oldValue"], status_entry["newValue"]), ("Em Andamento", "Entregue"))
        self.assertEqual(status_entry["user"], "Administrador")

    def test_clearing_a_field_is_saved_and_audited(self) -> None:
        self.login()
        request_id = self.rh_request["id"]
        response = self.client.put(f"/requests/{request_id}", json={"description": None})
        self.assertEqual(response.status_code, 200, response.get_data(as_text=True))

        with self.app.app_context():
            stored = self.workspace.store.get("requests", request_id)
        self.assertEqual(stored["description"], "")
        self.assertEqual(
            [(e["field"], e["oldValue"], e["newValue"]) for e in stored["history"]],
            [("Descrição", "Compra", "(vazio)")],
        )

        record = self.client.get(f"/requests/{request_id}").get_json()["request"]
        self.assertEqual(record["description"], "")

    def test_search_and_sort(self) -> None:
        self.login()
        found = self.client.get("/requests/?q=alta").get_json()["requests"]
        self.assertEqual(found, [])

        ids = [r["id"] for r in self.client.get("/requests/?sort=sector&order=asc").get_json()["requests"]]
        self.assertEqual(ids, [self.rh_request["id"], self.ti_request["id"]])

    def test_delete(self) -> None:
        self.login()
        self.assertEqual(self.client.delete(f"/requests/{self.ti_request['id']}").status_code, 200)
        self.assertEqual(self.client.get(f"/requests/{self.ti_request['id']}").status_code, 404)

    def test_dashboard_scope(self) -> None:
        self.login("john@example.com", "password")
        summary = self.client.get("/dashboard/").get_json()
        self.assertEqual(summary["total"], 1)
        self.assertEqual(summary["urgent"], 1)
        self.assertEqual(summary["scope"], "RH")
        self.assertEqual(len(summary["monthly"]), 6)


class SettingsRoutesTest(AppTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.login()

    def test_custom_field_lifecycle(self) -> None:
        field = self.client.post("/settings/form-fields", json={"label": "Centro de Custo", "type": "text"}).get_json()["field"]
        self.assertTrue(field["id"].startswith("custom-"))
        self.assertEqual(field["orderIndex"], 11)

        fields = self.client.post(f"/settings/form-fields/{field['id']}/move", json={"direction": "up"}).get_json()["fields"]
        self.assertEqual([f["orderIndex"] for f in fields], list(range(1, 12)))
        self.assertEqual(fields[9]["id"], field["id"])

        self.assertEqual(self.client.delete("/settings/form-fields/orderNumber").status_code, 400)
        self.assertEqual(self.client.delete(f"/settings/form-fields/{field['id']}").status_code, 200)

    def test_status_color_is_validated(self) -> None:
        self.assertEqual(self.client.post("/settings/statuses", json={"name": "Novo", "color": "pink"}).status_code, 400)
        created = self.client.post("/settings/statuses", json={"name": "Novo", "color": "gray"})
        self.assertEqual(created.status_code, 201)

    def test_sla_thresholds(self) -> None:
        self.assertEqual(self.client.get("/settings/sla").get_json(), {"excellent": 5, "good": 10})
        saved = self.client.put("/settings/sla", json={"excellent": 3, "good": 7}).get_json()
        self.assertEqual(saved, {"excellent": 3, "good": 7})
        self.assertEqual(self.client.get("/settings/preferences").get_json()["sla_good"], 7)


class EvaluationAndReportRoutesTest(AppTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.login()
        _new_request(self.client, responsible="John Doe", requestDate="2023-10-01", deliveryDate="2023-10-10", status="Entregue")
        _new_request(self.client, responsible="John Doe", requestDate="2023-10-02", deliveryDate="2023-10-20", status="Entregue")

    def test_lead_time_classification(self) -> None:
        payload = self.client.get("/suppliers/evaluation").get_json()
        john = next(e for e in payload["leadTime"] if e["responsible"] == "John Doe")
        self.assertEqual(john["avgLeadTimeDays"], 13.5)
        self.assertEqual(john["completed"], 2)
        self.assertEqual(john["classification"], "Atenção")

    def test_export(self) -> None:
        response = self.client.post(
            "/reports/export",
            json={"start": "2023-10-01", "end": "2023-10-31", "includeHistory": True},
        )
        self.assertEqual(response.status_code, 200)
        self.assertIn("Relatorio_Suprimentos_2023-10-01_a_2023-10-31.xlsx", response.headers["Content-Disposition"])
        workbook = load_workbook(io.BytesIO(response.data))
        self.assertEqual(workbook.sheetnames, ["Solicitações", "Histórico"])

        self.assertEqual(self.client.post("/reports/export", json={"start": "2030-01-01", "end": "2030-01-31"}).status_code, 400)

    def test_restricted_user_cannot_export_or_evaluate(self) -> None:
        self.logout()
        self.login("jane@example.com", "password")
        self.assertEqual(self.client.get("/suppliers/evaluation").status_code, 403)
        self.assertEqual(self.client.post("/reports/export", json={"start": "2023-10-01", "end": "2023-10-31"}).status_code, 403)


class PriceMapAndThermalRoutesTest(AppTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.login()
        self.alfa = self.client.post("/suppliers/", json={"name": "Alfa", "rating": 4}).get_json()["supplier"]
        self.beta = self.client.post("/suppliers/", json={"name": "Beta"}).get_json()["supplier"]

    def _create_map(self, title: str) -> dict:
        response = self.client.post(
            "/pricemaps/",
            json={
                "title": title,
                "items": [{"id": "i1", "description": "Papel A4", "quantity": 10}],
                "supplierIds": [self.alfa["id"]],
            },
        )
        self.assertEqual(response.status_code, 201, response.get_data(as_text=True))
        return response.get_json()["priceMap"]

    def test_price_map_search_by_title(self) -> None:
        self._create_map("Material de Escritório")
        self._create_map("Periféricos")

        found = self.client.get("/pricemaps/?q=escrit").get_json()["priceMaps"]
        self.assertEqual([m["title"] for m in found], ["Material de Escritório"])
        self.assertEqual(len(self.client.get("/pricemaps/").get_json()["priceMaps"]), 2)

    def test_thermal_search_by_tag_or_equipment(self) -> None:
        self.client.post("/thermal/", json={"tag": "MTR-01", "equipmentName": "Motor da esteira"})
        self.client.post("/thermal/", json={"tag": "CMP-02", "equipmentName": "Compressor"})

        by_tag = self.client.get("/thermal/?q=mtr").get_json()["analyses"]
        self.assertEqual([a["tag"] for a in by_tag], ["MTR-01"])
        by_name = self.client.get("/thermal/?q=COMPRESSOR").get_json()["analyses"]
        self.assertEqual([a["tag"] for a in by_name], ["CMP-02"])

    def test_regular_user_cannot_write_price_maps_or_analyses(self) -> None:
        price_map = self._create_map("Periféricos")
        self.logout()
        self.login("john@example.com", "password")

        body = {"title": "Nova", "items": [{"description": "Mouse"}], "supplierIds": [self.alfa["id"]]}
        self.assertEqual(self.client.post("/pricemaps/", json=body).status_code, 403)
        self.assertEqual(self.client.patch(f"/pricemaps/{price_map['id']}", json={"title": "X"}).status_code, 403)
        offer = self.client.patch(
            f"/pricemaps/{price_map['id']}/offers/{self.alfa['id']}", json={"itemId": "i1", "price": 1}
        )
        self.assertEqual(offer.status_code, 403)
        self.assertEqual(self.client.delete(f"/pricemaps/{price_map['id']}").status_code, 403)

        response = self.client.post("/thermal/", json={"tag": "MTR-09"})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.get_json()["error"], "access_denied")

    def test_price_map_comparison(self) -> None:
        created = self.client.post(
            "/pricemaps/",
            json={
                "title": "Periféricos",
                "items": [{"id": "i1", "description": "Mouse", "quantity": 2}],
                "supplierIds": [self.alfa["id"], self.beta["id"]],
            },
        )
        self.assertEqual(created.status_code, 201)
        map_id = created.get_json()["priceMap"]["id"]

        self.client.patch(f"/pricemaps/{map_id}/offers/{self.alfa['id']}", json={"itemId": "i1", "price": 10})
        response = self.client.patch(f"/pricemaps/{map_id}/offers/{self.alfa['id']}", json={"field": "freight", "value": 5})
        result = response.get_json()

        self.assertEqual(result["comparison"]["winner"]["supplierId"], self.alfa["id"])
        self.assertEqual(result["comparison"]["winner"]["totalWithFreight"], 25)
        beta_offer = next(o for o in result["priceMap"]["offers"] if o["supplierId"] == self.beta["id"])
        self.assertEqual(beta_offer["prices"], {})
        self.assertEqual(beta_offer["freight"], 0)

    def test_thermal_measurement(self) -> None:
        created = self.client.post("/thermal/", json={"tag": "MTR-01", "operatingTemp": 60, "criticalThreshold": 10})
        self.assertEqual(created.status_code, 201)
        analysis_id = created.get_json()["analysis"]["id"]

        measured = self.client.post(f"/thermal/{analysis_id}/measurements", json={"measuredTemp": 67})
        self.assertEqual(measured.status_code, 201)
        self.assertEqual(measured.get_json()["analysis"]["status"], "Atenção")

        self.logout()
        self.login("john@example.com", "password")
        self.assertEqual(self.client.get(f"/thermal/{analysis_id}").status_code, 403)


if __name__ == "__main__":
    unittest.main()
