import unittest
from datetime import datetime

from suprimentos.errors import ValidationError
from suprimentos.thermal import add_measurement, evaluate_status, new_analysis


class ThermalStatusTest(unittest.TestCase):
    def test_deviation_bands(self) -> None:
        self.assertEqual(evaluate_status(60, 60, 10), "Normal")
        self.assertEqual(evaluate_status(65, 60, 10), "Normal")
        self.assertEqual(evaluate_status(66, 60, 10), "Atenção")
        self.assertEqual(evaluate_status(70, 60, 10), "Atenção")
        self.assertEqual(evaluate_status(71, 60, 10), "Crítico")
        self.assertEqual(evaluate_status(45, 60, 10), "Crítico")

    def test_measurement_is_appended_and_status_recomputed(self) -> None:
        analysis = new_analysis(1, {"tag": "MTR-01", "equipmentName": "Motor", "sector": "TI"})
        self.assertEqual(analysis["operatingTemp"], 60.0)
        self.assertEqual(analysis["status"], "Normal")

        changes = add_measurement(analysis, "72.5", "Rolamento quente", "Jane", datetime(2024, 2, 1, 8, 0))
        self.assertEqual(changes["status"], "Crítico")
        self.assertEqual(
            changes["measurements"],
            [{"date": "2024-02-01T08:00:00", "measuredTemp": 72.5, "notes": "Rolamento quente", "responsible": "Jane"}],
        )
        self.assertEqual(analysis["measurements"], [])

    def test_invalid_input(self) -> None:
        with self.assertRaises(ValidationError):
            new_analysis(1, {"tag": " "})
        with self.assertRaises(ValidationError):
            add_measurement({"operatingTemp": 60, "criticalThreshold": 10}, "quente", None, None)


if __name__ == "__main__":
    unittest.main()
