import unittest

from fastapi.testclient import TestClient

from main import app


class TestPediaDoseAPI(unittest.TestCase):

    def setUp(self):
        self.client = TestClient(app)

    def test_01_health(self):
        res = self.client.get("/health")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["status"], "active")

    def test_02_list_medications(self):
        res = self.client.get("/medications", params={"type": "prrt"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(len(res.json()), 14)

        res = self.client.get("/medications", params={"q": "atropine", "route": "et"})
        self.assertEqual(len(res.json()), 3)

        res = self.client.get("/medications", params={"type": "bogus"})
        self.assertEqual(res.status_code, 422)

    def test_03_stats(self):
        data = self.client.get("/medications/stats").json()
        self.assertEqual(data["total"], 35)
        self.assertEqual(data["emergency_count"], 21)
        self.assertEqual(data["prrt_count"], 14)

    def test_04_calculate_partition(self):
        res = self.client.post("/calculate", json={"weight_kg": 10, "type": "emergency"})
        self.assertEqual(res.status_code, 200)
        data = res.json()
        self.assertEqual(data["count"], 21)
        self.assertEqual(data["error_count"], 0)
        self.assertEqual(data["rows"][0]["display_volume"], "1.00")

    def test_05_calculate_filter_and_sort(self):
        res = self.client.post("/calculate", json={
            "weight_kg": 10, "query": "atropine", "sort_by": "volume", "descending": True,
        })
        rows = res.json()["rows"]
        self.assertEqual(len(rows), 6)
        self.assertEqual(rows[0]["name"], "Atropine ET 1 mg/10 ml")

    def test_06_calculate_rejects_bad_input(self):
        for body in ({"weight_kg": 0}, {"weight_kg": 201}, {"weight_kg": 10, "sort_by": "colour"}):
            with self.subTest(body=body):
                self.assertEqual(self.client.post("/calculate", json=body).status_code, 422)

    def test_07_single_requires_dose(self):
        body = {"name": "Hydrocortisone Na succinate", "weight_kg": 10}
        data = self.client.post("/calculate/single", json=body).json()
        self.assertEqual(data["error_kind"], "missing_dose_input")
        self.assertEqual(data["total_dose"], "Error")

        body["custom_dose"] = 100
        data = self.client.post("/calculate/single", json=body).json()
        self.assertAlmostEqual(data["volume_ml"], 2.0)
        self.assertEqual(data["total_dose"], "100.00 mg")

    def test_08_single_unknown_medication(self):
        res = self.client.post("/calculate/single", json={"name": "Unobtainium", "weight_kg": 10})
        self.assertEqual(res.status_code, 404)

    def test_09_single_partition_selects_record(self):
        body = {"name": "glucagon", "type": "prrt", "weight_kg": 10}
        data = self.client.post("/calculate/single", json=body).json()
        self.assertEqual(data["display_volume"], "0.20")

    def test_10_export_payload(self):
        data = self.client.post("/export/payload", json={"weight_kg": 10}).json()
        self.assertEqual(data["payload"]["Weight"], "10 kg")
        self.assertEqual(data["payload"]["EpinephrineIV"], "1.00 mL")
        self.assertEqual(data["report"]["total"], 33)


if __name__ == '__main__':
    unittest.main()
