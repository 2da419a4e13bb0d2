import unittest
from datetime import date, datetime

import medications
from calculator import calculate_all, calculate_everything
from export import (
    FIELD_MAP,
    build_form_payload,
    build_report,
    estimate_age,
    export_file_name,
    field_for,
    format_weight,
)


class TestFormPayload(unittest.TestCase):

    def setUp(self):
        self.rows = calculate_everything(10)

    def test_01_every_emergency_record_has_a_field(self):
        for record in medications.get_by_type("emergency"):
            with self.subTest(record=record.name):
                self.assertIn(field_for(record), FIELD_MAP.values())

    def test_02_prrt_records_are_not_mapped(self):
        for record in medications.get_by_type("prrt"):
            self.assertIsNone(field_for(record))

    def test_03_route_qualified_key_wins(self):
        self.assertEqual(field_for(medications.find("Epinephrine 1:10,000")), "EpinephrineIV")
        self.assertEqual(field_for(medications.find("Atropine ET 0.5 mg/ml")), "Atropine_05_ET")
        self.assertEqual(field_for(medications.find("Atropine 0.5 mg/ml")), "Atropine_05_IV")

    def test_04_payload_content(self):
        payload = build_form_payload(self.rows, 10, generated_on=date(2026, 1, 2))
        self.assertEqual(payload["Weight"], "10 kg")
        self.assertEqual(payload["Date"], "2026-01-02")
        self.assertEqual(payload["EpinephrineIV"], "1.00 mL")
        self.assertEqual(payload["Atropine_01_ET"], "6.00 mL")
        self.assertEqual(payload["VolumeExpanders"], "200.00 mL")
        # Emergency glucagon (1 mL cap), not the PRRT 0.2 mL row
        self.assertEqual(payload["Glucagon"], "1.00 mL")
        self.assertEqual(len(payload), 2 + 21)

    def test_05_error_rows_are_skipped(self):
        rows = calculate_all("emergency", 0)
        payload = build_form_payload(rows, 0, generated_on=date(2026, 1, 2))
        self.assertEqual(set(payload), {"Weight", "Date"})


class TestReport(unittest.TestCase):

    def test_01_estimate_age(self):
        self.assertEqual(estimate_age(2.5), "Newborn")
        self.assertEqual(estimate_age(10), "9-12 months")
        self.assertEqual(estimate_age(44.9), "12-14 years")
        self.assertEqual(estimate_age(50), "15+ years")

    def test_02_file_name(self):
        when = datetime(2026, 10, 17, 9, 5)
        self.assertEqual(export_file_name(10, when),
                         "Pediatric_Drug_Calculations_10kg_2026-10-17_09-05.pdf")
        self.assertEqual(export_file_name(12.5, when),
                         "Pediatric_Drug_Calculations_12.5kg_2026-10-17_09-05.pdf")
        self.assertEqual(export_file_name(0.1 + 0.2, when),
                         "Pediatric_Drug_Calculations_0.3kg_2026-10-17_09-05.pdf")

    def test_03_report_sections(self):
        when = datetime(2026, 10, 17, 9, 5)
        report = build_report(calculate_everything(10), 10, now=when)
        self.assertEqual(report.emergency_count, 21)
        self.assertEqual(report.prrt_count, 12)
        self.assertEqual(report.total, 33)
        self.assertEqual(report.age_estimate, "9-12 months")
        self.assertEqual(report.emergency_rows[0]["volume"], "1.00 mL")
        self.assertEqual(report.emergency_rows[0]["dose"], "0.10 mg")

        data = report.to_dict()
        self.assertEqual(data["generated_at"], "2026-10-17T09:05:00")
        self.assertEqual(data["file_name"], report.file_name)

    def test_04_weight_label_float_noise(self):
        self.assertEqual(format_weight(0.1 + 0.2), "0.3 kg")
        self.assertEqual(format_weight(10), "10 kg")


if __name__ == '__main__':
    unittest.main()
