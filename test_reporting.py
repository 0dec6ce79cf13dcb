import io
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from openpyxl import load_workbook
from core.models import CableEntry, ConductorMaterial, SizingRequest
from core.reporting import (
    ALTERNATIVE_COLUMNS, SUMMARY_COLUMNS, export_to_excel, optimizations_to_dataframe,
    sizing_to_dataframe, summary_dataframe
)
from main import main
from standards.optimization import analyze_optimizations
from standards.sans import size_cable
from standards.sans_tables import rates_from_table

def sample_results():
    entries = [
        CableEntry(id="1", cable_tag="MV-01", voltage=400, load_amps=500, cable_size="120mm²",
                   cable_type="Cu/PVC", total_length=50, installation_method="air", parallel_total_count=3),
        CableEntry(id="2", cable_tag="MV-02", voltage=None, load_amps=80, total_length=20),
    ]
    return analyze_optimizations(entries, rates_from_table(ConductorMaterial.COPPER))

class TestReporting(unittest.TestCase):
    def test_alternatives_frame(self):
        df = optimizations_to_dataframe(sample_results())
        self.assertEqual(list(df.columns), ALTERNATIVE_COLUMNS)
        # 2 alternatives for MV-01, a status row for the skipped MV-02
        self.assertEqual(len(df), 3)
        self.assertEqual(df["Recommended"].tolist()[:2], [True, False])
        self.assertEqual(df.iloc[2]["Status"], "skipped")

    def test_summary_frame(self):
        df = summary_dataframe(sample_results())
        self.assertEqual(list(df.columns), SUMMARY_COLUMNS)
        first = df.iloc[0]
        self.assertEqual(first["Best Size"], "185mm²")
        self.assertEqual(first["Savings"], 3000)

    def test_priced_flag(self):
        rates = [r for r in rates_from_table(ConductorMaterial.COPPER) if r.cable_size != "185mm²"]
        entry = CableEntry(id="1", cable_tag="MV-01", voltage=400, load_amps=500, cable_size="120mm²",
                           cable_type="Cu/PVC", total_length=50, installation_method="air", parallel_total_count=3)
        results = analyze_optimizations([entry], rates)
        self.assertEqual(optimizations_to_dataframe(results)["Priced"].tolist(), [True, False])
        self.assertTrue(summary_dataframe(results).iloc[0]["Priced"])

    def test_sizing_frame(self):
        res = size_cable(SizingRequest(load_amps=500, voltage=400, total_length=50))
        df = sizing_to_dataframe(res)
        self.assertEqual(len(df), 3)
        self.assertEqual(df["Recommended"].sum(), 1)

        single = sizing_to_dataframe(size_cable(SizingRequest(load_amps=58, voltage=230, total_length=0)))
        self.assertEqual(len(single), 1)

    def test_excel_export(self):
        buffer = io.BytesIO()
        self.assertIsNone(export_to_excel(sample_results(), buffer))
        buffer.seek(0)
        wb = load_workbook(buffer)
        self.assertEqual(wb.sheetnames, ["Summary", "Alternatives"])
        ws = wb["Alternatives"]
        self.assertEqual(ws["A1"].value, "Cable Tag")
        self.assertTrue(ws["A1"].font.bold)
        self.assertEqual(ws.max_row, 4)

    def test_excel_bytes(self):
        data = export_to_excel(sample_results())
        self.assertTrue(data.startswith(b"PK"))


class TestCommandLine(unittest.TestCase):
    def test_size_command(self):
        self.assertEqual(main(["size", "58", "230", "0", "--method", "duct", "--material", "copper"]), 0)

    def test_analyze_marks_unpriced(self):
        fd, schedule = tempfile.mkstemp(suffix=".yaml")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write("cables:\n  - {cable_tag: C-01, voltage: 400, load_amps: 500, cable_size: 185mm², "
                    "cable_type: Cu/PVC, total_length: 50, parallel_total_count: 2}\n")
        out = io.StringIO()
        try:
            with redirect_stdout(out):
                self.assertEqual(main(["analyze", schedule]), 0)
        finally:
            os.remove(schedule)
        self.assertIn("(unpriced)", out.getvalue())

    def test_invalid_material(self):
        self.assertEqual(main(["size", "58", "230", "0", "--material", "steel"]), 1)

    def test_missing_schedule(self):
        self.assertEqual(main(["analyze", "does-not-exist.yaml"]), 1)

    def test_analyze_to_workbook(self):
        fd, schedule = tempfile.mkstemp(suffix=".yaml")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write("cables:\n  - {cable_tag: C-01, voltage: 400, load_amps: 500, cable_size: 185mm², "
                    "cable_type: Cu/PVC, total_length: 50, parallel_total_count: 2}\n")
        out = schedule.replace(".yaml", ".xlsx")
        try:
            self.assertEqual(main(["analyze", schedule, "--xlsx", out]), 0)
            self.assertTrue(os.path.exists(out))
        finally:
            os.remove(schedule)
            if os.path.exists(out):
                os.remove(out)

if __name__ == '__main__':
    unittest.main()
