import os
import tempfile
import unittest
from core.converters import convert_length_unit, normalize_installation_method, normalize_material
from core.models import ConductorMaterial, InstallationMethod
from core.schedule import load_schedule, parse_schedule
from core.settings import CalculationSettings, load_settings

SCHEDULE_YAML = """
settings:
  cable_safety_margin: "1.15"
  default_installation_method: Ducts
rates:
  - {cable_size: 95mm², cable_type: Copper, supply_rate_per_meter: 210, install_rate_per_meter: 115}
cables:
  - {cable_tag: C-01, voltage: 400, load_amps: 500, cable_size: 185mm², cable_type: Cu/PVC, total_length: 50, parallel_total_count: 2}
  - {id: 7, cable_tag: C-02, voltage: 230, load_amps: 20}
"""

def write_temp(text):
    fd, path = tempfile.mkstemp(suffix=".yaml")
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(text)
    return path

class TestSettings(unittest.TestCase):
    def test_defaults(self):
        s = CalculationSettings()
        self.assertEqual(s.voltage_drop_limit_400v, 5.0)
        self.assertEqual(s.voltage_drop_limit_230v, 3.0)
        self.assertEqual(s.cable_safety_margin, 1.15)
        self.assertEqual(s.material, ConductorMaterial.ALUMINIUM)
        self.assertEqual(s.installation_method, InstallationMethod.AIR)

    def test_from_string_record(self):
        s = CalculationSettings.from_mapping({
            "cable_safety_margin": "1.2",
            "max_practical_parallel": "4",
            "default_installation_method": "Ducts",
            "default_cable_material": "Copper",
            "voltage_drop_limit_230v": "",
            "unknown_key": "ignored",
        })
        self.assertEqual(s.cable_safety_margin, 1.2)
        self.assertEqual(s.max_practical_parallel, 4)
        self.assertEqual(s.voltage_drop_limit_230v, 3.0)
        self.assertEqual(s.installation_method, InstallationMethod.DUCT)
        self.assertEqual(s.material, ConductorMaterial.COPPER)

    def test_bad_values_raise(self):
        with self.assertRaises(ValueError):
            CalculationSettings.from_mapping({"cable_safety_margin": "abc"})
        with self.assertRaises(ValueError):
            CalculationSettings(grouping_factor_2_circuits=1.5)
        with self.assertRaises(ValueError):
            CalculationSettings(max_practical_parallel=0)

    def test_yaml_settings(self):
        path = write_temp("settings:\n  max_amps_per_cable: 300\n  grouping_factor_3_circuits: 0.75\n")
        try:
            s = load_settings(path)
        finally:
            os.remove(path)
        self.assertEqual(s.max_amps_per_cable, 300)
        self.assertEqual(s.grouping_factor_3_circuits, 0.75)


class TestSchedule(unittest.TestCase):
    def test_load_schedule(self):
        path = write_temp(SCHEDULE_YAML)
        try:
            schedule = load_schedule(path)
        finally:
            os.remove(path)
        self.assertEqual(schedule.settings.installation_method, InstallationMethod.DUCT)
        self.assertEqual(len(schedule.rates), 1)
        self.assertEqual(schedule.rates[0].supply_rate_per_meter, 210)
        self.assertEqual([e.cable_tag for e in schedule.entries], ["C-01", "C-02"])
        self.assertEqual([e.id for e in schedule.entries], ["1", "7"])
        self.assertEqual(schedule.entries[0].parallel_total_count, 2)

    def test_invalid_record(self):
        with self.assertRaises(ValueError):
            parse_schedule({"cables": [{"voltage": 400}]})
        with self.assertRaises(ValueError):
            parse_schedule({"rates": ["95mm²"]})

    def test_empty_schedule(self):
        schedule = parse_schedule(None)
        self.assertEqual(schedule.entries, [])
        self.assertEqual(schedule.settings, CalculationSettings())


class TestConverters(unittest.TestCase):
    def test_installation_aliases(self):
        self.assertEqual(normalize_installation_method("Conduit"), InstallationMethod.DUCT)
        self.assertEqual(normalize_installation_method("ground"), InstallationMethod.BURIED)
        self.assertEqual(normalize_installation_method(InstallationMethod.AIR), InstallationMethod.AIR)
        self.assertIsNone(normalize_installation_method("submarine"))

    def test_material(self):
        self.assertEqual(normalize_material("Al/PVC"), ConductorMaterial.ALUMINIUM)
        self.assertEqual(normalize_material("cu"), ConductorMaterial.COPPER)
        self.assertIsNone(normalize_material("steel"))

    def test_length_units(self):
        self.assertEqual(convert_length_unit(1.5, "km"), 1500)
        self.assertAlmostEqual(convert_length_unit(100, "ft"), 30.48)

if __name__ == '__main__':
    unittest.main()
