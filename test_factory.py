import unittest
from core.models import ConductorMaterial, InstallationMethod, SizingRequest, SizingStatus
from core.settings import CalculationSettings
from standards.sans import SANSCalculator, retain_candidate, size_cable
from standards.sans_logic import SANSLogic
from standards.sans_tables import find_conductor, rates_from_table

class TestFactoryFeeder(unittest.TestCase):
    def setUp(self):
        # 500A main feeder, 400V 3Ph, 50m, copper in free air
        self.request = SizingRequest(load_amps=500, voltage=400, total_length=50,
                                     material=ConductorMaterial.COPPER,
                                     installation_method=InstallationMethod.AIR,
                                     max_amps_per_cable=400, preferred_amps_per_cable=300, safety_margin=1.0)

    def test_the_factory(self):
        print("\n--- TEST: 500A FEEDER ---")
        res = size_cable(self.request)

        # 500A > 400A ceiling -> parallel search over n = 2..min(ceil(500/300)+2, 8) = 2..4
        # n=2: 250A / 0.80 = 312.5A -> 150mm² (332A) -> (310+155) * 50 * 2 = 46500
        # n=3: 166.7A / 0.70 = 238.1A -> 95mm² (251A) -> (210+115) * 50 * 3 = 48750
        # n=4: 125A / 0.65 = 192.3A -> 70mm² (207A) -> (165+95) * 50 * 4 = 52000
        for alt in res.alternatives:
            print(f"{alt.cables_in_parallel} x {alt.cable_size}: {alt.total_cost} {alt.compliance_report}")

        self.assertEqual(res.status, SizingStatus.OK)
        self.assertEqual([a.total_cost for a in res.alternatives], [46500, 48750, 52000])
        self.assertEqual(res.recommended_size, "150mm²")
        self.assertEqual(res.cables_in_parallel, 2)
        self.assertEqual(res.total_cost, 46500)
        self.assertEqual(res.cost_savings, 5500)
        self.assertIs(res.recommended, res.alternatives[0])

    def test_conservation_and_ceiling(self):
        res = size_cable(self.request)
        self.assertGreaterEqual(len(res.alternatives), 1)
        for alt in res.alternatives:
            self.assertGreaterEqual(alt.cables_in_parallel, 2)
            self.assertLessEqual(alt.load_per_cable, 400)
            self.assertAlmostEqual(alt.load_per_cable * alt.cables_in_parallel, 500, delta=0.01)

    def test_exactly_one_cheapest_recommended(self):
        res = size_cable(self.request)
        recommended = [a for a in res.alternatives if a.is_recommended]
        self.assertEqual(len(recommended), 1)
        for alt in res.alternatives:
            self.assertLessEqual(recommended[0].total_cost, alt.total_cost)

    def test_compliance_gating(self):
        request = SizingRequest(load_amps=900, voltage=400, total_length=120,
                                safety_margin=1.15, derating_factor=0.9)
        calc = SANSCalculator()
        res = calc.size_cable(request)
        limit = SANSLogic.voltage_drop_limit(400)
        self.assertTrue(res.alternatives)
        for alt in res.alternatives:
            conductor = find_conductor(alt.cable_size, ConductorMaterial.COPPER)
            grouping = SANSLogic.grouping_factor(alt.cables_in_parallel)
            derated = conductor.rating_air * grouping * request.derating_factor
            self.assertLessEqual(alt.volt_drop_percentage, limit)
            self.assertGreaterEqual(derated, alt.load_per_cable * request.safety_margin)

    def test_no_viable_configuration(self):
        # 5000A needs at least 13 cables, the search stops at 8
        res = size_cable(SizingRequest(load_amps=5000, voltage=400, total_length=50))
        self.assertEqual(res.status, SizingStatus.NO_VIABLE_CONFIGURATION)
        self.assertEqual(res.recommended_size, "300mm²")
        self.assertEqual(res.cables_in_parallel, 13)
        self.assertFalse(res.alternatives)
        self.assertTrue(res.requires_engineer_verification)
        self.assertFalse(res.priced)

    def test_safety_margin_from_settings_run(self):
        # n=2 with 1.15 margin: 250 * 1.15 / 0.8 = 359.4A -> 185mm² (378A)
        settings = CalculationSettings()
        request = SizingRequest(load_amps=500, voltage=400, total_length=50,
                                safety_margin=settings.cable_safety_margin)
        search = SANSCalculator(settings).optimize(500, request, SANSCalculator(settings).default_rates(ConductorMaterial.COPPER))
        two = next(a for a in search.alternatives if a.cables_in_parallel == 2)
        self.assertEqual(two.cable_size, "185mm²")
        self.assertEqual(search.candidates_tried, 3)


class TestIncumbentRetention(unittest.TestCase):
    def test_within_five_percent(self):
        self.assertTrue(retain_candidate(1000, 1000))
        self.assertTrue(retain_candidate(999, 1000))
        self.assertTrue(retain_candidate(1050, 1000))
        self.assertFalse(retain_candidate(1051, 1000))
        self.assertTrue(retain_candidate(5000, 1000, is_incumbent=True))

    def test_optimize_filters_against_incumbent(self):
        calc = SANSCalculator()
        request = SizingRequest(load_amps=500, voltage=400, total_length=50, safety_margin=1.0)
        rates = calc.default_rates(ConductorMaterial.COPPER)
        # 48750 * 1.05 = 51187.5 -> the 52000 option drops out
        search = calc.optimize(500, request, rates, incumbent_cost=48750)
        self.assertEqual([a.total_cost for a in search.alternatives], [46500, 48750])

    def test_unpriced_option_ranks_last(self):
        # No 150mm² rate: 2 x 150mm² is unpriced (total 0) and must not win on cost
        rates = [r for r in rates_from_table(ConductorMaterial.COPPER) if r.cable_size != "150mm²"]
        request = SizingRequest(load_amps=500, voltage=400, total_length=50, safety_margin=1.0)
        res = size_cable(request, rates=rates)
        self.assertEqual([(a.cables_in_parallel, a.priced) for a in res.alternatives], [(3, True), (4, True), (2, False)])
        self.assertEqual(res.recommended_size, "95mm²")
        self.assertTrue(res.priced)
        self.assertEqual(res.cost_savings, 3250)

if __name__ == '__main__':
    unittest.main()
