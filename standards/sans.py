import logging
import math
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from core.calculator import CableSizingCalculator
from core.components import ParallelSearch
from core.converters import to_fixed
from core.costing import material_label, price
from core.models import (
    Alternative, CableRate, ComplianceReport, ConductorMaterial, Severity,
    SizingRequest, SizingResult, SizingStatus, ValidationWarning
)
from core.settings import CalculationSettings
from standards.sans_logic import LONG_RUN_METERS, SEVERE_DERATING, SANSLogic
from standards.sans_tables import find_conductor, get_cable_table, rates_from_table

logger = logging.getLogger(__name__)

# Upper bound on conductors per phase proposed by the parallel search
MAX_PARALLEL_SEARCH = 8
# Alternatives up to 5% dearer than the incumbent stay visible
INCUMBENT_TOLERANCE = 1.05


def retain_candidate(total_cost: float, incumbent_cost: float, is_incumbent: bool = False) -> bool:
    return is_incumbent or total_cost < incumbent_cost or total_cost <= incumbent_cost * INCUMBENT_TOLERANCE


def rank_key(alternative) -> Tuple[bool, float]:
    # Unpriced options rank after priced ones; ties keep the smaller conductor count first
    return (not alternative.priced, alternative.total_cost)


class SANSCalculator(CableSizingCalculator):
    """Cable sizing to SANS 10142-1 using the SANS 1507-3 conductor tables."""

    def select_cable(self, required_current, method, material):
        return SANSLogic.select_cable(required_current, method, material)

    def compute_volt_drop(self, current, voltage, length, conductor):
        return SANSLogic.compute_volt_drop(current, voltage, length, conductor)

    def ensure_acceptable_drop(self, start, current, voltage, length, material, limit):
        return SANSLogic.ensure_acceptable_drop(start, current, voltage, length, material, limit)

    def check_compliance(self, conductor, parallel_count, request):
        return SANSLogic.check_compliance(conductor, parallel_count, request, self.settings)

    def default_rates(self, material: ConductorMaterial) -> List[CableRate]:
        return rates_from_table(material)

    def _limit(self, request: SizingRequest) -> float:
        return SANSLogic.voltage_drop_limit(request.voltage, request.voltage_drop_limit, self.settings)

    def _label(self, request: SizingRequest) -> str:
        return request.cable_type or material_label(request.material)

    def size_single(self, request: SizingRequest, rates: Sequence[CableRate]) -> SizingResult:
        logger.debug(
            "[CABLE CALC START] %s, %sA, %sV, %sm, %s",
            request.material.value, request.load_amps, request.voltage, request.total_length,
            request.installation_method.value
        )
        # Safety margin raises the required rating, derating lowers what the cable can carry
        required = request.load_amps * request.safety_margin / request.derating_factor
        selection = self.select_cable(required, request.installation_method, request.material)
        conductor = selection.conductor
        limit = self._limit(request)

        if request.total_length > 0:
            conductor = self.ensure_acceptable_drop(
                conductor, request.load_amps, request.voltage, request.total_length, request.material, limit
            )

        volts = self.compute_volt_drop(request.load_amps, request.voltage, request.total_length, conductor)
        vd_percent = SANSLogic.volt_drop_percent(volts, request.voltage)
        cost = price(conductor.size, self._label(request), request.total_length, 1, rates)

        compliance = self.check_compliance(conductor, 1, request)
        if not selection.capacity_sufficient:
            # Already reported as capacity insufficient
            compliance.failures = [f for f in compliance.failures if not f.startswith("Capacity")]

        warnings = SANSLogic.validate(
            conductor, request, vd_percent, limit, selection.capacity_sufficient, compliance
        )
        if not cost.priced:
            warnings.append(ValidationWarning(Severity.INFO, f"No rate for {conductor.size}: costs not included", "cost"))

        return SizingResult(
            recommended_size=conductor.size,
            ohm_per_km=conductor.impedance,
            volt_drop=to_fixed(volts),
            volt_drop_percentage=to_fixed(vd_percent),
            supply_cost=cost.supply,
            install_cost=cost.install,
            termination_cost=cost.termination,
            total_cost=cost.total,
            cables_in_parallel=1,
            load_per_cable=request.load_amps,
            capacity_sufficient=selection.capacity_sufficient,
            status=SizingStatus.OK if selection.capacity_sufficient else SizingStatus.CAPACITY_INSUFFICIENT,
            priced=cost.priced,
            validation_warnings=warnings,
            requires_engineer_verification=_needs_verification(warnings)
        )

    def size_parallel(self, request: SizingRequest, rates: Sequence[CableRate]) -> SizingResult:
        search = self.optimize(request.load_amps, request, rates)

        if not search.viable:
            return self._no_viable_result(request, search)

        recommended = search.alternatives[0]
        conductor = find_conductor(recommended.cable_size, request.material)
        volts = self.compute_volt_drop(recommended.load_per_cable, request.voltage, request.total_length, conductor)
        priced_costs = [a.total_cost for a in search.alternatives if a.priced]
        most_expensive = max(priced_costs) if recommended.priced else recommended.total_cost

        warnings = []
        if not recommended.priced:
            warnings.append(ValidationWarning(
                Severity.INFO, f"No rate for {recommended.cable_size}: costs not included", "cost"
            ))
        if request.derating_factor < SEVERE_DERATING:
            warnings.append(ValidationWarning(
                Severity.WARNING,
                f"Severe derating factor {request.derating_factor}: verify installation conditions",
                "derating_factor"
            ))
        if request.total_length > LONG_RUN_METERS:
            warnings.append(ValidationWarning(
                Severity.INFO,
                f"Long run ({request.total_length:.0f}m): confirm fault-loop impedance and protection",
                "total_length"
            ))

        return SizingResult(
            recommended_size=recommended.cable_size,
            ohm_per_km=conductor.impedance,
            volt_drop=to_fixed(volts),
            volt_drop_percentage=recommended.volt_drop_percentage,
            supply_cost=recommended.supply_cost,
            install_cost=recommended.install_cost,
            termination_cost=recommended.termination_cost,
            total_cost=recommended.total_cost,
            cables_in_parallel=recommended.cables_in_parallel,
            load_per_cable=recommended.load_per_cable,
            capacity_sufficient=True,
            status=SizingStatus.OK,
            priced=recommended.priced,
            validation_warnings=warnings,
            requires_engineer_verification=_needs_verification(warnings),
            alternatives=search.alternatives,
            cost_savings=to_fixed(most_expensive - recommended.total_cost)
        )

    def _no_viable_result(self, request: SizingRequest, search: ParallelSearch) -> SizingResult:
        largest = get_cable_table(request.material)[-1]
        count = max(1, math.ceil(request.load_amps / request.max_amps_per_cable))
        load_per_cable = request.load_amps / count
        volts = self.compute_volt_drop(load_per_cable, request.voltage, request.total_length, largest)
        message = (
            f"No viable parallel configuration for {request.load_amps}A: "
            f"{search.candidates_tried} configuration(s) evaluated, none compliant"
        )
        logger.warning(message)
        return SizingResult(
            recommended_size=largest.size,
            ohm_per_km=largest.impedance,
            volt_drop=to_fixed(volts),
            volt_drop_percentage=to_fixed(SANSLogic.volt_drop_percent(volts, request.voltage)),
            supply_cost=0.0,
            install_cost=0.0,
            total_cost=0.0,
            cables_in_parallel=count,
            load_per_cable=load_per_cable,
            capacity_sufficient=False,
            status=SizingStatus.NO_VIABLE_CONFIGURATION,
            priced=False,
            validation_warnings=[ValidationWarning(Severity.ERROR, message, "cable_size")],
            requires_engineer_verification=True
        )

    def evaluate_configuration(
        self,
        total_load: float,
        parallel_count: int,
        request: SizingRequest,
        rates: Sequence[CableRate]
    ) -> Optional[Tuple[Alternative, ComplianceReport]]:
        """
        Sizes `parallel_count` conductors sharing `total_load`. Returns None when
        no conductor fits or the configuration fails any compliance check.
        """
        request = request.with_defaults(self.settings)
        load_per_cable = total_load / parallel_count
        if load_per_cable > request.max_amps_per_cable:
            return None

        grouping = SANSLogic.grouping_factor(parallel_count, self.settings)
        required = load_per_cable * request.safety_margin / (request.derating_factor * grouping)
        selection = self.select_cable(required, request.installation_method, request.material)
        if selection is None or not selection.capacity_sufficient:
            return None

        conductor = selection.conductor
        if request.total_length > 0:
            conductor = self.ensure_acceptable_drop(
                conductor, load_per_cable, request.voltage, request.total_length, request.material, self._limit(request)
            )

        circuit = replace(request, load_amps=total_load)
        report = self.check_compliance(conductor, parallel_count, circuit)
        if not report.ok:
            return None

        cost = price(conductor.size, self._label(request), request.total_length, parallel_count, rates)
        alternative = Alternative(
            cable_size=conductor.size,
            cables_in_parallel=parallel_count,
            load_per_cable=load_per_cable,
            volt_drop_percentage=to_fixed(report.volt_drop_percent),
            supply_cost=cost.supply,
            install_cost=cost.install,
            termination_cost=cost.termination,
            total_cost=cost.total,
            compliance_report=SANSLogic.compliance_summary(
                report, total_load, parallel_count, request.protection_device_rating
            ),
            priced=cost.priced
        )
        return alternative, report

    def optimize(
        self,
        total_load: float,
        request: SizingRequest,
        rates: Sequence[CableRate],
        incumbent_cost: Optional[float] = None
    ) -> ParallelSearch:
        request = request.with_defaults(self.settings)
        min_cables = max(1, math.ceil(total_load / request.max_amps_per_cable))
        max_cables = min(math.ceil(total_load / request.preferred_amps_per_cable) + 2, MAX_PARALLEL_SEARCH)

        alternatives = []
        tried = 0
        for count in range(min_cables, max_cables + 1):
            tried += 1
            evaluated = self.evaluate_configuration(total_load, count, request, rates)
            if evaluated is None:
                continue
            alternative, _ = evaluated
            if incumbent_cost is not None and not retain_candidate(alternative.total_cost, incumbent_cost):
                continue
            alternatives.append(alternative)

        alternatives.sort(key=rank_key)
        if alternatives:
            alternatives[0].is_recommended = True
            logger.debug(
                "Parallel search for %.1fA: %d of %d configurations viable, best %d x %s",
                total_load, len(alternatives), tried, alternatives[0].cables_in_parallel, alternatives[0].cable_size
            )
        return ParallelSearch(alternatives=alternatives, viable=bool(alternatives), candidates_tried=tried)


def _needs_verification(warnings: List[ValidationWarning]) -> bool:
    return any(w.severity in (Severity.ERROR, Severity.WARNING) for w in warnings)


def size_cable(
    request: SizingRequest,
    settings: Optional[CalculationSettings] = None,
    rates: Optional[Sequence[CableRate]] = None
) -> Optional[SizingResult]:
    return SANSCalculator(settings).size_cable(request, rates)
