"""
Cable schedule cost optimisation.

For every circuit in a cable schedule, re-sizes the run for a practical range
of parallel counts, keeps only SANS 10142-1 compliant configurations and
compares their installed cost with the circuit's current configuration.
"""
import logging
from typing import Dict, Iterable, List, Optional, Sequence

from core.converters import material_from_cable_type, normalize_installation_method, to_fixed
from core.costing import material_label, price
from core.models import (
    CableEntry, CableRate, CostBreakdown, CurrentConfig, OptimizationAlternative, OptimizationResult,
    OptimizationStatus, SizingRequest
)
from core.settings import CalculationSettings
from standards.sans import SANSCalculator, rank_key, retain_candidate
from standards.sans_logic import SANSLogic

logger = logging.getLogger(__name__)


def group_entries(entries: Iterable[CableEntry]) -> List[CableEntry]:
    """One entry per physical circuit: parallel legs share a group id or base tag."""
    groups: Dict[str, CableEntry] = {}
    for entry in entries:
        key = entry.parallel_group_id or entry.base_cable_tag or entry.cable_tag
        if key not in groups:
            groups[key] = entry
    return list(groups.values())


def parallel_window(current_count: int, settings: CalculationSettings) -> range:
    if current_count > 1:
        low = max(1, current_count - 2)
        high = min(settings.max_practical_parallel, current_count + 1)
    else:
        low, high = 1, settings.max_practical_parallel
    return range(low, high + 1)


def analyze_entry(
    entry: CableEntry,
    rates: Sequence[CableRate],
    settings: CalculationSettings,
    calculator: Optional[SANSCalculator] = None
) -> OptimizationResult:
    calculator = calculator or SANSCalculator(settings)
    tag = entry.base_cable_tag or entry.cable_tag
    result = OptimizationResult(
        cable_id=entry.id,
        cable_tag=tag,
        status=OptimizationStatus.SKIPPED,
        from_location=entry.from_location,
        to_location=entry.to_location,
        total_length=entry.total_length or 0.0
    )

    if not entry.voltage or not entry.total_length:
        result.compliance_notes = "Skipped: voltage and cable length are required"
        logger.info("Skipping %s: missing voltage or length", tag)
        return result

    # load_amps is the total circuit load; fall back to the protection rating only without load data
    has_load = bool(entry.load_amps and entry.load_amps > 0)
    target_amps = entry.load_amps if has_load else entry.protection_device_rating
    protection = entry.protection_device_rating
    if not target_amps:
        result.compliance_notes = "Skipped: no load current or protection rating"
        logger.info("Skipping %s: no load or protection rating", tag)
        return result

    material = material_from_cable_type(entry.cable_type) or settings.material
    method = normalize_installation_method(entry.installation_method) or settings.installation_method
    current_count = entry.parallel_total_count or 1

    current_cost = price(entry.cable_size or "", entry.cable_type or "", entry.total_length, current_count, rates)
    result.current_config = CurrentConfig(
        size=entry.cable_size or "",
        parallel_count=current_count,
        voltage=entry.voltage,
        load_amps=target_amps,
        cost=current_cost
    )

    request = SizingRequest(
        load_amps=target_amps,
        voltage=entry.voltage,
        total_length=entry.total_length,
        material=material,
        installation_method=method,
        safety_margin=settings.cable_safety_margin,
        protection_device_rating=protection,
        voltage_drop_limit=SANSLogic.voltage_drop_limit(entry.voltage, settings=settings),
        max_amps_per_cable=settings.max_amps_per_cable,
        preferred_amps_per_cable=settings.preferred_amps_per_cable,
        cable_type=entry.cable_type or material_label(material)
    )

    alternatives = []
    for count in parallel_window(current_count, settings):
        amps_per_cable = target_amps / count
        if amps_per_cable < settings.min_amps_per_cable or amps_per_cable > settings.max_amps_per_cable:
            continue

        evaluated = calculator.evaluate_configuration(target_amps, count, request, rates)
        if evaluated is None:
            continue
        candidate, report = evaluated

        # Unpriced options claim no savings
        savings = current_cost.total - candidate.total_cost if candidate.priced else 0.0
        is_current = candidate.cable_size == entry.cable_size and count == current_count
        # Without a priced incumbent every compliant option is shown
        if current_cost.priced and not retain_candidate(candidate.total_cost, current_cost.total, is_current):
            continue

        alternatives.append(OptimizationAlternative(
            size=candidate.cable_size,
            parallel_count=count,
            cost=CostBreakdown(
                supply=candidate.supply_cost,
                install=candidate.install_cost,
                termination=candidate.termination_cost,
                total=candidate.total_cost,
                priced=candidate.priced
            ),
            savings=to_fixed(savings),
            savings_percent=to_fixed(savings / current_cost.total * 100) if current_cost.total > 0 and candidate.priced else 0.0,
            volt_drop=candidate.volt_drop_percentage,
            load_per_cable=candidate.load_per_cable,
            total_derated_capacity=report.total_derated_capacity,
            is_current_config=is_current,
            compliance_report=candidate.compliance_report
        ))

    alternatives.sort(key=rank_key)
    result.alternatives = alternatives

    if not alternatives:
        result.status = OptimizationStatus.NO_VIABLE_CONFIGURATION
        result.compliance_notes = (
            f"No compliant configuration found for {target_amps:.0f}A "
            f"(protection: {protection or 'N/A'}A). Review load, protection and route."
        )
        logger.warning("No viable configuration for %s (%.0fA)", tag, target_amps)
        return result

    best = alternatives[0]
    best.is_recommended = True
    result.status = OptimizationStatus.OPTIMIZED
    if best.priced:
        result.cost_savings = to_fixed(max(a.total_cost for a in alternatives if a.priced) - best.total_cost)
    if has_load:
        result.compliance_notes = (
            f"Circuit load: {target_amps:.0f}A. Protection: {protection or 'N/A'}A. "
            f"All alternatives meet SANS 10142-1 requirements: In <= Iz, I2 <= 1.45 x Iz, "
            f"voltage drop limits, and minimum cable sizing."
        )
    else:
        result.compliance_notes = (
            f"Design based on protection device: {protection}A (load data unavailable). "
            f"All alternatives meet SANS 10142-1 compliance checks."
        )
    return result


def analyze_optimizations(
    entries: Iterable[CableEntry],
    rates: Sequence[CableRate],
    settings: Optional[CalculationSettings] = None
) -> List[OptimizationResult]:
    """Batch analysis of a cable schedule. One result per circuit, never aborts partway."""
    settings = settings or CalculationSettings()
    calculator = SANSCalculator(settings)
    results = [analyze_entry(entry, rates, settings, calculator) for entry in group_entries(entries)]
    logger.info(
        "Analysed %d circuit(s): %d optimised, %d without viable configuration, %d skipped",
        len(results),
        sum(r.status == OptimizationStatus.OPTIMIZED for r in results),
        sum(r.status == OptimizationStatus.NO_VIABLE_CONFIGURATION for r in results),
        sum(r.status == OptimizationStatus.SKIPPED for r in results)
    )
    return results
