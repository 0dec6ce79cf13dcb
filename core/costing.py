import logging
from typing import Optional, Sequence

from .converters import normalize_cable_type, to_fixed
from .models import CableRate, ConductorMaterial, CostBreakdown

logger = logging.getLogger(__name__)


def find_rate(cable_size: str, cable_type: str, rates: Sequence[CableRate]) -> Optional[CableRate]:
    # Exact label match first, then normalized material ("Cu/PVC" == "Copper")
    for rate in rates:
        if rate.cable_size == cable_size and rate.cable_type == cable_type:
            return rate
    normalized = normalize_cable_type(cable_type)
    for rate in rates:
        if rate.cable_size == cable_size and normalize_cable_type(rate.cable_type) == normalized:
            return rate
    return None


def price(
    cable_size: str,
    cable_type: str,
    length_meters: float,
    parallel_count: int,
    rates: Sequence[CableRate]
) -> CostBreakdown:
    """
    Supply/install/termination cost of a run of parallel conductors.

    Two terminations per conductor run. A size with no rate yields an
    all-zero breakdown with priced=False rather than an error.
    """
    rate = find_rate(cable_size, cable_type, rates)
    if rate is None:
        logger.warning("No rate for %s %s: configuration left unpriced", cable_size, cable_type or "(no type)")
        return CostBreakdown()

    supply = rate.supply_rate_per_meter * length_meters * parallel_count
    install = rate.install_rate_per_meter * length_meters * parallel_count
    termination = rate.termination_cost_per_end * 2 * parallel_count

    return CostBreakdown(
        supply=to_fixed(supply),
        install=to_fixed(install),
        termination=to_fixed(termination),
        total=to_fixed(supply + install + termination),
        priced=True
    )


def material_label(material: ConductorMaterial) -> str:
    return "Copper" if material == ConductorMaterial.COPPER else "Aluminium"

