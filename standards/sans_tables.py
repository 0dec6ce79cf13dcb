from typing import List, Optional, Tuple

from core.components import ConductorSpec
from core.costing import material_label
from core.models import CableRate, ConductorMaterial

# SANS 1507-3 Table 6.2 - PVC insulated copper cables, 600/1000V
# Columns: size, ground (A), ducts (A), air (A), Ohm/km @20C, 3ph mV/A/m, 1ph mV/A/m, supply /m, install /m
# Ratings to be verified against SANS 10142-1 Ed. 3 (2020) before issue
COPPER_CABLE_TABLE: Tuple[ConductorSpec, ...] = (
    ConductorSpec("1.5mm²", 24, 20, 19, 14.48, 25.080, 28.956, 8.5, 15),
    ConductorSpec("2.5mm²", 32, 26, 26, 8.87, 15.363, 17.734, 12, 18),
    ConductorSpec("4mm²", 42, 34, 35, 5.52, 9.561, 11.034, 18, 22),
    ConductorSpec("6mm²", 53, 43, 45, 3.69, 6.391, 7.374, 25, 28),
    ConductorSpec("10mm²", 70, 58, 62, 2.19, 3.793, 4.384, 38, 35),
    ConductorSpec("16mm²", 91, 75, 83, 1.38, 2.390, 2.759, 52, 42),
    ConductorSpec("25mm²", 119, 96, 110, 0.8749, 1.515, 1.749, 75, 55),
    ConductorSpec("35mm²", 143, 116, 135, 0.6335, 1.097, 1.267, 95, 65),
    ConductorSpec("50mm²", 169, 138, 163, 0.4718, 0.817, 0.944, 125, 78),
    ConductorSpec("70mm²", 210, 171, 207, 0.3325, 0.576, 0.665, 165, 95),
    ConductorSpec("95mm²", 251, 205, 251, 0.2460, 0.427, 0.492, 210, 115),
    ConductorSpec("120mm²", 285, 234, 290, 0.2012, 0.348, 0.402, 255, 135),
    ConductorSpec("150mm²", 320, 263, 332, 0.1698, 0.294, 0.339, 310, 155),
    ConductorSpec("185mm²", 361, 298, 378, 0.1445, 0.250, 0.289, 375, 180),
    ConductorSpec("240mm²", 416, 344, 445, 0.1220, 0.211, 0.244, 475, 215),
    ConductorSpec("300mm²", 465, 385, 510, 0.1090, 0.189, 0.218, 580, 250),
)

# SANS 1507-3 Table 6.3 - PVC insulated aluminium cables, 600/1000V
ALUMINIUM_CABLE_TABLE: Tuple[ConductorSpec, ...] = (
    ConductorSpec("25mm²", 90, 73, 80, 1.4446, 2.502, 2.889, 45, 55),
    ConductorSpec("35mm²", 108, 87, 99, 1.0465, 1.813, 2.093, 58, 65),
    ConductorSpec("50mm²", 129, 104, 119, 0.7749, 1.342, 1.549, 75, 78),
    ConductorSpec("70mm²", 158, 130, 151, 0.5388, 0.933, 1.078, 98, 95),
    ConductorSpec("95mm²", 192, 157, 186, 0.3934, 0.681, 0.787, 125, 115),
    ConductorSpec("120mm²", 219, 179, 216, 0.3148, 0.545, 0.629, 152, 135),
    ConductorSpec("150mm²", 245, 201, 250, 0.2607, 0.452, 0.521, 185, 155),
    ConductorSpec("185mm²", 278, 229, 287, 0.2133, 0.369, 0.427, 222, 180),
    ConductorSpec("240mm²", 324, 268, 342, 0.1708, 0.296, 0.342, 280, 215),
)

# SANS 10142-1 - Minimum conductor size (mm²) for a protective device rating
# Format: (Max_Breaker_Rating, Min_Size_mm2); above the last limit -> MIN_SIZE_ABOVE_TABLE
MIN_SIZE_FOR_BREAKER = (
    (20, 1.5),
    (32, 2.5),
    (63, 4),
    (100, 6),
    (125, 10),
    (160, 16),
    (200, 25),
    (250, 35),
    (315, 50),
    (400, 70),
    (500, 95),
    (630, 120),
    (800, 150),
)
MIN_SIZE_ABOVE_TABLE = 185


def get_cable_table(material: ConductorMaterial) -> Tuple[ConductorSpec, ...]:
    if material == ConductorMaterial.ALUMINIUM:
        return ALUMINIUM_CABLE_TABLE
    return COPPER_CABLE_TABLE


def find_conductor(size: str, material: ConductorMaterial) -> Optional[ConductorSpec]:
    for conductor in get_cable_table(material):
        if conductor.size == size:
            return conductor
    return None


def get_min_size_for_breaker(rating: float) -> float:
    for limit, min_size in MIN_SIZE_FOR_BREAKER:
        if rating <= limit:
            return min_size
    return MIN_SIZE_ABOVE_TABLE


def rates_from_table(material: ConductorMaterial) -> List[CableRate]:
    """Default rate table built from the reference table's per-meter costs (no terminations)."""
    label = material_label(material)
    return [
        CableRate(
            cable_size=c.size,
            cable_type=label,
            supply_rate_per_meter=c.supply_cost,
            install_rate_per_meter=c.install_cost
        )
        for c in get_cable_table(material)
    ]
