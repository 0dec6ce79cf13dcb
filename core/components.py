import re
from dataclasses import dataclass
from typing import List

from .models import Alternative, InstallationMethod

_SIZE_PATTERN = re.compile(r"(\d+\.?\d*)")


def parse_size_mm2(size: str) -> float:
    """Returns the cross-section of a size label ("16mm²" -> 16.0), 0.0 if unparseable."""
    match = _SIZE_PATTERN.search(size or "")
    return float(match.group(1)) if match else 0.0


@dataclass(frozen=True)
class ConductorSpec:
    size: str                # e.g. "16mm²"
    rating_buried: float     # Amps, direct in ground
    rating_duct: float       # Amps, in ducts
    rating_air: float        # Amps, free air
    impedance: float         # Ohm/km at 20C
    volt_drop_3phase: float  # mV/A/m
    volt_drop_1phase: float  # mV/A/m
    supply_cost: float       # per meter
    install_cost: float      # per meter

    def ampacity(self, method: InstallationMethod) -> float:
        if method == InstallationMethod.BURIED:
            return self.rating_buried
        if method == InstallationMethod.DUCT:
            return self.rating_duct
        return self.rating_air

    @property
    def size_mm2(self) -> float:
        return parse_size_mm2(self.size)


@dataclass(frozen=True)
class CableSelection:
    conductor: ConductorSpec
    required_rating: float
    capacity_sufficient: bool = True


@dataclass
class ParallelSearch:
    alternatives: List[Alternative]
    viable: bool
    candidates_tried: int = 0
