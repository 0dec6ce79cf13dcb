import math
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from .components import CableSelection, ConductorSpec, ParallelSearch
from .models import (
    CableRate, ComplianceReport, ConductorMaterial, InstallationMethod, SizingRequest, SizingResult
)
from .settings import CalculationSettings


class CableSizingCalculator(ABC):

    def __init__(self, settings: Optional[CalculationSettings] = None):
        self.settings = settings or CalculationSettings()

    @abstractmethod
    def select_cable(self, required_current: float, method: InstallationMethod, material: ConductorMaterial) -> Optional[CableSelection]:
        """Smallest conductor whose rating covers the current, or the largest one flagged insufficient."""
        pass

    @abstractmethod
    def compute_volt_drop(self, current: float, voltage: float, length: float, conductor: ConductorSpec) -> float:
        """Voltage drop in volts along the run."""
        pass

    @abstractmethod
    def ensure_acceptable_drop(self, start: ConductorSpec, current: float, voltage: float, length: float,
                               material: ConductorMaterial, limit: float) -> ConductorSpec:
        """Upsizes from start until the drop is within limit (largest conductor if none is)."""
        pass

    @abstractmethod
    def check_compliance(self, conductor: ConductorSpec, parallel_count: int, request: SizingRequest) -> ComplianceReport:
        """Runs the regulatory checks for a conductor/parallel-count pair."""
        pass

    @abstractmethod
    def size_single(self, request: SizingRequest, rates: Sequence[CableRate]) -> SizingResult:
        """Sizes a circuit carried by one conductor."""
        pass

    @abstractmethod
    def size_parallel(self, request: SizingRequest, rates: Sequence[CableRate]) -> SizingResult:
        """Sizes a circuit that needs parallel conductors."""
        pass

    @abstractmethod
    def optimize(self, total_load: float, request: SizingRequest, rates: Sequence[CableRate],
                 incumbent_cost: Optional[float] = None) -> ParallelSearch:
        """Searches parallel configurations and ranks the compliant ones by cost."""
        pass

    @abstractmethod
    def default_rates(self, material: ConductorMaterial) -> List[CableRate]:
        pass

    def size_cable(self, request: SizingRequest, rates: Optional[Sequence[CableRate]] = None) -> Optional[SizingResult]:
        """
        Single entry point. Unset request limits come from the calculator settings.
        Returns None only for malformed input (non-positive load or voltage, negative length).
        """
        request = request.with_defaults(self.settings)
        if not _is_positive(request.load_amps) or not _is_positive(request.voltage):
            return None
        if request.total_length is None or request.total_length < 0 or not math.isfinite(request.total_length):
            return None
        if not _is_positive(request.derating_factor) or not _is_positive(request.safety_margin):
            return None
        # Sub-normal derating overflows the required rating
        if not math.isfinite(request.load_amps * request.safety_margin / request.derating_factor):
            return None
        if rates is None:
            rates = self.default_rates(request.material)

        if request.load_amps <= request.max_amps_per_cable:
            return self.size_single(request, rates)
        return self.size_parallel(request, rates)


def _is_positive(value) -> bool:
    return value is not None and math.isfinite(value) and value > 0
