from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional


class ConductorMaterial(Enum):
    COPPER = "copper"
    ALUMINIUM = "aluminium"


class InstallationMethod(Enum):
    AIR = "air"
    DUCT = "duct"
    BURIED = "buried"


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class SizingStatus(Enum):
    OK = "ok"
    CAPACITY_INSUFFICIENT = "capacity_insufficient"
    NO_VIABLE_CONFIGURATION = "no_viable_configuration"


class OptimizationStatus(Enum):
    OPTIMIZED = "optimized"
    NO_VIABLE_CONFIGURATION = "no_viable_configuration"
    SKIPPED = "skipped"


@dataclass
class SizingRequest:
    load_amps: float
    voltage: float
    total_length: float  # meters
    material: ConductorMaterial = ConductorMaterial.COPPER
    installation_method: InstallationMethod = InstallationMethod.AIR
    derating_factor: float = 1.0  # ambient / installation correction
    safety_margin: Optional[float] = None  # None -> settings.cable_safety_margin
    protection_device_rating: Optional[float] = None
    voltage_drop_limit: Optional[float] = None  # percent, overrides policy
    max_amps_per_cable: Optional[float] = None
    preferred_amps_per_cable: Optional[float] = None
    cable_type: Optional[str] = None  # rate table label, e.g. "Cu/PVC"

    def with_defaults(self, settings) -> "SizingRequest":
        """Fills unset safety margin and amps-per-cable limits from the project settings."""
        return replace(
            self,
            safety_margin=settings.cable_safety_margin if self.safety_margin is None else self.safety_margin,
            max_amps_per_cable=settings.max_amps_per_cable if self.max_amps_per_cable is None else self.max_amps_per_cable,
            preferred_amps_per_cable=(
                settings.preferred_amps_per_cable if self.preferred_amps_per_cable is None
                else self.preferred_amps_per_cable
            )
        )


@dataclass
class ValidationWarning:
    severity: Severity
    message: str
    field: Optional[str] = None


@dataclass
class ComplianceReport:
    ok: bool
    failures: List[str] = field(default_factory=list)
    grouping_factor: float = 1.0
    derated_capacity_per_conductor: float = 0.0
    total_derated_capacity: float = 0.0
    volt_drop_percent: float = 0.0


@dataclass
class CostBreakdown:
    supply: float = 0.0
    install: float = 0.0
    termination: float = 0.0
    total: float = 0.0
    priced: bool = False


@dataclass
class Alternative:
    cable_size: str
    cables_in_parallel: int
    load_per_cable: float
    volt_drop_percentage: float
    supply_cost: float
    install_cost: float
    termination_cost: float
    total_cost: float
    compliance_report: str = ""
    priced: bool = True
    is_recommended: bool = False


@dataclass
class SizingResult:
    recommended_size: str
    ohm_per_km: float
    volt_drop: float
    volt_drop_percentage: float
    supply_cost: float
    install_cost: float
    total_cost: float
    cables_in_parallel: int = 1
    load_per_cable: float = 0.0
    termination_cost: float = 0.0
    capacity_sufficient: bool = True
    status: SizingStatus = SizingStatus.OK
    priced: bool = True
    validation_warnings: List[ValidationWarning] = field(default_factory=list)
    requires_engineer_verification: bool = False
    alternatives: List[Alternative] = field(default_factory=list)
    cost_savings: float = 0.0

    @property
    def recommended(self) -> Optional[Alternative]:
        return next((a for a in self.alternatives if a.is_recommended), None)


# --- Batch optimisation (cable schedule) ---

@dataclass
class CableEntry:
    id: str
    cable_tag: str
    from_location: str = ""
    to_location: str = ""
    voltage: Optional[float] = None
    load_amps: Optional[float] = None
    cable_size: Optional[str] = None
    cable_type: Optional[str] = None
    total_length: Optional[float] = None
    installation_method: Optional[str] = None
    protection_device_rating: Optional[float] = None
    base_cable_tag: Optional[str] = None
    parallel_group_id: Optional[str] = None
    parallel_total_count: Optional[int] = None
    grouping_factor: Optional[float] = None


@dataclass
class CableRate:
    cable_size: str
    cable_type: str
    supply_rate_per_meter: float
    install_rate_per_meter: float
    termination_cost_per_end: float = 0.0


@dataclass
class CurrentConfig:
    size: str
    parallel_count: int
    voltage: float
    load_amps: float
    cost: CostBreakdown = field(default_factory=CostBreakdown)

    @property
    def total_cost(self) -> float:
        return self.cost.total


@dataclass
class OptimizationAlternative:
    size: str
    parallel_count: int
    cost: CostBreakdown
    savings: float
    savings_percent: float
    volt_drop: float  # percent
    load_per_cable: float
    total_derated_capacity: float
    is_current_config: bool = False
    is_recommended: bool = False
    compliance_report: str = ""

    @property
    def total_cost(self) -> float:
        return self.cost.total

    @property
    def priced(self) -> bool:
        return self.cost.priced


@dataclass
class OptimizationResult:
    cable_id: str
    cable_tag: str
    status: OptimizationStatus
    from_location: str = ""
    to_location: str = ""
    total_length: float = 0.0
    current_config: Optional[CurrentConfig] = None
    alternatives: List[OptimizationAlternative] = field(default_factory=list)
    cost_savings: float = 0.0
    compliance_notes: str = ""
