from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from .converters import normalize_installation_method, normalize_material
from .models import ConductorMaterial, InstallationMethod


@dataclass(frozen=True)
class CalculationSettings:
    """Project-level calculation settings (SANS 10142-1 defaults)."""
    voltage_drop_limit_400v: float = 5.0
    voltage_drop_limit_230v: float = 3.0
    grouping_factor_2_circuits: float = 0.80
    grouping_factor_3_circuits: float = 0.70
    grouping_factor_4plus_circuits: float = 0.65
    cable_safety_margin: float = 1.15
    max_amps_per_cable: float = 400.0
    preferred_amps_per_cable: float = 300.0
    default_installation_method: str = "air"
    default_cable_material: str = "Aluminium"
    # Breaker is treated as local protection when rating <= ratio x load
    local_protection_ratio: float = 3.0
    min_amps_per_cable: float = 50.0
    max_practical_parallel: int = 6

    def __post_init__(self):
        for name in ("grouping_factor_2_circuits", "grouping_factor_3_circuits", "grouping_factor_4plus_circuits"):
            value = getattr(self, name)
            if not 0 < value <= 1:
                raise ValueError(f"{name} must be in (0, 1], got {value}")
        if self.cable_safety_margin <= 0:
            raise ValueError("cable_safety_margin must be positive")
        if self.max_amps_per_cable <= 0 or self.preferred_amps_per_cable <= 0:
            raise ValueError("amps per cable limits must be positive")
        if self.local_protection_ratio <= 0:
            raise ValueError("local_protection_ratio must be positive")
        if self.max_practical_parallel < 1:
            raise ValueError("max_practical_parallel must be at least 1")

    @property
    def installation_method(self) -> InstallationMethod:
        return normalize_installation_method(self.default_installation_method) or InstallationMethod.AIR

    @property
    def material(self) -> ConductorMaterial:
        return normalize_material(self.default_cable_material) or ConductorMaterial.COPPER

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "CalculationSettings":
        """
        Builds settings from a stored record. Values may arrive as strings
        (form/database round-trips); unknown keys are ignored, missing or
        empty ones fall back to the defaults.
        """
        if not data:
            return cls()
        kwargs = {}
        for f in fields(cls):
            raw = data.get(f.name)
            if raw is None or raw == "":
                continue
            if f.type in (float, "float"):
                try:
                    kwargs[f.name] = float(raw)
                except (TypeError, ValueError):
                    raise ValueError(f"Setting '{f.name}' is not a number: {raw!r}")
            elif f.type in (int, "int"):
                try:
                    kwargs[f.name] = int(float(raw))
                except (TypeError, ValueError):
                    raise ValueError(f"Setting '{f.name}' is not an integer: {raw!r}")
            else:
                kwargs[f.name] = str(raw).strip()
        return cls(**kwargs)


def load_settings(path: Union[str, Path]) -> CalculationSettings:
    """Loads settings from a YAML file; a top-level 'settings' key is optional."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if "settings" in data:
        data = data["settings"] or {}
    return CalculationSettings.from_mapping(data)
