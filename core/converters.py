import re
from typing import Optional

from .models import ConductorMaterial, InstallationMethod

# Token matches so "Halogen-free" or "galvanised" never read as aluminium
_COPPER_PATTERN = re.compile(r"\bcu\b|copper")
_ALUMINIUM_PATTERN = re.compile(r"\bal\b|\balu")

_INSTALLATION_ALIASES = {
    "air": InstallationMethod.AIR,
    "free air": InstallationMethod.AIR,
    "tray": InstallationMethod.AIR,
    "duct": InstallationMethod.DUCT,
    "ducts": InstallationMethod.DUCT,
    "conduit": InstallationMethod.DUCT,
    "sleeve": InstallationMethod.DUCT,
    "buried": InstallationMethod.BURIED,
    "ground": InstallationMethod.BURIED,
    "direct buried": InstallationMethod.BURIED,
}


def normalize_cable_type(cable_type: str) -> str:
    """
    Normalizes a cable type label for rate matching.
    "Aluminium", "Al/PVC" -> "aluminium"; "Copper", "Cu/PVC", "Cu" -> "copper".
    """
    lower = (cable_type or "").strip().lower()
    if _COPPER_PATTERN.search(lower):
        return "copper"
    if _ALUMINIUM_PATTERN.search(lower):
        return "aluminium"
    return lower


def normalize_material(label: Optional[str]) -> Optional[ConductorMaterial]:
    if not label:
        return None
    normalized = normalize_cable_type(label)
    if normalized == "aluminium":
        return ConductorMaterial.ALUMINIUM
    if normalized == "copper":
        return ConductorMaterial.COPPER
    return None


def material_from_cable_type(cable_type: Optional[str]) -> Optional[ConductorMaterial]:
    """Cable schedule labels carry the chemical symbol ("Cu/PVC/SWA", "Al XLPE")."""
    if not cable_type:
        return None
    if "Cu" in cable_type:
        return ConductorMaterial.COPPER
    if "Al" in cable_type:
        return ConductorMaterial.ALUMINIUM
    return None


def normalize_installation_method(label: Optional[str]) -> Optional[InstallationMethod]:
    if label is None:
        return None
    if isinstance(label, InstallationMethod):
        return label
    return _INSTALLATION_ALIASES.get(str(label).strip().lower())


def convert_length_unit(val: float, unit: str) -> float:
    """Returns length in meters."""
    unit = unit.strip().lower()
    if unit in ["m", "meter", "meters", "metre", "metres"]: return val
    if unit in ["km"]: return val * 1000.0
    if unit in ["ft", "feet", "foot"]: return val * 0.3048
    if unit in ["yd", "yard", "yards"]: return val * 0.9144
    return val


def to_fixed(value: float, precision: int = 2) -> float:
    return round(value, precision)
