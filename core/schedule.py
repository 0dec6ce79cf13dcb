from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, List, Mapping, Type, TypeVar, Union

import yaml

from .models import CableEntry, CableRate
from .settings import CalculationSettings

T = TypeVar("T")


@dataclass
class CableSchedule:
    """A project cable schedule: circuits, priced rates and calculation settings."""
    entries: List[CableEntry] = field(default_factory=list)
    rates: List[CableRate] = field(default_factory=list)
    settings: CalculationSettings = field(default_factory=CalculationSettings)


def _build(cls: Type[T], record: Mapping[str, Any], kind: str) -> T:
    if not isinstance(record, Mapping):
        raise ValueError(f"{kind} record must be a mapping, got {record!r}")
    known = {f.name for f in fields(cls)}
    try:
        return cls(**{k: v for k, v in record.items() if k in known})
    except TypeError as e:
        raise ValueError(f"Invalid {kind} record {dict(record)!r}: {e}")


def parse_schedule(data: Mapping[str, Any]) -> CableSchedule:
    data = data or {}
    entries = []
    for i, record in enumerate(data.get("cables") or []):
        entry = _build(CableEntry, {"id": str(i + 1), **record}, "cable")
        entry.id = str(entry.id)
        entries.append(entry)
    rates = [_build(CableRate, record, "rate") for record in data.get("rates") or []]
    return CableSchedule(
        entries=entries,
        rates=rates,
        settings=CalculationSettings.from_mapping(data.get("settings"))
    )


def load_schedule(path: Union[str, Path]) -> CableSchedule:
    """
    Reads a YAML cable schedule:

        settings: {max_amps_per_cable: 400, ...}
        rates:
          - {cable_size: 95mm², cable_type: Copper, supply_rate_per_meter: 210, install_rate_per_meter: 115}
        cables:
          - {cable_tag: C-01, voltage: 400, load_amps: 500, cable_size: 185mm², ...}
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is not None and not isinstance(data, Mapping):
        raise ValueError(f"{path}: expected a mapping at the top level")
    return parse_schedule(data)
