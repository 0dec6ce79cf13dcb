import logging
import math
from typing import List, Optional

from core.components import CableSelection, ConductorSpec
from core.converters import to_fixed
from core.models import (
    ComplianceReport, ConductorMaterial, InstallationMethod, Severity, SizingRequest, ValidationWarning
)
from core.settings import CalculationSettings
from standards.sans_tables import get_cable_table, get_min_size_for_breaker

logger = logging.getLogger(__name__)

# SANS 10142-1: circuit-breaker conventional tripping current I2 = 1.45 x In
TRIPPING_MULTIPLIER = 1.45
THREE_PHASE_MIN_VOLTAGE = 380.0

# Validation thresholds
VD_NEAR_LIMIT_RATIO = 0.8
HIGH_UTILISATION_RATIO = 0.9
SEVERE_DERATING = 0.7
LONG_RUN_METERS = 500.0


class SANSLogic:
    @staticmethod
    def is_three_phase(voltage: float) -> bool:
        # 400V class (380/400/415V) circuits are three phase
        return voltage >= THREE_PHASE_MIN_VOLTAGE

    @staticmethod
    def voltage_drop_limit(
        voltage: float,
        override: Optional[float] = None,
        settings: Optional[CalculationSettings] = None
    ) -> float:
        if override is not None:
            return override
        settings = settings or CalculationSettings()
        if SANSLogic.is_three_phase(voltage):
            return settings.voltage_drop_limit_400v
        return settings.voltage_drop_limit_230v

    @staticmethod
    def compute_volt_drop(current: float, voltage: float, length: float, conductor: ConductorSpec) -> float:
        if length == 0:
            return 0.0
        # mV/A/m x A x m / 1000 -> V
        coeff = conductor.volt_drop_3phase if SANSLogic.is_three_phase(voltage) else conductor.volt_drop_1phase
        return coeff * current * length / 1000.0

    @staticmethod
    def volt_drop_percent(volts: float, voltage: float) -> float:
        return (volts / voltage) * 100.0

    @staticmethod
    def select_cable(
        required_current: float,
        method: InstallationMethod,
        material: ConductorMaterial
    ) -> Optional[CableSelection]:
        if required_current is None or not math.isfinite(required_current) or required_current <= 0:
            return None

        table = get_cable_table(material)
        for conductor in table:
            if conductor.ampacity(method) >= required_current:
                return CableSelection(conductor, required_current)

        largest = table[-1]
        logger.debug(
            "No %s conductor rated for %.1fA (%s); largest %s carries %.0fA",
            material.value, required_current, method.value, largest.size, largest.ampacity(method)
        )
        return CableSelection(largest, required_current, capacity_sufficient=False)

    @staticmethod
    def ensure_acceptable_drop(
        start: ConductorSpec,
        current: float,
        voltage: float,
        length: float,
        material: ConductorMaterial,
        limit: float
    ) -> ConductorSpec:
        table = get_cable_table(material)
        index = table.index(start)
        while index < len(table):
            candidate = table[index]
            vd = SANSLogic.volt_drop_percent(SANSLogic.compute_volt_drop(current, voltage, length, candidate), voltage)
            if vd <= limit:
                if candidate is not start:
                    logger.debug("Upsized %s -> %s for voltage drop (%.2f%% <= %.2f%%)", start.size, candidate.size, vd, limit)
                return candidate
            index += 1
        logger.debug("No conductor meets %.2f%% drop; using largest %s", limit, table[-1].size)
        return table[-1]

    @staticmethod
    def grouping_factor(parallel_count: int, settings: Optional[CalculationSettings] = None) -> float:
        settings = settings or CalculationSettings()
        if parallel_count <= 1:
            return 1.0
        if parallel_count == 2:
            return settings.grouping_factor_2_circuits
        if parallel_count == 3:
            return settings.grouping_factor_3_circuits
        return settings.grouping_factor_4plus_circuits

    @staticmethod
    def check_compliance(
        conductor: ConductorSpec,
        parallel_count: int,
        request: SizingRequest,
        settings: Optional[CalculationSettings] = None
    ) -> ComplianceReport:
        """
        SANS 10142-1 checks for `parallel_count` x `conductor` carrying request.load_amps.

        1. Iz per conductor (grouping and derating applied) >= Ib per conductor x safety margin
        2. In <= Iz and I2 <= 1.45 Iz, only for local protection (rating <= ratio x load)
        3. Voltage drop within the applicable limit
        4. Minimum conductor size for the protective device rating

        All checks are evaluated so every failure is reported.
        """
        settings = settings or CalculationSettings()
        request = request.with_defaults(settings)
        failures = []

        load_per_conductor = request.load_amps / parallel_count
        grouping = SANSLogic.grouping_factor(parallel_count, settings)
        base_rating = conductor.ampacity(request.installation_method)
        derated_per_conductor = base_rating * grouping * request.derating_factor
        total_derated = derated_per_conductor * parallel_count

        # CHECK 1: Capacity with safety margin
        required_per_conductor = load_per_conductor * request.safety_margin
        if derated_per_conductor < required_per_conductor:
            failures.append(
                f"Capacity: {conductor.size} derated {derated_per_conductor:.1f}A < required {required_per_conductor:.1f}A per cable"
            )

        # CHECK 2: Protection coordination
        rating = request.protection_device_rating
        if rating and rating <= request.load_amps * settings.local_protection_ratio:
            if rating > total_derated:
                failures.append(f"In<=Iz: protection {rating:.0f}A > cable capacity {total_derated:.1f}A")
            tripping = rating * TRIPPING_MULTIPLIER
            max_tripping = total_derated * TRIPPING_MULTIPLIER
            if tripping > max_tripping:
                failures.append(f"I2<=1.45Iz: tripping {tripping:.1f}A > max {max_tripping:.1f}A")

        # CHECK 3: Voltage drop (full precision)
        volts = SANSLogic.compute_volt_drop(load_per_conductor, request.voltage, request.total_length, conductor)
        vd_percent = SANSLogic.volt_drop_percent(volts, request.voltage)
        limit = SANSLogic.voltage_drop_limit(request.voltage, request.voltage_drop_limit, settings)
        if vd_percent > limit:
            failures.append(f"Voltage drop: {vd_percent:.2f}% exceeds limit {limit}%")

        # CHECK 4: Minimum size for protective device
        if rating:
            min_size = get_min_size_for_breaker(rating)
            if conductor.size_mm2 < min_size:
                failures.append(f"Min size: {conductor.size} < {min_size:g}mm² for {rating:.0f}A CB")

        for failure in failures:
            logger.debug("[COMPLIANCE FAIL] %d x %s: %s", parallel_count, conductor.size, failure)

        return ComplianceReport(
            ok=not failures,
            failures=failures,
            grouping_factor=grouping,
            derated_capacity_per_conductor=derated_per_conductor,
            total_derated_capacity=total_derated,
            volt_drop_percent=vd_percent
        )

    @staticmethod
    def compliance_summary(report: ComplianceReport, target_amps: float, parallel_count: int,
                           protection_rating: Optional[float] = None) -> str:
        load_per_conductor = target_amps / parallel_count
        margin = (report.derated_capacity_per_conductor / load_per_conductor - 1) * 100 if load_per_conductor else 0.0
        cb = f"{protection_rating:.0f}A" if protection_rating else "N/A"
        return (
            f"Design: {target_amps:.0f}A | CB: {cb} | "
            f"Cable: {report.total_derated_capacity:.0f}A ({report.derated_capacity_per_conductor:.0f}A x {parallel_count}) | "
            f"Grouping: {report.grouping_factor * 100:.0f}% | Margin: {margin:.0f}%"
        )

    @staticmethod
    def validate(
        conductor: ConductorSpec,
        request: SizingRequest,
        vd_percent: float,
        limit: float,
        capacity_sufficient: bool,
        compliance: Optional[ComplianceReport] = None
    ) -> List[ValidationWarning]:
        warnings = []

        if not capacity_sufficient:
            warnings.append(ValidationWarning(
                Severity.ERROR,
                f"Cable capacity insufficient: {conductor.size} cannot safely handle {request.load_amps}A. "
                f"Consider parallel cables or alternative material.",
                "cable_size"
            ))

        if compliance is not None:
            for failure in compliance.failures:
                warnings.append(ValidationWarning(Severity.ERROR, f"SANS 10142-1 non-compliance - {failure}", "compliance"))

        if vd_percent <= limit and vd_percent > limit * VD_NEAR_LIMIT_RATIO:
            warnings.append(ValidationWarning(
                Severity.INFO,
                f"Voltage drop {to_fixed(vd_percent)}% is close to the {limit}% limit",
                "volt_drop"
            ))

        derated = conductor.ampacity(request.installation_method) * request.derating_factor
        if capacity_sufficient and derated > 0 and request.load_amps / derated > HIGH_UTILISATION_RATIO:
            warnings.append(ValidationWarning(
                Severity.WARNING,
                f"{conductor.size} loaded to {request.load_amps / derated * 100:.0f}% of derated capacity",
                "load_amps"
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

        return warnings
