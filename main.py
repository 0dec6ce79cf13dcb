import argparse
import logging
import sys

import yaml

from core.converters import convert_length_unit, normalize_installation_method, normalize_material
from core.models import OptimizationStatus, SizingRequest
from core.reporting import export_to_excel
from core.schedule import load_schedule
from core.settings import CalculationSettings, load_settings
from standards.optimization import analyze_optimizations
from standards.sans import size_cable

logger = logging.getLogger("cable_sizing")


def build_parser():
    parser = argparse.ArgumentParser(description="Cable sizing and parallel-configuration optimiser (SANS 10142-1)")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    analyze = sub.add_parser("analyze", help="optimise every circuit of a YAML cable schedule")
    analyze.add_argument("schedule", help="YAML file with cables, rates and settings")
    analyze.add_argument("--xlsx", help="write the results to this Excel workbook")

    size = sub.add_parser("size", help="size a single circuit")
    size.add_argument("load", type=float, help="design current (A)")
    size.add_argument("voltage", type=float, help="system voltage (V)")
    size.add_argument("length", type=float, help="route length")
    size.add_argument("--unit", default="m", help="length unit (m, km, ft, yd) [m]")
    size.add_argument("--material", default=None, help="copper or aluminium [settings default]")
    size.add_argument("--method", default=None, help="air, duct or buried [settings default]")
    size.add_argument("--derating", type=float, default=1.0, help="ambient/installation derating factor [1.0]")
    size.add_argument("--protection", type=float, default=None, help="protective device rating (A)")
    size.add_argument("--settings", default=None, help="YAML settings file")
    return parser


def run_analyze(args) -> int:
    schedule = load_schedule(args.schedule)
    results = analyze_optimizations(schedule.entries, schedule.rates, schedule.settings)

    print("-" * 110)
    print(f"{'Cable':<12} | {'Status':<24} | {'Current':<14} | {'Best':<14} | {'Cost':>12} | {'Savings':>12}")
    print("-" * 110)
    for res in results:
        current = res.current_config
        current_str = f"{current.parallel_count}x {current.size}" if current else "-"
        best = next((a for a in res.alternatives if a.is_recommended), None)
        if best is None:
            print(f"{res.cable_tag:<12} | {res.status.value:<24} | {current_str:<14} | {'-':<14} | {'':>12} | {'':>12}")
            continue
        best_str = f"{best.parallel_count}x {best.size}"
        if not best.priced:
            print(f"{res.cable_tag:<12} | {res.status.value:<24} | {current_str:<14} | {best_str:<14} | {'(unpriced)':>12} | {'':>12}")
            continue
        print(f"{res.cable_tag:<12} | {res.status.value:<24} | {current_str:<14} | {best_str:<14} | "
              f"{best.total_cost:>12.2f} | {best.savings:>12.2f}")
    print("-" * 110)

    flagged = [r for r in results if r.status == OptimizationStatus.NO_VIABLE_CONFIGURATION]
    for res in flagged:
        print(f"[!] {res.cable_tag}: {res.compliance_notes}")

    if args.xlsx:
        export_to_excel(results, args.xlsx)
        print(f"\n[INFO] Workbook written: {args.xlsx}")
    return 0


def run_size(args) -> int:
    settings = load_settings(args.settings) if args.settings else CalculationSettings()
    material = normalize_material(args.material) if args.material else settings.material
    method = normalize_installation_method(args.method) if args.method else settings.installation_method
    if material is None:
        raise ValueError(f"Unknown conductor material: {args.material}")
    if method is None:
        raise ValueError(f"Unknown installation method: {args.method}")

    request = SizingRequest(
        load_amps=args.load,
        voltage=args.voltage,
        total_length=convert_length_unit(args.length, args.unit),
        material=material,
        installation_method=method,
        derating_factor=args.derating,
        protection_device_rating=args.protection
    )
    result = size_cable(request, settings)
    if result is None:
        logger.error("Invalid input: load and voltage must be positive, length non-negative")
        return 1

    print(f"Status:        {result.status.value}")
    print(f"Conductor:     {result.cables_in_parallel} x {result.recommended_size}")
    print(f"Load/cable:    {result.load_per_cable:.1f} A")
    print(f"Voltage drop:  {result.volt_drop:.2f} V ({result.volt_drop_percentage:.2f}%)")
    print(f"Cost:          {result.total_cost:.2f}" + ("" if result.priced else " (unpriced)"))
    for alt in result.alternatives:
        mark = "*" if alt.is_recommended else " "
        print(f"  {mark} {alt.cables_in_parallel} x {alt.cable_size:<8} {alt.total_cost:>12.2f}  {alt.compliance_report}")
    for warning in result.validation_warnings:
        print(f"[{warning.severity.value.upper()}] {warning.message}")
    if result.requires_engineer_verification:
        print("Engineer verification required.")
    return 0


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    try:
        if args.command == "analyze":
            return run_analyze(args)
        return run_size(args)
    except (ValueError, OSError, yaml.YAMLError) as e:
        logger.error("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
