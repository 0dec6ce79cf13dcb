import io
import logging
from typing import List, Optional, Union

import pandas as pd
from openpyxl.styles import Font, PatternFill

from .models import OptimizationResult, SizingResult

logger = logging.getLogger(__name__)

ALTERNATIVE_COLUMNS = [
    "Cable Tag", "From", "To", "Length (m)", "Status", "Size", "Parallel", "Load/Cable (A)",
    "Iz Total (A)", "VD %", "Supply", "Install", "Termination", "Total", "Priced", "Savings", "Savings %",
    "Current", "Recommended", "Compliance"
]

SUMMARY_COLUMNS = [
    "Cable Tag", "Status", "Load (A)", "Voltage", "Current Size", "Current Parallel",
    "Current Cost", "Best Size", "Best Parallel", "Best Cost", "Priced", "Savings", "Notes"
]


def optimizations_to_dataframe(results: List[OptimizationResult]) -> pd.DataFrame:
    """One row per alternative; circuits without alternatives get a single status row."""
    rows = []
    for res in results:
        base = {
            "Cable Tag": res.cable_tag,
            "From": res.from_location,
            "To": res.to_location,
            "Length (m)": res.total_length,
            "Status": res.status.value,
        }
        if not res.alternatives:
            rows.append({**base, "Compliance": res.compliance_notes})
            continue
        for alt in res.alternatives:
            rows.append({
                **base,
                "Size": alt.size,
                "Parallel": alt.parallel_count,
                "Load/Cable (A)": round(alt.load_per_cable, 1),
                "Iz Total (A)": round(alt.total_derated_capacity, 1),
                "VD %": alt.volt_drop,
                "Supply": alt.cost.supply,
                "Install": alt.cost.install,
                "Termination": alt.cost.termination,
                "Total": alt.cost.total,
                "Priced": alt.priced,
                "Savings": alt.savings,
                "Savings %": alt.savings_percent,
                "Current": alt.is_current_config,
                "Recommended": alt.is_recommended,
                "Compliance": alt.compliance_report,
            })
    return pd.DataFrame(rows, columns=ALTERNATIVE_COLUMNS)


def summary_dataframe(results: List[OptimizationResult]) -> pd.DataFrame:
    rows = []
    for res in results:
        current = res.current_config
        best = next((a for a in res.alternatives if a.is_recommended), None)
        rows.append({
            "Cable Tag": res.cable_tag,
            "Status": res.status.value,
            "Load (A)": current.load_amps if current else None,
            "Voltage": current.voltage if current else None,
            "Current Size": current.size if current else None,
            "Current Parallel": current.parallel_count if current else None,
            "Current Cost": current.total_cost if current else None,
            "Best Size": best.size if best else None,
            "Best Parallel": best.parallel_count if best else None,
            "Best Cost": best.total_cost if best else None,
            "Priced": best.priced if best else None,
            "Savings": best.savings if best else None,
            "Notes": res.compliance_notes,
        })
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def sizing_to_dataframe(result: SizingResult) -> pd.DataFrame:
    """Alternatives of a single sizing result (the recommendation alone for single-cable results)."""
    if result.alternatives:
        return pd.DataFrame([{
            "Size": a.cable_size,
            "Parallel": a.cables_in_parallel,
            "Load/Cable (A)": round(a.load_per_cable, 1),
            "VD %": a.volt_drop_percentage,
            "Supply": a.supply_cost,
            "Install": a.install_cost,
            "Termination": a.termination_cost,
            "Total": a.total_cost,
            "Priced": a.priced,
            "Recommended": a.is_recommended,
            "Compliance": a.compliance_report,
        } for a in result.alternatives])
    return pd.DataFrame([{
        "Size": result.recommended_size,
        "Parallel": result.cables_in_parallel,
        "Load/Cable (A)": round(result.load_per_cable, 1),
        "VD %": result.volt_drop_percentage,
        "Supply": result.supply_cost,
        "Install": result.install_cost,
        "Termination": result.termination_cost,
        "Total": result.total_cost,
        "Priced": result.priced,
        "Recommended": True,
        "Compliance": "; ".join(w.message for w in result.validation_warnings),
    }])


def _style_sheet(ws):
    header_fill = PatternFill(start_color="DDDDDD", end_color="DDDDDD", fill_type="solid")
    header_font = Font(bold=True)
    for cell in ws[1]:
        cell.font = header_font
        cell.fill = header_fill
    for col in ws.columns:
        ws.column_dimensions[col[0].column_letter].width = 15


def export_to_excel(results: List[OptimizationResult], target: Optional[Union[str, io.BytesIO]] = None) -> Optional[bytes]:
    """
    Writes the optimisation to a workbook (Summary + Alternatives sheets).
    Returns the workbook bytes when no target is given.
    """
    output = target if target is not None else io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        summary_dataframe(results).to_excel(writer, index=False, sheet_name="Summary")
        optimizations_to_dataframe(results).to_excel(writer, index=False, sheet_name="Alternatives")
        for ws in writer.book.worksheets:
            _style_sheet(ws)

    if target is None:
        return output.getvalue()
    logger.info("Optimisation workbook written: %s", target)
    return None
