"""
Console rendering of wastage reports
"""

from tabulate import tabulate

CENTER_HEADERS = ["Center", "Name", "Total", "Remaining", "Used", "Wasted", "Wastage %", "Predicted"]


def _center_rows(rows):
    formatted = []
    for row in rows:
        formatted.append([
            row.center_id,
            row.center_name or "NULL",
            row.total_stock,
            row.remaining_stock,
            row.used_doses,
            row.wasted_doses,
            row.percent,
            row.predicted_wastage,
        ])
    return formatted


def _center_table(rows, tablefmt):
    # Percentages and predictions always show two decimals, a missing prediction stays blank
    return tabulate(_center_rows(rows), headers=CENTER_HEADERS, tablefmt=tablefmt, floatfmt=".2f", missingval="")


def format_wastage_report(report, tablefmt: str = "grid") -> str:
    """Render a WastageReport as text tables: totals, per-center rows, high-risk centers."""
    lines = []
    lines.append("=" * 80)
    lines.append("WASTAGE REPORT")
    lines.append("=" * 80)

    summary = [
        ["Scope", "all centers" if report.scope is None else ", ".join(str(c) for c in report.scope)],
        ["Total stock", report.total_stock],
        ["Remaining", report.remaining_stock],
        ["Used", report.used_doses],
        ["Wasted", report.wasted_doses],
        ["Wastage %", f"{report.wastage_percent:.2f}"],
        ["Threshold %", f"{report.threshold * 100:.2f}"],
        ["High risk", "YES" if report.is_high_risk else "no"],
        ["Estimator", report.estimator],
    ]
    lines.append(tabulate(summary, tablefmt=tablefmt, disable_numparse=True))

    lines.append(f"\nCENTERS ({len(report.centers)}):")
    if report.centers:
        lines.append(_center_table(report.centers, tablefmt))
    else:
        lines.append("(No data)")

    lines.append(f"\nHIGH RISK CENTERS ({len(report.high_risk_centers)}):")
    if report.high_risk_centers:
        lines.append(_center_table(report.high_risk_centers, tablefmt))
    else:
        lines.append("(None)")

    return "\n".join(lines)
