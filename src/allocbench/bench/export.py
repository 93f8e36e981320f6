"""Export comparison reports to JSON, CSV and Markdown.

All exporters return text; writing it anywhere is the caller's job.

CSV format: one row per variant, in report order, with every figure.

Markdown format: a summary table suitable for READMEs and GitHub issues.
"""

from __future__ import annotations

import csv
import io
import json
import math

from allocbench.bench.compare import ComparisonReport

_CSV_COLUMNS = [
    "rank",
    "variant",
    "iterations",
    "memory_bytes",
    "memory_retained_bytes",
    "memory_transient_bytes",
    "objects_allocated",
    "objects_retained",
    "strings_allocated",
    "strings_retained",
    "ratio",
]


def _ratio_cell(ratio: float | None) -> str:
    if ratio is None:
        return ""
    if math.isinf(ratio):
        return "inf"
    return f"{ratio:.4f}"


# ---------------------------------------------------------------------------
# JSON export
# ---------------------------------------------------------------------------


def export_json(report: ComparisonReport) -> str:
    """Export a report as a JSON document.

    Infinite ratios are written as the string ``"inf"`` so the output
    stays valid JSON.
    """
    entries = []
    for rank, entry in enumerate(report.entries, start=1):
        d = entry.measurement.to_dict()
        d["rank"] = rank
        d["value"] = entry.value
        if entry.ratio is None:
            d["ratio"] = None
        elif math.isinf(entry.ratio):
            d["ratio"] = "inf"
        else:
            d["ratio"] = round(entry.ratio, 6)
        entries.append(d)

    data = {
        "metric": report.metric,
        "mode": report.mode,
        "order": report.order,
        "reference": report.reference.name,
        "entries": entries,
    }
    return json.dumps(data, indent=2)


# ---------------------------------------------------------------------------
# CSV export
# ---------------------------------------------------------------------------


def export_csv(report: ComparisonReport) -> str:
    """Export a report as CSV, one row per variant."""
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(_CSV_COLUMNS)

    for rank, entry in enumerate(report.entries, start=1):
        m = entry.measurement
        writer.writerow(
            [
                rank,
                m.variant_name,
                m.iterations,
                m.memory_bytes,
                m.memory_retained_bytes,
                m.memory_transient_bytes,
                m.objects_allocated,
                m.objects_retained,
                m.strings_allocated,
                m.strings_retained,
                _ratio_cell(entry.ratio),
            ]
        )

    return output.getvalue()


# ---------------------------------------------------------------------------
# Markdown export
# ---------------------------------------------------------------------------


def export_markdown(report: ComparisonReport, *, title: str = "") -> str:
    """Export a report as a Markdown table."""
    lines: list[str] = []

    if title:
        lines.append(f"# {title}")
        lines.append("")

    lines.append(
        f"Ranked by **{report.metric} {report.mode}** (reference: `{report.reference.name}`)"
    )
    lines.append("")
    lines.append("| Variant | Iterations | Memory (B) | Retained (B) | Objects | Strings | Ratio |")
    lines.append("|---|---:|---:|---:|---:|---:|---:|")

    for entry in report.entries:
        m = entry.measurement
        if entry.ratio is None:
            ratio = "-"
        elif math.isinf(entry.ratio):
            ratio = "∞"
        else:
            ratio = f"{entry.ratio:.2f}x"
        lines.append(
            f"| {m.variant_name} | {m.iterations} | {m.memory_bytes} | "
            f"{m.memory_retained_bytes} | {m.objects_allocated} | "
            f"{m.strings_allocated} | {ratio} |"
        )

    lines.append("")
    lines.append("*Generated by allocbench*")

    return "\n".join(lines)
