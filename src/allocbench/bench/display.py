"""Terminal display formatting for benchmark results.

Produces the two blocks printed after a run: per-variant figures
("Calculating") and the ranked comparison ("Comparison").
No external dependencies.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from allocbench.bench.compare import ComparisonEntry, ComparisonReport
from allocbench.bench.results import Measurement

_SCALE_UNITS = ("k", "M", "B", "T", "Q")
_METRIC_LABELS = {"memory": "memsize", "objects": "objects", "strings": "strings"}
_NAME_WIDTH = 20


# ---------------------------------------------------------------------------
# Value formatting utilities
# ---------------------------------------------------------------------------


def _format_amount(value: float, precision: int = 3) -> str:
    """Format a count with a thousands suffix, e.g. ``40.000k``."""
    scaled = float(value)
    suffix = " "
    for unit in _SCALE_UNITS:
        if abs(scaled) < 1000:
            break
        scaled /= 1000
        suffix = unit
    return f"{scaled:10.{precision}f}{suffix}"


def _format_ratio(ratio: float, precision: int = 2) -> str:
    """Format an overhead ratio; infinite ratios print as ``Inf``."""
    if math.isinf(ratio):
        return "Inf"
    return f"{ratio:.{precision}f}"


def _format_overhead(entry: ComparisonEntry) -> str:
    """Describe a non-reference entry relative to the reference."""
    ratio = entry.ratio
    if ratio is None:
        return ""
    if ratio == 1:
        return " - same"
    if ratio > 1:
        return f" - {_format_ratio(ratio)}x more"
    if ratio == 0:
        return f" - {_format_ratio(math.inf)}x less"
    return f" - {_format_ratio(1 / ratio)}x less"


def _rule(title: str, width: int = 50) -> str:
    """Format a heading followed by a horizontal rule."""
    return f"{title} " + "─" * max(0, width - len(title) - 1)


# ---------------------------------------------------------------------------
# Measurements
# ---------------------------------------------------------------------------


def format_measurement(m: Measurement) -> str:
    """Format one variant's figures as three aligned lines."""
    rows = [
        ("memsize", m.memory_bytes, m.memory_retained_bytes),
        ("objects", m.objects_allocated, m.objects_retained),
        ("strings", m.strings_allocated, m.strings_retained),
    ]
    lines: list[str] = []
    for i, (label, allocated, retained) in enumerate(rows):
        name = m.variant_name if i == 0 else ""
        lines.append(
            f"{name:>{_NAME_WIDTH}s} {_format_amount(allocated)} {label} "
            f"({_format_amount(retained)} retained)"
        )
    return "\n".join(lines)


def format_measurements(measurements: Sequence[Measurement]) -> str:
    """Format the figures of every measured variant, in run order."""
    lines = [_rule("Calculating")]
    for m in measurements:
        lines.append(format_measurement(m))
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


def format_comparison(report: ComparisonReport) -> str:
    """Format a ComparisonReport for terminal display.

    A single-entry report prints its one figure with no ratio.
    """
    label = _METRIC_LABELS[report.metric]
    lines = [f"Comparison ({label}, {report.mode}):"]
    for entry in report.entries:
        lines.append(
            f"{entry.name + ':':>{_NAME_WIDTH + 1}s} {entry.value:>10d} "
            f"{report.mode}{_format_overhead(entry)}"
        )
    return "\n".join(lines)


def format_report(measurements: Sequence[Measurement], report: ComparisonReport) -> str:
    """Format the full text output of a run: figures, then comparison."""
    return format_measurements(measurements) + "\n\n" + format_comparison(report)
