"""Benchmark comparison analysis.

Ranks measurements by one allocation figure and expresses every entry
as a multiple of a reference entry: the lowest one by default, or the
first one given when comparing against a baseline.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass, field

from allocbench.bench.results import METRICS, MODES, Measurement
from allocbench.logging import get_logger

log = get_logger("bench.compare")

ORDERS = ("lowest", "baseline")


# ---------------------------------------------------------------------------
# Report structures
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ComparisonEntry:
    """One measurement's position in a comparison."""

    measurement: Measurement
    value: int
    ratio: float | None = None  # None for the reference entry

    @property
    def name(self) -> str:
        return self.measurement.variant_name

    @property
    def is_reference(self) -> bool:
        return self.ratio is None


@dataclass(frozen=True)
class ComparisonReport:
    """Measurements ranked by one figure, with ratios against a reference."""

    metric: str
    mode: str
    order: str
    entries: tuple[ComparisonEntry, ...] = field(default_factory=tuple)

    @property
    def reference(self) -> ComparisonEntry:
        """The entry every ratio is computed against."""
        return self.entries[0]

    @property
    def names(self) -> list[str]:
        return [e.name for e in self.entries]

    def ratio_between(self, smaller: str, larger: str) -> float:
        """Return how many times more *larger* allocates than *smaller*."""
        values = {e.name: e.value for e in self.entries}
        return overhead_ratio(values[larger], values[smaller])


# ---------------------------------------------------------------------------
# Comparison logic
# ---------------------------------------------------------------------------


def overhead_ratio(value: int, reference: int) -> float:
    """Express *value* as a multiple of *reference*.

    Two zeros compare as equal (1.0); anything above a zero reference is
    infinitely larger.
    """
    if reference == 0:
        return 1.0 if value == 0 else math.inf
    return value / reference


def compare(
    measurements: Sequence[Measurement],
    *,
    metric: str = "memory",
    mode: str = "allocated",
    order: str = "lowest",
) -> ComparisonReport:
    """Rank measurements and compute overhead ratios.

    Args:
        measurements: At least one Measurement.
        metric: ``"memory"``, ``"objects"`` or ``"strings"``.
        mode: ``"allocated"`` or ``"retained"``.
        order: ``"lowest"`` sorts ascending and compares against the
            smallest entry; ``"baseline"`` keeps input order and compares
            against the first entry.

    Returns:
        ComparisonReport whose first entry is the reference (ratio None).

    Raises:
        ValueError: If *measurements* is empty or an option is unknown.
    """
    if not measurements:
        raise ValueError("compare() needs at least one measurement.")
    if metric not in METRICS:
        raise ValueError(f"Unknown metric '{metric}'. Choose from: {', '.join(METRICS)}")
    if mode not in MODES:
        raise ValueError(f"Unknown mode '{mode}'. Choose from: {', '.join(MODES)}")
    if order not in ORDERS:
        raise ValueError(f"Unknown order '{order}'. Choose from: {', '.join(ORDERS)}")

    ranked = list(measurements)
    if order == "lowest":
        # sorted() is stable, so ties keep their input order.
        ranked = sorted(ranked, key=lambda m: m.value(metric, mode))

    reference = ranked[0].value(metric, mode)
    entries = [ComparisonEntry(measurement=ranked[0], value=reference)]
    for m in ranked[1:]:
        value = m.value(metric, mode)
        entries.append(
            ComparisonEntry(
                measurement=m,
                value=value,
                ratio=overhead_ratio(value, reference),
            )
        )

    log.debug(
        "Compared %d measurement(s) by %s %s: %s",
        len(entries),
        metric,
        mode,
        ", ".join(f"{e.name}={e.value}" for e in entries),
    )
    return ComparisonReport(metric=metric, mode=mode, order=order, entries=tuple(entries))
