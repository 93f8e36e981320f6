"""Benchmark data structures.

Hierarchy::

    Variant (input: one named workload)
      → measured by runner.measure()
    Measurement (output: allocation figures for one variant)
      → ranked by compare.compare() into a ComparisonReport

Every figure is an integer count: bytes for ``memory``, tracemalloc
memory blocks for ``objects`` and distinct ``str`` instances for
``strings``.  Each is recorded twice: what the loop *allocated*, and what
was still *retained* once the harness released the workload's return
values.  Allocated bytes also cover memory freed within each call
(``memory_transient_bytes``); that memory has no object count.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

METRICS = ("memory", "objects", "strings")
MODES = ("allocated", "retained")

DEFAULT_ITERATIONS = 1000


# ---------------------------------------------------------------------------
# Variant
# ---------------------------------------------------------------------------


@dataclass
class Variant:
    """A named workload to benchmark."""

    name: str
    workload: Callable[[], object] = field(repr=False)
    iterations: int = DEFAULT_ITERATIONS
    description: str = ""


# ---------------------------------------------------------------------------
# Measurement
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Measurement:
    """Allocation figures recorded for one variant's run."""

    variant_name: str
    iterations: int
    memory_bytes: int  # allocated
    objects_allocated: int
    strings_allocated: int = 0
    memory_retained_bytes: int = 0
    objects_retained: int = 0
    strings_retained: int = 0
    memory_transient_bytes: int = 0  # part of memory_bytes freed within each call

    def __post_init__(self) -> None:
        for name in (
            "memory_bytes",
            "objects_allocated",
            "strings_allocated",
            "memory_retained_bytes",
            "objects_retained",
            "strings_retained",
            "memory_transient_bytes",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative (got {getattr(self, name)}).")

    def value(self, metric: str = "memory", mode: str = "allocated") -> int:
        """Return one figure, selected by *metric* and *mode*.

        Raises:
            ValueError: If *metric* or *mode* is not recognised.
        """
        if metric not in METRICS:
            raise ValueError(f"Unknown metric '{metric}'. Choose from: {', '.join(METRICS)}")
        if mode not in MODES:
            raise ValueError(f"Unknown mode '{mode}'. Choose from: {', '.join(MODES)}")
        if metric == "memory":
            return self.memory_bytes if mode == "allocated" else self.memory_retained_bytes
        if metric == "objects":
            return self.objects_allocated if mode == "allocated" else self.objects_retained
        return self.strings_allocated if mode == "allocated" else self.strings_retained

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "variant_name": self.variant_name,
            "iterations": self.iterations,
            "memory_bytes": self.memory_bytes,
            "objects_allocated": self.objects_allocated,
            "strings_allocated": self.strings_allocated,
            "memory_retained_bytes": self.memory_retained_bytes,
            "objects_retained": self.objects_retained,
            "strings_retained": self.strings_retained,
            "memory_transient_bytes": self.memory_transient_bytes,
        }
