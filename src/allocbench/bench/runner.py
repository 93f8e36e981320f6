"""Benchmark execution engine.

Runs each variant's workload a fixed number of times under
``tracemalloc`` and turns the observed growth into a Measurement.

Measurement protocol for one variant:

1. Allocate a holder list with one slot per call (before tracing).
2. Snapshot, call the workload ``iterations`` times storing each return
   value in the holder, snapshot again → *allocated* figures.  Memory a
   call frees before returning never reaches the snapshot; it is added
   to the allocated bytes from the traced-memory peak of each call.
   Such memory has no block count, so it is not reflected in the
   object figures.
3. Release the holder, run a full collection, snapshot again →
   *retained* figures.

Variants run strictly one after another; ``tracemalloc`` is process
global, so measurements must not overlap.
"""

from __future__ import annotations

import gc
import tracemalloc
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

from allocbench.bench.results import Measurement, Variant
from allocbench.bench.tracking import (
    AllocationTracker,
    release_strings,
    snapshot_delta,
)
from allocbench.logging import get_logger

log = get_logger("bench.runner")


class WorkloadError(RuntimeError):
    """A measured workload raised an exception.

    The exception raised by the workload is chained as ``__cause__``.
    """

    def __init__(self, variant: str, iteration: int, cause: BaseException) -> None:
        super().__init__(
            f"Workload for variant '{variant}' failed on call {iteration}: "
            f"{type(cause).__name__}: {cause}"
        )
        self.variant = variant
        self.iteration = iteration


# ---------------------------------------------------------------------------
# Single measurement
# ---------------------------------------------------------------------------


def _drive(name: str, workload: Callable[[], object], held: list[object]) -> int:
    """Fill *held* with the results of calling *workload* once per slot.

    Returns the bytes the calls allocated and freed again before
    returning: for each call, how far the traced-memory peak rose above
    what was still allocated when the call returned.
    """
    # Kept separate from measure() so the loop's locals are gone before
    # the closing snapshot is taken.
    transient = 0
    index = 0
    try:
        for index in range(len(held)):
            tracemalloc.reset_peak()
            held[index] = workload()
            current, peak = tracemalloc.get_traced_memory()
            transient += peak - current
    except Exception as exc:
        raise WorkloadError(name, index + 1, exc) from exc
    return transient


def measure(
    name: str,
    iterations: int,
    workload: Callable[[], object],
) -> Measurement:
    """Measure the memory allocated by calling *workload* repeatedly.

    Args:
        name: Variant name recorded in the Measurement.
        iterations: Number of calls; must be positive.
        workload: Zero-argument callable.  Its return value is held
            until the loop finishes, then released.

    Returns:
        Measurement with allocated and retained figures.  Allocated bytes
        include memory freed within each call; allocated objects only
        count blocks still alive when the loop ends.

    Raises:
        ValueError: If *iterations* is not positive.
        TypeError: If *workload* is not callable.
        WorkloadError: If *workload* raises.  No Measurement is produced
            and tracing is restored to its prior state.
    """
    if iterations <= 0:
        raise ValueError(f"iterations must be positive (got {iterations}).")
    if not callable(workload):
        raise TypeError(f"workload for variant '{name}' is not callable: {workload!r}")

    log.debug("Measuring '%s' over %d iterations", name, iterations)
    held: list[object] = [None] * iterations
    # Leftover garbage freed mid-call would otherwise read as transient memory.
    gc.collect()

    with AllocationTracker() as tracker:
        before = tracker.snapshot()
        transient = _drive(name, workload, held)
        allocated = snapshot_delta(before, tracker.snapshot())

        strings = release_strings(held)
        gc.collect()
        retained = snapshot_delta(before, tracker.snapshot())

    measurement = Measurement(
        variant_name=name,
        iterations=iterations,
        memory_bytes=allocated.size_bytes + transient,
        objects_allocated=allocated.blocks,
        strings_allocated=strings.allocated,
        memory_retained_bytes=retained.size_bytes,
        objects_retained=retained.blocks,
        strings_retained=strings.retained,
        memory_transient_bytes=transient,
    )
    log.debug("Measured %s", measurement)
    return measurement


# ---------------------------------------------------------------------------
# Progress callback
# ---------------------------------------------------------------------------


@dataclass
class RunProgress:
    """Progress info passed to the callback."""

    phase: str  # "measure", "done"
    variant: str
    index: int  # 1-based
    total: int
    measurement: Measurement | None = None


# Type alias for the progress callback.
ProgressCallback = Any  # Callable[[RunProgress], None] | None


def _default_progress(p: RunProgress) -> None:
    """Log progress to the allocbench logger."""
    if p.phase == "measure":
        log.info("[%d/%d] %s: measuring...", p.index, p.total, p.variant)
    elif p.phase == "done" and p.measurement is not None:
        m = p.measurement
        log.info(
            "[%d/%d] %s: %d bytes, %d objects allocated",
            p.index,
            p.total,
            p.variant,
            m.memory_bytes,
            m.objects_allocated,
        )


# ---------------------------------------------------------------------------
# Multiple variants
# ---------------------------------------------------------------------------


def run_variants(
    variants: Sequence[Variant],
    *,
    progress_callback: ProgressCallback = None,
) -> list[Measurement]:
    """Measure each variant in order.

    Stops at the first failing workload; the WorkloadError propagates and
    no measurements are returned.
    """
    progress = progress_callback or _default_progress
    total = len(variants)
    measurements: list[Measurement] = []
    for i, variant in enumerate(variants, start=1):
        progress(RunProgress(phase="measure", variant=variant.name, index=i, total=total))
        m = measure(variant.name, variant.iterations, variant.workload)
        measurements.append(m)
        progress(
            RunProgress(phase="done", variant=variant.name, index=i, total=total, measurement=m)
        )
    return measurements
