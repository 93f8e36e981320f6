"""Allocation capture for benchmark variants.

Wraps :mod:`tracemalloc` snapshots so the runner can see how much memory
a block of code allocated.  Snapshots are filtered to drop memory used by
``tracemalloc`` itself and by the bookkeeping in this module, and deltas
are clamped at zero so code that frees more than it allocates reports
nothing rather than a negative size.

String accounting also lives here so that its temporary containers are
covered by the same filter.
"""

from __future__ import annotations

import fnmatch
import gc
import sys
import tracemalloc
from collections.abc import Iterable
from dataclasses import dataclass
from types import TracebackType

from allocbench.logging import get_logger

log = get_logger("bench.tracking")

_SNAPSHOT_FILTERS = (
    tracemalloc.Filter(False, tracemalloc.__file__),
    tracemalloc.Filter(False, __file__),
    tracemalloc.Filter(False, "<unknown>"),
)

# Compile the filter patterns now so the first snapshot of a session does
# not allocate on their behalf.
for _filter in _SNAPSHOT_FILTERS:
    fnmatch.fnmatch("", _filter.filename_pattern)

# Ids are never negative, so the probe cannot collide with a real entry.
_PROBE_KEY = -1


# ---------------------------------------------------------------------------
# AllocationDelta
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AllocationDelta:
    """Memory that appeared between two snapshots."""

    size_bytes: int
    blocks: int


def snapshot_delta(
    before: tracemalloc.Snapshot,
    after: tracemalloc.Snapshot,
) -> AllocationDelta:
    """Compute the net growth from *before* to *after*.

    Grouping is per file, so allocations and frees from the same source
    file cancel out.  Totals below zero are reported as zero.
    """
    size = 0
    blocks = 0
    for stat in after.compare_to(before, "filename"):
        size += stat.size_diff
        blocks += stat.count_diff
    return AllocationDelta(size_bytes=max(size, 0), blocks=max(blocks, 0))


# ---------------------------------------------------------------------------
# AllocationTracker
# ---------------------------------------------------------------------------


class AllocationTracker:
    """Context manager owning the ``tracemalloc`` session for a measurement.

    Usage::

        with AllocationTracker() as tracker:
            before = tracker.snapshot()
            do_work()
            delta = snapshot_delta(before, tracker.snapshot())

    If tracing is already active on entry it is left running on exit;
    otherwise it is stopped, whether or not the block raised.
    """

    def __init__(self, nframe: int = 1) -> None:
        self.nframe = nframe
        self._started = False

    def __enter__(self) -> AllocationTracker:
        if tracemalloc.is_tracing():
            log.debug("tracemalloc already tracing; reusing the active session")
        else:
            tracemalloc.start(self.nframe)
            self._started = True
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._started:
            tracemalloc.stop()
            self._started = False

    def snapshot(self) -> tracemalloc.Snapshot:
        """Take a snapshot with tracemalloc and tracker frames filtered out."""
        return tracemalloc.take_snapshot().filter_traces(_SNAPSHOT_FILTERS)


# ---------------------------------------------------------------------------
# String accounting
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StringCensus:
    """Distinct strings a workload produced, and how many outlived the holder."""

    allocated: int
    retained: int


def fresh_strings(values: Iterable[object]) -> dict[int, str]:
    """Collect the distinct strings in *values* allocated while tracing.

    Strings that existed before tracing started (constants, interned
    names) have no recorded traceback and are skipped.  The result maps
    ``id()`` to the string and keeps each one alive.
    """
    fresh: dict[int, str] = {}
    for value in values:
        if not isinstance(value, str) or id(value) in fresh:
            continue
        if tracemalloc.get_object_traceback(value) is not None:
            fresh[id(value)] = value
    return fresh


def count_referenced(fresh: dict[int, str]) -> int:
    """Count strings in *fresh* that are also referenced from elsewhere.

    A probe string owned only by *fresh* is measured in the same way as
    every entry; entries with a higher reference count than the probe
    are held by something outside the dict.  *fresh* is left unchanged.
    """
    if not fresh:
        return 0
    fresh[_PROBE_KEY] = "".join(("allocbench", "-probe"))
    try:
        counts = {key: sys.getrefcount(fresh[key]) for key in fresh}
    finally:
        del fresh[_PROBE_KEY]
    baseline = counts.pop(_PROBE_KEY)
    return sum(1 for count in counts.values() if count > baseline)


def release_strings(held: list[object]) -> StringCensus:
    """Empty *held*, counting the fresh strings it contained.

    Must be called while tracing.  After the holder is cleared and a
    collection has run, strings still referenced elsewhere count as
    retained.
    """
    fresh = fresh_strings(held)
    held.clear()
    gc.collect()
    return StringCensus(allocated=len(fresh), retained=count_referenced(fresh))
