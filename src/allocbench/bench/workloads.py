"""Built-in workloads.

``fresh_string`` and ``interned_string`` are the two sides of the demo
comparison: building a new string object on every call versus handing
back one shared, interned string.  ``noop`` and ``new_object`` are
calibration workloads with known costs (nothing, and one small object
per call).

Every workload takes no arguments and returns what it built, so the
runner can hold the result until the loop ends.
"""

from __future__ import annotations

import sys

_WORDS = ("this", "is", "a", "string")
_SYMBOL = sys.intern("this_is_a_symbol")


def fresh_string() -> str:
    """Build ``"this is a string"`` as a new object."""
    return " ".join(_WORDS)


def interned_string() -> str:
    """Return the shared interned ``"this_is_a_symbol"``."""
    return _SYMBOL


def noop() -> None:
    return None


def new_object() -> object:
    return object()


# Named targets accepted by ``--variant`` and profiles, e.g. ``strings=builtin:fresh_string``.
BUILTIN_WORKLOADS = {
    "fresh_string": fresh_string,
    "interned_string": interned_string,
    "noop": noop,
    "new_object": new_object,
}
