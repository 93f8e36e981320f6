"""Tests for allocbench.bench.results: variants and measurements."""

from __future__ import annotations

import json
import unittest
from dataclasses import fields

from bench_test_helpers import make_measurement

from allocbench.bench.results import DEFAULT_ITERATIONS, Measurement, Variant
from allocbench.bench.workloads import noop


class TestVariant(unittest.TestCase):
    """Tests for the Variant dataclass."""

    def test_defaults(self) -> None:
        v = Variant(name="noop", workload=noop)
        self.assertEqual(v.iterations, DEFAULT_ITERATIONS)
        self.assertEqual(v.description, "")

    def test_repr_hides_workload(self) -> None:
        v = Variant(name="noop", workload=noop)
        self.assertNotIn("function", repr(v))


class TestMeasurement(unittest.TestCase):
    """Tests for the Measurement dataclass."""

    def _full(self) -> Measurement:
        return Measurement(
            variant_name="strings",
            iterations=1000,
            memory_bytes=40000,
            objects_allocated=1000,
            strings_allocated=1000,
            memory_retained_bytes=120,
            objects_retained=2,
            strings_retained=1,
            memory_transient_bytes=800,
        )

    def test_value_selects_figure(self) -> None:
        m = self._full()
        self.assertEqual(m.value(), 40000)
        self.assertEqual(m.value("memory", "retained"), 120)
        self.assertEqual(m.value("objects", "allocated"), 1000)
        self.assertEqual(m.value("objects", "retained"), 2)
        self.assertEqual(m.value("strings", "allocated"), 1000)
        self.assertEqual(m.value("strings", "retained"), 1)

    def test_value_unknown_metric(self) -> None:
        with self.assertRaises(ValueError):
            self._full().value("time")

    def test_value_unknown_mode(self) -> None:
        with self.assertRaises(ValueError):
            self._full().value("memory", "peak")

    def test_negative_figures_rejected(self) -> None:
        with self.assertRaises(ValueError):
            Measurement(variant_name="bad", iterations=1, memory_bytes=-1, objects_allocated=0)

    def test_frozen(self) -> None:
        m = self._full()
        with self.assertRaises(AttributeError):
            m.memory_bytes = 0  # type: ignore[misc]

    def test_to_dict_is_json_ready(self) -> None:
        d = self._full().to_dict()
        self.assertEqual(d["variant_name"], "strings")
        self.assertEqual(d["strings_retained"], 1)
        self.assertEqual(d["memory_transient_bytes"], 800)
        self.assertEqual(json.loads(json.dumps(d)), d)

    def test_to_dict_covers_every_field(self) -> None:
        names = {f.name for f in fields(Measurement)}
        self.assertEqual(set(self._full().to_dict()), names)

    def test_helper_defaults(self) -> None:
        m = make_measurement("x", 400)
        self.assertEqual(m.objects_allocated, 10)
        self.assertEqual(m.strings_allocated, 0)


if __name__ == "__main__":
    unittest.main()
