"""Tests for allocbench.cli: the demo and run commands."""

from __future__ import annotations

import csv
import io
import json
import logging
import tempfile
import unittest
from pathlib import Path

from click.testing import CliRunner

from allocbench import __version__
from allocbench.cli import main


class CliTestCase(unittest.TestCase):
    """Base class that resets the allocbench logger after each test."""

    def tearDown(self) -> None:
        logger = logging.getLogger("allocbench")
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)


# ---------------------------------------------------------------------------
# Help and version
# ---------------------------------------------------------------------------


class TestHelp(CliTestCase):
    def test_main_help(self) -> None:
        result = CliRunner().invoke(main, ["--help"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("demo", result.output)
        self.assertIn("run", result.output)

    def test_run_help(self) -> None:
        result = CliRunner().invoke(main, ["run", "--help"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn("--variant", result.output)
        self.assertIn("--profile", result.output)

    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        self.assertEqual(result.exit_code, 0)
        self.assertIn(__version__, result.output)


# ---------------------------------------------------------------------------
# allocbench demo
# ---------------------------------------------------------------------------


class TestDemo(CliTestCase):
    def test_demo_text(self) -> None:
        result = CliRunner().invoke(main, ["-q", "demo", "--iterations", "200"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Calculating", result.output)
        self.assertIn("Comparison (memsize, allocated):", result.output)
        self.assertIn("x more", result.output)
        # symbols allocate nothing, so they rank first.
        comparison = result.output.split("Comparison")[1]
        self.assertLess(comparison.index("symbols:"), comparison.index("strings:"))

    def test_demo_json(self) -> None:
        result = CliRunner().invoke(main, ["-q", "demo", "--format", "json"])
        self.assertEqual(result.exit_code, 0, result.output)
        data = json.loads(result.output)
        self.assertEqual(data["reference"], "symbols")
        by_name = {e["variant_name"]: e for e in data["entries"]}
        self.assertEqual(by_name["strings"]["iterations"], 1000)
        self.assertEqual(by_name["strings"]["strings_allocated"], 1000)
        self.assertEqual(by_name["symbols"]["strings_allocated"], 0)
        self.assertGreater(by_name["strings"]["memory_bytes"], by_name["symbols"]["memory_bytes"])

    def test_demo_zero_iterations(self) -> None:
        result = CliRunner().invoke(main, ["-q", "demo", "--iterations", "0"])
        self.assertEqual(result.exit_code, 2)
        self.assertIn("Iterations must be positive", result.output)

    def test_demo_logs_progress(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            log_path = Path(tmpdir) / "run.log"
            result = CliRunner().invoke(
                main, ["--log-file", str(log_path), "demo", "--iterations", "10"]
            )
            self.assertEqual(result.exit_code, 0, result.output)
            text = log_path.read_text()
        self.assertIn("strings: measuring", text)
        self.assertIn("Measuring 'symbols' over 10 iterations", text)


# ---------------------------------------------------------------------------
# allocbench run
# ---------------------------------------------------------------------------


class TestRun(CliTestCase):
    def test_inline_variants_csv(self) -> None:
        result = CliRunner().invoke(
            main,
            [
                "-q",
                "run",
                "--variant",
                "empty=builtin:noop",
                "--variant",
                "objects=builtin:new_object",
                "--iterations",
                "100",
                "--metric",
                "objects",
                "--format",
                "csv",
            ],
        )
        self.assertEqual(result.exit_code, 0, result.output)
        rows = list(csv.DictReader(io.StringIO(result.output)))
        self.assertEqual([r["variant"] for r in rows], ["empty", "objects"])
        self.assertEqual(rows[0]["iterations"], "100")

    def test_baseline_order(self) -> None:
        result = CliRunner().invoke(
            main,
            [
                "-q",
                "run",
                "--variant",
                "objects=builtin:new_object",
                "--variant",
                "empty=builtin:noop",
                "--iterations",
                "50",
                "--order",
                "baseline",
                "--format",
                "json",
            ],
        )
        self.assertEqual(result.exit_code, 0, result.output)
        data = json.loads(result.output)
        self.assertEqual(data["reference"], "objects")
        self.assertEqual(data["order"], "baseline")

    def test_baseline_order_text_zero_variant(self) -> None:
        """Symbols allocate nothing, so against a strings baseline they are Inf less."""
        result = CliRunner().invoke(
            main,
            [
                "-q",
                "run",
                "--order",
                "baseline",
                "--variant",
                "a=builtin:fresh_string",
                "--variant",
                "b=builtin:interned_string",
                "--metric",
                "strings",
                "--iterations",
                "100",
            ],
        )
        self.assertEqual(result.exit_code, 0, result.output)
        comparison = result.output.split("Comparison (strings, allocated):")[1]
        self.assertIn("Infx less", comparison)
        self.assertLess(comparison.index("a:"), comparison.index("b:"))

    def test_profile(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            profile = Path(tmpdir) / "strings.yaml"
            profile.write_text(
                "name: strings vs symbols\n"
                "iterations: 100\n"
                "output_format: markdown\n"
                "variants:\n"
                "  strings:\n"
                "    target: 'builtin:fresh_string'\n"
                "  symbols: 'builtin:interned_string'\n"
            )
            result = CliRunner().invoke(main, ["-q", "run", "--profile", str(profile)])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("# strings vs symbols", result.output)
        self.assertIn("reference: `symbols`", result.output)

    def test_profile_format_overridden(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            profile = Path(tmpdir) / "p.yaml"
            profile.write_text(
                "output_format: markdown\n"
                "variants:\n"
                "  a: 'builtin:noop'\n"
                "  b: 'builtin:new_object'\n"
            )
            result = CliRunner().invoke(
                main,
                ["-q", "run", "--profile", str(profile), "--iterations", "20", "--format", "csv"],
            )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertTrue(result.output.startswith("rank,variant,iterations"))

    def test_invalid_profile(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            profile = Path(tmpdir) / "bad.yaml"
            profile.write_text("variants: [unclosed\n")
            result = CliRunner().invoke(main, ["-q", "run", "--profile", str(profile)])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Invalid YAML", result.output)

    def test_profile_iterations_wrong_type(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            profile = Path(tmpdir) / "lots.yaml"
            profile.write_text(
                "iterations: lots\n"
                "variants:\n"
                "  a: 'builtin:noop'\n"
                "  b: 'builtin:new_object'\n"
            )
            result = CliRunner().invoke(main, ["-q", "run", "--profile", str(profile)])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("'iterations' must be an integer", result.output)
        self.assertNotIsInstance(result.exception, TypeError)

    def test_no_variants(self) -> None:
        result = CliRunner().invoke(main, ["-q", "run"])
        self.assertEqual(result.exit_code, 2)
        self.assertIn("No benchmark variants defined", result.output)

    def test_bad_inline_variant(self) -> None:
        result = CliRunner().invoke(main, ["-q", "run", "--variant", "no-equals-sign"])
        self.assertEqual(result.exit_code, 2)
        self.assertIn("--variant", result.output)

    def test_unknown_builtin(self) -> None:
        result = CliRunner().invoke(
            main, ["-q", "run", "--variant", "a=builtin:nope", "--variant", "b=builtin:noop"]
        )
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Unknown builtin workload", result.output)

    def test_failing_workload(self) -> None:
        """math.sqrt needs an argument, so the first call raises."""
        result = CliRunner().invoke(
            main,
            [
                "-q",
                "run",
                "--variant",
                "ok=builtin:noop",
                "--variant",
                "bad=math:sqrt",
                "--iterations",
                "10",
            ],
        )
        self.assertEqual(result.exit_code, 1)
        self.assertIn("variant 'bad' failed on call 1", result.output)
        self.assertNotIn("Comparison", result.output)

    def test_zero_iterations_rejected(self) -> None:
        result = CliRunner().invoke(
            main,
            ["-q", "run", "--variant", "a=builtin:noop", "--iterations", "0"],
        )
        self.assertEqual(result.exit_code, 2)
        self.assertIn("Iterations must be positive", result.output)


if __name__ == "__main__":
    unittest.main()
