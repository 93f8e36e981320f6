"""Command-line interface for allocbench.

Subcommands:
    allocbench demo   Compare a fresh string per call against an interned one
    allocbench run    Measure and compare user-defined variants
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import click

from allocbench import __version__
from allocbench.bench.compare import ORDERS, ComparisonReport, compare
from allocbench.bench.config import (
    OUTPUT_FORMATS,
    BenchConfig,
    build_variants,
    config_from_profile,
    demo_config,
    load_profile,
    parse_inline_variant,
    validate_config,
)
from allocbench.bench.results import DEFAULT_ITERATIONS, METRICS, MODES, Measurement
from allocbench.bench.runner import WorkloadError, run_variants
from allocbench.logging import get_logger, setup_logging

log = get_logger("cli")


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Show detailed output.")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Also write a DEBUG log to this file.",
)
def main(verbose: bool, quiet: bool, log_file: Path | None) -> None:
    """allocbench: compare how much memory Python callables allocate."""
    setup_logging(verbose=verbose, quiet=quiet, log_file=log_file)


# ---------------------------------------------------------------------------
# Shared execution
# ---------------------------------------------------------------------------


def _render(
    config: BenchConfig,
    measurements: Sequence[Measurement],
    report: ComparisonReport,
) -> str:
    """Render a finished run in the configured output format."""
    if config.output_format == "json":
        from allocbench.bench.export import export_json

        return export_json(report)
    if config.output_format == "csv":
        from allocbench.bench.export import export_csv

        return export_csv(report)
    if config.output_format == "markdown":
        from allocbench.bench.export import export_markdown

        return export_markdown(report, title=config.name)

    from allocbench.bench.display import format_report

    return format_report(measurements, report)


def _execute(config: BenchConfig) -> None:
    """Validate, measure, compare and print one configuration."""
    errors = validate_config(config)
    fatal = [e for e in errors if e.severity == "error"]
    for w in (e for e in errors if e.severity == "warning"):
        log.warning("Config warning: %s: %s", w.field, w.message)
    if fatal:
        messages = [f"  {e.field}: {e.message}" for e in fatal]
        raise click.UsageError("Invalid benchmark configuration:\n" + "\n".join(messages))

    try:
        variants = build_variants(config)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    try:
        measurements = run_variants(variants)
    except WorkloadError as exc:
        log.debug("Workload failure", exc_info=True)
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        click.echo("\nBenchmark interrupted.", err=True)
        raise SystemExit(130)  # noqa: B904

    report = compare(measurements, metric=config.metric, mode=config.mode, order=config.order)
    click.echo(_render(config, measurements, report))


# ---------------------------------------------------------------------------
# allocbench demo
# ---------------------------------------------------------------------------


@main.command()
@click.option(
    "--iterations",
    type=int,
    default=DEFAULT_ITERATIONS,
    show_default=True,
    help="Calls per variant.",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(OUTPUT_FORMATS),
    default="text",
    show_default=True,
    help="Output format.",
)
def demo(iterations: int, fmt: str) -> None:
    """Compare building a new string per call against an interned one.

    Runs the "strings" variant, then the "symbols" variant, and prints
    the comparison.
    """
    _execute(demo_config(iterations=iterations, output_format=fmt))


# ---------------------------------------------------------------------------
# allocbench run
# ---------------------------------------------------------------------------


@main.command()
@click.option(
    "--profile",
    "profile_path",
    type=click.Path(exists=True, path_type=Path),
    help="YAML profile defining benchmark variants.",
)
@click.option(
    "--variant",
    "inline_variants",
    type=str,
    multiple=True,
    help="Inline variant: 'name=module:callable' (repeatable).",
)
@click.option(
    "--iterations",
    type=int,
    default=None,
    help="Calls per variant (default: 1000).",
)
@click.option(
    "--metric",
    type=click.Choice(METRICS),
    default=None,
    help="Figure to rank by (default: memory).",
)
@click.option(
    "--mode",
    type=click.Choice(MODES),
    default=None,
    help="Rank by allocated or retained figures (default: allocated).",
)
@click.option(
    "--order",
    type=click.Choice(ORDERS),
    default=None,
    help="Compare against the lowest entry or the first variant (default: lowest).",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(OUTPUT_FORMATS),
    default=None,
    help="Output format (default: text).",
)
@click.option("--name", type=str, default=None, help="Human-readable benchmark name.")
def run(
    profile_path: Path | None,
    inline_variants: tuple[str, ...],
    iterations: int | None,
    metric: str | None,
    mode: str | None,
    order: str | None,
    fmt: str | None,
    name: str | None,
) -> None:
    """Measure and compare variants.

    Use --profile for a YAML profile or --variant for inline variants.
    Targets are 'module:callable'; 'builtin:NAME' picks a bundled
    workload (fresh_string, interned_string, noop, new_object).

    \b
    Examples:
        allocbench run --profile strings.yaml
        allocbench run \\
            --variant "tuples=mypkg.work:make_tuple" \\
            --variant "lists=mypkg.work:make_list" --metric objects
    """
    cli_overrides: dict[str, object] = {
        "name": name,
        "iterations": iterations,
        "metric": metric,
        "mode": mode,
        "order": order,
        "output_format": fmt,
    }

    if profile_path:
        try:
            profile_data = load_profile(profile_path)
            config = config_from_profile(profile_data, cli_overrides=cli_overrides)
        except ValueError as exc:
            raise click.ClickException(str(exc)) from exc
    else:
        config = BenchConfig(
            name=name or "",
            metric=metric or "memory",
            mode=mode or "allocated",
            order=order or "lowest",
            output_format=fmt or "text",
        )

    # An explicit 0 must reach validation rather than fall back to a default.
    if iterations is not None:
        config.iterations = iterations

    for spec in inline_variants:
        try:
            vdef = parse_inline_variant(spec)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="--variant") from exc
        config.variants[vdef.name] = vdef

    _execute(config)
