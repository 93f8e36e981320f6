"""Benchmark configuration and variant profile loading.

Handles:
- Loading benchmark profiles from YAML files.
- Parsing inline variant definitions from CLI arguments.
- Merging CLI options with profile defaults.
- Resolving ``module:callable`` targets to workloads.
- Validating the final configuration before execution.
"""

from __future__ import annotations

import importlib
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from allocbench.bench.compare import ORDERS
from allocbench.bench.results import DEFAULT_ITERATIONS, METRICS, MODES, Variant
from allocbench.bench.workloads import BUILTIN_WORKLOADS
from allocbench.logging import get_logger

log = get_logger("bench.config")

OUTPUT_FORMATS = ("text", "json", "csv", "markdown")
BUILTIN_PREFIX = "builtin"


# ---------------------------------------------------------------------------
# BenchConfig
# ---------------------------------------------------------------------------


@dataclass
class VariantDef:
    """Definition of a variant before its target is imported."""

    name: str
    target: str  # "module:callable" or "builtin:name"
    description: str = ""
    iterations: int | None = None  # None = use BenchConfig.iterations


@dataclass
class BenchConfig:
    """Resolved configuration for a benchmark run."""

    name: str = ""
    description: str = ""

    # Variants, measured in insertion order
    variants: dict[str, VariantDef] = field(default_factory=dict)

    iterations: int = DEFAULT_ITERATIONS

    # Comparison
    metric: str = "memory"
    mode: str = "allocated"
    order: str = "lowest"

    output_format: str = "text"

    def iterations_for(self, variant: VariantDef) -> int:
        """Iterations for *variant*, falling back to the run default."""
        return variant.iterations if variant.iterations is not None else self.iterations


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationError:
    """A single configuration validation error."""

    field: str
    message: str
    severity: str = "error"  # "error" or "warning"


def validate_config(config: BenchConfig) -> list[ValidationError]:
    """Validate a benchmark configuration.

    Returns a list of validation errors.  Empty list means valid.
    """
    errors: list[ValidationError] = []

    if not config.variants:
        errors.append(
            ValidationError(
                field="variants",
                message=(
                    "No benchmark variants defined. "
                    "Use --profile or --variant to define at least one."
                ),
            )
        )
    elif len(config.variants) == 1:
        errors.append(
            ValidationError(
                field="variants",
                message="Only one variant defined; the comparison will have no ratios.",
                severity="warning",
            )
        )

    if config.iterations <= 0:
        errors.append(
            ValidationError(
                field="iterations",
                message=f"Iterations must be positive (got {config.iterations}).",
            )
        )

    for name, variant in config.variants.items():
        if not name or not name.strip():
            errors.append(
                ValidationError(
                    field="variants",
                    message="Variant names must be non-empty.",
                )
            )
        if variant.iterations is not None and variant.iterations <= 0:
            errors.append(
                ValidationError(
                    field=f"variants.{name}.iterations",
                    message=(
                        f"Iterations for variant '{name}' must be positive "
                        f"(got {variant.iterations})."
                    ),
                )
            )
        if ":" not in variant.target:
            errors.append(
                ValidationError(
                    field=f"variants.{name}.target",
                    message=(
                        f"Target for variant '{name}' must look like "
                        f"'module:callable' (got '{variant.target}')."
                    ),
                )
            )

    for field_name, value, allowed in (
        ("metric", config.metric, METRICS),
        ("mode", config.mode, MODES),
        ("order", config.order, ORDERS),
        ("output_format", config.output_format, OUTPUT_FORMATS),
    ):
        if value not in allowed:
            errors.append(
                ValidationError(
                    field=field_name,
                    message=f"Unknown {field_name} '{value}'. Choose from: {', '.join(allowed)}",
                )
            )

    return errors


# ---------------------------------------------------------------------------
# YAML profile loading
# ---------------------------------------------------------------------------


def load_profile(profile_path: Path) -> dict[str, Any]:
    """Load a benchmark profile from a YAML file.

    Profile format::

        name: "strings vs symbols"
        iterations: 1000
        metric: memory
        mode: allocated
        order: lowest

        variants:
          strings:
            target: "builtin:fresh_string"
            description: "New string per call"
          symbols: "builtin:interned_string"

    Returns:
        The parsed YAML as a dict.
    """
    if not profile_path.exists():
        raise FileNotFoundError(f"Profile not found: {profile_path}")

    try:
        data = yaml.safe_load(profile_path.read_text())
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in profile {profile_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Profile must be a YAML mapping, got {type(data).__name__}")

    return data


def _profile_int(value: Any, where: str) -> int | None:
    """Return *value* if it is an integer (or absent), else raise ValueError."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"'{where}' must be an integer, got {type(value).__name__}: {value!r}")
    return value


def _profile_str(value: Any, where: str) -> str:
    """Return *value* as a string; absent or null values become ``""``."""
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"'{where}' must be a string, got {type(value).__name__}: {value!r}")
    return value


def config_from_profile(
    profile_data: dict[str, Any],
    *,
    cli_overrides: dict[str, Any] | None = None,
) -> BenchConfig:
    """Build a BenchConfig from a parsed YAML profile.

    CLI overrides take precedence over profile values for:
    name, iterations, metric, mode, order, output_format.

    Args:
        profile_data: Parsed YAML profile dict.
        cli_overrides: Dict of CLI option values that override
            profile defaults.  Keys match BenchConfig field names.

    Returns:
        BenchConfig with variants and settings populated.

    Raises:
        ValueError: If a field has the wrong type or a variant is malformed.
    """
    cli = cli_overrides or {}

    iterations = cli.get("iterations")
    if iterations is None:
        iterations = _profile_int(profile_data.get("iterations"), "iterations")

    config = BenchConfig(
        name=cli.get("name") or _profile_str(profile_data.get("name"), "name"),
        description=_profile_str(profile_data.get("description"), "description"),
        iterations=DEFAULT_ITERATIONS if iterations is None else iterations,
        metric=cli.get("metric") or profile_data.get("metric", "memory"),
        mode=cli.get("mode") or profile_data.get("mode", "allocated"),
        order=cli.get("order") or profile_data.get("order", "lowest"),
        output_format=cli.get("output_format") or profile_data.get("output_format", "text"),
    )

    variants_data = profile_data.get("variants", {})
    if not isinstance(variants_data, dict):
        raise ValueError("Profile 'variants' must be a mapping of variant_name -> definition")

    for name, variant_data in variants_data.items():
        name = str(name)
        if isinstance(variant_data, str):
            variant_data = {"target": variant_data}
        if not isinstance(variant_data, dict):
            raise ValueError(
                f"Variant '{name}' must be a mapping or a target string, "
                f"got {type(variant_data).__name__}"
            )
        if "target" not in variant_data:
            raise ValueError(f"Variant '{name}' has no 'target'.")

        config.variants[name] = VariantDef(
            name=name,
            target=str(variant_data["target"]),
            description=_profile_str(
                variant_data.get("description"), f"variants.{name}.description"
            ),
            iterations=_profile_int(
                variant_data.get("iterations"), f"variants.{name}.iterations"
            ),
        )

    return config


# ---------------------------------------------------------------------------
# Inline variant parsing
# ---------------------------------------------------------------------------


def parse_inline_variant(spec: str) -> VariantDef:
    """Parse an inline variant specification from CLI.

    Format: ``"name=module:callable"``.

    Examples::

        "strings=builtin:fresh_string"
        "dicts=mypkg.workloads:make_dict"

    Returns:
        VariantDef with parsed values.
    """
    if "=" not in spec:
        raise ValueError(f"Invalid variant spec: '{spec}'. Expected format: 'name=module:callable'")

    name, target = spec.split("=", 1)
    name = name.strip()
    target = target.strip()
    if not name:
        raise ValueError("Variant name cannot be empty.")
    if ":" not in target:
        raise ValueError(
            f"Invalid target '{target}' in variant '{name}'. Expected format: 'module:callable'"
        )

    return VariantDef(name=name, target=target)


# ---------------------------------------------------------------------------
# Workload resolution
# ---------------------------------------------------------------------------


def resolve_workload(target: str) -> Callable[[], object]:
    """Import the callable named by *target*.

    ``builtin:NAME`` refers to the workloads shipped with allocbench;
    anything else is ``module.path:attribute.path``.

    Raises:
        ValueError: If the target is malformed, cannot be imported, or
            does not name a callable.
    """
    module_name, sep, attr_path = target.partition(":")
    if not sep or not module_name or not attr_path:
        raise ValueError(f"Invalid target '{target}'. Expected format: 'module:callable'")

    if module_name == BUILTIN_PREFIX:
        try:
            return BUILTIN_WORKLOADS[attr_path]
        except KeyError:
            raise ValueError(
                f"Unknown builtin workload '{attr_path}'. "
                f"Available: {', '.join(sorted(BUILTIN_WORKLOADS))}"
            ) from None

    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise ValueError(f"Cannot import module '{module_name}': {exc}") from exc

    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError:
            raise ValueError(f"'{module_name}' has no attribute '{attr_path}'") from None

    if not callable(obj):
        raise ValueError(f"Target '{target}' is not callable.")
    log.debug("Resolved %s -> %r", target, obj)
    return obj


def build_variants(config: BenchConfig) -> list[Variant]:
    """Resolve every VariantDef in *config* into a runnable Variant."""
    return [
        Variant(
            name=vdef.name,
            workload=resolve_workload(vdef.target),
            iterations=config.iterations_for(vdef),
            description=vdef.description,
        )
        for vdef in config.variants.values()
    ]


# ---------------------------------------------------------------------------
# Demo configuration
# ---------------------------------------------------------------------------


def demo_config(
    *,
    iterations: int = DEFAULT_ITERATIONS,
    output_format: str = "text",
) -> BenchConfig:
    """Return the configuration for ``allocbench demo``.

    Measures a new string per call ("strings") and then a shared interned
    string ("symbols"), in that order.
    """
    config = BenchConfig(
        name="strings vs symbols",
        iterations=iterations,
        output_format=output_format,
    )
    config.variants["strings"] = VariantDef(
        name="strings",
        target=f"{BUILTIN_PREFIX}:fresh_string",
        description="Build a new string on every call.",
    )
    config.variants["symbols"] = VariantDef(
        name="symbols",
        target=f"{BUILTIN_PREFIX}:interned_string",
        description="Return one shared interned string.",
    )
    return config
