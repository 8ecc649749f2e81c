"""CLI command for validating the site field schema."""

from __future__ import annotations

from typing import Any

from core.config import FarmoreConfig
from transforms.field_schema import load_field_schema


def add_check_schema_command(subparsers: Any) -> None:
    """Register check-schema subcommand."""
    subparsers.add_parser(
        "check-schema",
        help="Validate the site schema and list overlapping or placeholder entries",
    )


def run_check_schema_command(config: FarmoreConfig) -> int:
    """Print site summary rows and warnings; exit 1 when warnings exist."""
    registry = load_field_schema(config.site_schema_path)
    for site in registry.sites:
        estimate_marker = " (estimated)" if site.population_estimated else ""
        print(
            f"{site.key}\tpopulation={site.population}{estimate_marker}\t"
            f"serve_fields={len(site.serve_fields)}"
        )
    for warning in registry.warnings:
        print(f"warning: {warning}")
    return 1 if registry.warnings else 0
