"""Farmore CLI entry points.

This module exposes commands for running the dashboard jobs and
inspecting the form. It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
from pathlib import Path
from typing import Any, Sequence

from cli.check_schema_command import add_check_schema_command, run_check_schema_command
from core.config import FarmoreConfig
from core.errors import FarmoreConfigError, FarmoreError, FarmoreSchemaError, RemoteFetchError
from core.logging_config import configure_logging
from serve.dashboard_sdk import FarmoreClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="farmore", description="Far More signup dashboard feed")
    parser.add_argument("--site-schema", help="Override FARMORE_SITE_SCHEMA for this command")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_run_command(subparsers)
    _add_once_command(subparsers)
    _add_fields_command(subparsers)
    add_check_schema_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Farmore CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging()
    try:
        return _dispatch_command(parser, args)
    except FarmoreError as error:
        print(f"{_error_label(error)}={error}")
        return 1


def _dispatch_command(parser: argparse.ArgumentParser, args: argparse.Namespace) -> int:
    config = _build_config(args.site_schema)
    if args.command == "check-schema":
        return run_check_schema_command(config)
    client = FarmoreClient(config)
    try:
        if args.command == "run":
            return _run_run_command(client, args)
        if args.command == "once":
            return _run_once_command(client, args)
        if args.command == "fields":
            return _run_fields_command(client)
    finally:
        client.close()
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _error_label(error: FarmoreError) -> str:
    """Return the output key naming the failing subsystem."""
    if isinstance(error, FarmoreConfigError):
        return "config_error"
    if isinstance(error, FarmoreSchemaError):
        return "schema_error"
    if isinstance(error, RemoteFetchError):
        return "fetch_error"
    return "farmore_error"


def _build_config(site_schema: str | None) -> FarmoreConfig:
    """Build config with optional site-schema override.

    Args:
        site_schema: Optional override path.

    Returns:
        Runtime configuration.
    """
    config = FarmoreConfig.from_env()
    if site_schema:
        config = replace(config, site_schema_path=Path(site_schema).expanduser().resolve())
    return config


def _run_run_command(client: FarmoreClient, args: argparse.Namespace) -> int:
    """Handle run command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    scheduler = client.build_scheduler()
    scheduler.run_forever(max_ticks=args.max_ticks)
    return 0


def _run_once_command(client: FarmoreClient, args: argparse.Namespace) -> int:
    """Handle once command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    if args.job == "stats":
        snapshot = client.publish_statistics()
        print(f"entry_count={snapshot.entry_count}")
        print(f"involvement_total={snapshot.involvement_total}")
        for campus_stat in snapshot.campus_stats:
            print(f"{campus_stat.site}\t{campus_stat.count}\t{campus_stat.involvement_percent}%")
        return 0
    feed = client.publish_activity_feed()
    for text in feed.texts:
        print(text)
    print(f"count={feed.count}")
    return 0


def _run_fields_command(client: FarmoreClient) -> int:
    """Print form field ids and titles as tab-separated rows."""
    for form_field in client.fields():
        print(f"{form_field.field_id}\t{form_field.field_type}\t{form_field.title}")
    return 0


def _add_run_command(subparsers: Any) -> None:
    """Register run subcommand."""
    parser = subparsers.add_parser("run", help="Run the statistics and activity feed jobs")
    parser.add_argument(
        "--max-ticks",
        type=int,
        help="Stop after this many scheduler iterations",
    )


def _add_once_command(subparsers: Any) -> None:
    """Register once subcommand."""
    parser = subparsers.add_parser("once", help="Run one dashboard job once and exit")
    parser.add_argument("job", choices=("stats", "feed"), help="Job to run")


def _add_fields_command(subparsers: Any) -> None:
    """Register fields subcommand."""
    subparsers.add_parser("fields", help="List the form's field definitions")
