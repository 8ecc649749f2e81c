"""Unit tests for CLI command handling."""

from __future__ import annotations

import pytest

import cli.main as cli_main
from cli.main import build_parser, main
from ingest.cache_store import InMemoryCacheStore
from serve.dashboard_sdk import FarmoreClient
from tests.entry_factories import RecordingSink, raw_entry, wufoo_transport
from tests.fixture_paths import fixture_path

SCHEMA_ARGS = ["--site-schema", str(fixture_path("site_schema/two_sites.yaml"))]


@pytest.fixture
def offline_client(monkeypatch: pytest.MonkeyPatch) -> RecordingSink:
    """Route CLI clients through a mock form API and a recording sink."""
    monkeypatch.setenv("WUFOO_KEY", "test-key")
    monkeypatch.delenv("REDISCLOUD_URL", raising=False)
    monkeypatch.delenv("DASHBOARD_URL", raising=False)
    sink = RecordingSink()
    entries = [
        raw_entry(site="Alpha", step="Lead"),
        raw_entry(site="Beta", step="Attend"),
    ]

    def build_client(config):
        return FarmoreClient(
            config,
            cache=InMemoryCacheStore(),
            sink=sink,
            transport=wufoo_transport(entries, []),
        )

    monkeypatch.setattr(cli_main, "FarmoreClient", build_client)
    return sink


def test_once_stats_prints_summary(offline_client: RecordingSink, capsys) -> None:
    """once stats should publish and print entry count and campus rows."""
    exit_code = main([*SCHEMA_ARGS, "once", "stats"])
    output = capsys.readouterr().out

    assert (
        exit_code == 0
        and "entry_count=2" in output
        and "Alpha\t1\t10%" in output
        and offline_client.payload("signup-total") == {"value": 2}
    )


def test_once_feed_prints_texts(offline_client: RecordingSink, capsys) -> None:
    """once feed should print each sentence and the total count."""
    exit_code = main([*SCHEMA_ARGS, "once", "feed"])
    output = capsys.readouterr().out.splitlines()

    assert exit_code == 0 and output == [
        "From our ALPHA campus: J.D.'s next step is to LEAD.",
        "From our BETA campus: J.D.'s next step is to ATTEND more regularly.",
        "count=2",
    ]


def test_fields_prints_field_rows(offline_client: RecordingSink, capsys) -> None:
    """fields should list id, type, and title."""
    exit_code = main([*SCHEMA_ARGS, "fields"])

    assert exit_code == 0 and capsys.readouterr().out.startswith("Field1\t")


def test_run_stops_after_max_ticks(offline_client: RecordingSink) -> None:
    """run should honor --max-ticks and publish both jobs on the first tick."""
    exit_code = main([*SCHEMA_ARGS, "run", "--max-ticks", "1"])

    assert exit_code == 0 and [name for name, _ in offline_client.events][-1] == "real-time-feed"


def test_missing_api_key_reports_config_error(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    """A missing API key should print a config error and exit 1."""
    monkeypatch.delenv("WUFOO_KEY", raising=False)

    exit_code = main([*SCHEMA_ARGS, "fields"])

    assert exit_code == 1 and capsys.readouterr().out.startswith("config_error=Missing WUFOO_KEY")


def test_remote_failure_reports_fetch_error(monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    """A failing form API should print a fetch error and exit 1."""
    monkeypatch.setenv("WUFOO_KEY", "test-key")

    def build_client(config):
        return FarmoreClient(
            config,
            cache=InMemoryCacheStore(),
            sink=RecordingSink(),
            transport=wufoo_transport([], [], status_code=500),
        )

    monkeypatch.setattr(cli_main, "FarmoreClient", build_client)

    exit_code = main([*SCHEMA_ARGS, "once", "stats"])

    assert exit_code == 1 and capsys.readouterr().out.startswith("fetch_error=")


def test_invalid_schema_reports_schema_error(capsys) -> None:
    """An unsupported schema version should print a schema error and exit 1."""
    exit_code = main(
        ["--site-schema", str(fixture_path("site_schema/bad_version.yaml")), "check-schema"]
    )

    assert exit_code == 1 and capsys.readouterr().out.startswith("schema_error=Unsupported")


def test_parser_rejects_unknown_job() -> None:
    """once only accepts the stats and feed jobs."""
    with pytest.raises(SystemExit):
        build_parser().parse_args(["once", "weekly"])
