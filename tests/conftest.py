"""Pytest configuration for dashboard test runs."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_sessionstart() -> None:
    """Make the src packages importable without an editable install."""
    src_path = Path(__file__).resolve().parent.parent / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture(autouse=True)
def _clear_dashboard_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's live endpoints out of test runs."""
    for name in ("REDISCLOUD_URL", "DASHBOARD_URL", "FARMORE_SITE_SCHEMA"):
        monkeypatch.delenv(name, raising=False)
