"""Unit tests for core config parsing."""

from __future__ import annotations

import pytest

from core.config import FarmoreConfig
from core.constants import DEFAULT_HTTP_TIMEOUT_SECONDS, DEFAULT_WUFOO_FORM
from core.errors import FarmoreConfigError


def test_from_env_applies_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fall back to the default form and timeout."""
    monkeypatch.delenv("WUFOO_FORM", raising=False)
    monkeypatch.delenv("FARMORE_HTTP_TIMEOUT", raising=False)
    monkeypatch.delenv("REDISCLOUD_URL", raising=False)

    config = FarmoreConfig.from_env()

    assert (config.wufoo_form, config.http_timeout_seconds, config.redis_url) == (
        DEFAULT_WUFOO_FORM,
        DEFAULT_HTTP_TIMEOUT_SECONDS,
        None,
    )


def test_from_env_raises_for_invalid_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for a non-numeric timeout."""
    monkeypatch.setenv("FARMORE_HTTP_TIMEOUT", "soon")

    with pytest.raises(FarmoreConfigError):
        FarmoreConfig.from_env()


def test_from_env_rejects_unbounded_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    """A zero timeout would let network calls hang, so it is rejected."""
    monkeypatch.setenv("FARMORE_HTTP_TIMEOUT", "0")

    with pytest.raises(FarmoreConfigError):
        FarmoreConfig.from_env()


def test_require_api_key_fails_when_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remote access should require WUFOO_KEY."""
    monkeypatch.setenv("WUFOO_KEY", "")
    config = FarmoreConfig.from_env()

    with pytest.raises(FarmoreConfigError):
        config.require_api_key()
