"""Runtime configuration model for Farmore.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import (
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_SITE_SCHEMA_PATH,
    DEFAULT_WUFOO_FORM,
    DEFAULT_WUFOO_SUBDOMAIN,
)
from core.errors import FarmoreConfigError


@dataclass(frozen=True)
class FarmoreConfig:
    """Validated runtime configuration.

    Attributes:
        wufoo_api_key: API key used as the basic-auth username.
        wufoo_subdomain: Account subdomain hosting the form.
        wufoo_form: Form identifier (hash or slug).
        redis_url: Optional Redis URL; an in-memory cache is used when absent.
        dashboard_url: Optional dashboard base URL receiving widget events.
        dashboard_auth_token: Token sent with each widget event.
        http_timeout_seconds: Timeout applied to every outbound HTTP call.
        site_schema_path: YAML document describing per-site field maps.
    """

    wufoo_api_key: str
    wufoo_subdomain: str
    wufoo_form: str
    redis_url: str | None
    dashboard_url: str | None
    dashboard_auth_token: str
    http_timeout_seconds: float
    site_schema_path: Path

    @classmethod
    def from_env(cls) -> "FarmoreConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            FarmoreConfigError: If environment values are invalid.
        """
        timeout_value = os.getenv("FARMORE_HTTP_TIMEOUT", str(DEFAULT_HTTP_TIMEOUT_SECONDS))
        schema_value = os.getenv("FARMORE_SITE_SCHEMA", str(DEFAULT_SITE_SCHEMA_PATH))
        return cls(
            wufoo_api_key=os.getenv("WUFOO_KEY", ""),
            wufoo_subdomain=os.getenv("WUFOO_SUBDOMAIN", DEFAULT_WUFOO_SUBDOMAIN),
            wufoo_form=os.getenv("WUFOO_FORM", DEFAULT_WUFOO_FORM),
            redis_url=os.getenv("REDISCLOUD_URL") or None,
            dashboard_url=os.getenv("DASHBOARD_URL") or None,
            dashboard_auth_token=os.getenv("DASHBOARD_AUTH_TOKEN", ""),
            http_timeout_seconds=_parse_timeout(timeout_value),
            site_schema_path=Path(schema_value).expanduser().resolve(),
        )

    def require_api_key(self) -> str:
        """Return the Wufoo API key or fail when it is not configured.

        Raises:
            FarmoreConfigError: If WUFOO_KEY is empty.
        """
        if not self.wufoo_api_key:
            raise FarmoreConfigError(
                "Missing WUFOO_KEY: the remote form API requires an API key. "
                "Export WUFOO_KEY and retry."
            )
        return self.wufoo_api_key


def _parse_timeout(raw_value: str) -> float:
    """Parse the HTTP timeout environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Positive timeout in seconds.

    Raises:
        FarmoreConfigError: If value is not a positive number.
    """
    try:
        timeout = float(raw_value)
    except ValueError as error:
        raise FarmoreConfigError(
            "Invalid FARMORE_HTTP_TIMEOUT value: "
            f"expected number of seconds, got '{raw_value}'. "
            "Set FARMORE_HTTP_TIMEOUT to a positive number."
        ) from error
    if timeout <= 0:
        raise FarmoreConfigError(
            f"Invalid FARMORE_HTTP_TIMEOUT value: expected > 0, got {timeout}. "
            "Network calls must be bounded."
        )
    return timeout
