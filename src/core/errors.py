"""Farmore exception hierarchy.

Configuration, schema, and remote fetch failures each have their own
type so the CLI and scheduler can report them without string matching.
"""

from __future__ import annotations


class FarmoreError(Exception):
    """Base exception for all Farmore failures."""


class FarmoreConfigError(FarmoreError):
    """Raised for invalid runtime configuration."""


class FarmoreSchemaError(FarmoreError):
    """Raised when the site field schema document is malformed."""


class RemoteFetchError(FarmoreError):
    """Raised when the remote form API does not report success."""
