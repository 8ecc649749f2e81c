"""Raw entry normalization.

This module converts one raw form entry into a ``CanonicalEntry`` using
the site schema registry. Normalization is pure and never raises: a
campus or step without a mapped field simply yields no step payload.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone

from core.constants import LEAD_SENTINEL_LABEL
from core.logging_config import get_logger
from core.types import CanonicalEntry, RawRecord
from transforms.field_schema import FieldSchemaRegistry

_LOGGER = get_logger(__name__)


def normalize_entry(raw: RawRecord, registry: FieldSchemaRegistry) -> CanonicalEntry:
    """Normalize one raw entry.

    Args:
        raw: Entry as fetched from the form API.
        registry: Site schema used to locate step answers.

    Returns:
        Canonical entry with at most one step payload populated.
    """
    identity = registry.identity_fields
    site = raw.get(identity.site) or None
    step_label = raw.get(identity.step) or ""
    step = registry.step_kind(step_label)
    base = CanonicalEntry(
        first_name=raw.get(identity.first_name) or "",
        last_name=raw.get(identity.last_name) or "",
        email=raw.get(identity.email) or "",
        phone=raw.get(identity.phone) or "",
        site=site,
        step_label=step_label,
        step=step,
        created_at=parse_created_at(raw.created_at),
    )
    if step == "attend":
        return replace(base, attend=raw.get(registry.field_for_step(site, "attend")))
    if step == "commit":
        commit_value = raw.get(registry.field_for_step(site, "commit"))
        return replace(base, commit=registry.normalize_label(commit_value))
    if step == "own":
        own_value = raw.get(registry.field_for_step(site, "own"))
        return replace(base, own=registry.normalize_label(own_value))
    if step == "serve":
        return replace(base, serve=_normalize_serve(raw, site, registry))
    if step == "lead":
        # Every lead option routes to a conversation with the campus pastor.
        return replace(base, lead=LEAD_SENTINEL_LABEL)
    return base


def normalize_entries(
    raw_records: list[RawRecord],
    registry: FieldSchemaRegistry,
) -> list[CanonicalEntry]:
    """Normalize records preserving fetch order."""
    return [normalize_entry(raw, registry) for raw in raw_records]


def parse_created_at(raw_value: str | None) -> datetime | None:
    """Parse an API timestamp as UTC.

    Args:
        raw_value: Timestamp such as ``2014-09-21 10:15:30``.

    Returns:
        Timezone-aware UTC datetime, or None when missing or unparseable.
    """
    if not raw_value:
        return None
    try:
        parsed = datetime.fromisoformat(raw_value.strip())
    except ValueError:
        _LOGGER.warning("entry_timestamp_invalid", created_at=raw_value)
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _normalize_serve(
    raw: RawRecord,
    site: str | None,
    registry: FieldSchemaRegistry,
) -> tuple[str, ...]:
    """Collect unique normalized labels from every serve field of the campus."""
    labels: list[str] = []
    for field_key in registry.serve_fields(site):
        raw_value = raw.get(field_key)
        if not raw_value:
            continue
        label = registry.normalize_label(raw_value)
        if label is None:
            _LOGGER.debug("serve_label_unmapped", site=site, raw_value=raw_value)
            continue
        if label not in labels:
            labels.append(label)
    return tuple(labels)
