"""Shared typed models.

This module defines immutable data models used by the fetcher,
normalizer, aggregation, and dashboard layers to keep interfaces explicit.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Mapping

StepKind = Literal["attend", "serve", "commit", "own", "lead"]
SUPPORTED_STEP_KINDS: tuple[StepKind, ...] = ("attend", "serve", "commit", "own", "lead")


@dataclass(frozen=True)
class RawRecord:
    """One form entry exactly as returned by the remote API.

    Attributes:
        fields: Source field key to string value, including ``DateCreated``.
        page_number: Zero-based page the record was fetched from.
        ordinal: Zero-based position inside that page.
    """

    fields: Mapping[str, str]
    page_number: int = 0
    ordinal: int = 0

    def get(self, field_key: str | None) -> str | None:
        """Return the raw value for a field key, or None when absent."""
        if field_key is None:
            return None
        value = self.fields.get(field_key)
        if value is None:
            return None
        return str(value)

    @property
    def created_at(self) -> str | None:
        """Creation timestamp string reported by the remote API."""
        return self.get("DateCreated")


@dataclass(frozen=True)
class Site:
    """Campus with its own form field layout.

    Attributes:
        key: Campus name as submitted in the form.
        population: Adult attendance used for involvement percentages.
        population_estimated: True when population is a placeholder guess.
        attend_field: Field holding the attend answer.
        own_field: Field holding the own answer.
        commit_field: Field holding the commit answer.
        serve_fields: Ordered fields holding concurrent serve answers.
    """

    key: str
    population: int | None
    population_estimated: bool = False
    attend_field: str | None = None
    own_field: str | None = None
    commit_field: str | None = None
    serve_fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class CanonicalEntry:
    """Normalized signup entry.

    At most one step payload is populated and it always matches ``step``.

    Attributes:
        first_name: Raw first name, possibly empty.
        last_name: Raw last name, possibly empty.
        email: Raw email, possibly empty.
        phone: Raw phone, possibly empty.
        site: Campus key or None.
        step_label: Raw step answer, empty when missing.
        step: Resolved step kind or None when unrecognized.
        created_at: UTC creation time or None when unparseable.
        attend: Attend answer copied verbatim.
        commit: Normalized commit label.
        own: Normalized own label.
        serve: Unique normalized serve labels in serve-field order.
        lead: Lead sentinel label.
    """

    first_name: str
    last_name: str
    email: str
    phone: str
    site: str | None
    step_label: str
    step: StepKind | None
    created_at: datetime | None
    attend: str | None = None
    commit: str | None = None
    own: str | None = None
    serve: tuple[str, ...] | None = None
    lead: str | None = None


@dataclass(frozen=True)
class WeeklyPoint:
    """Signup count for one week of the rolling window."""

    week_index: int
    count: int


@dataclass(frozen=True)
class CampusStat:
    """Leaderboard row for one campus."""

    site: str
    count: int
    involvement_percent: int


@dataclass(frozen=True)
class StepStat:
    """Count of entries for one raw step label."""

    step_label: str
    count: int


@dataclass(frozen=True)
class LabelStat:
    """Count of one normalized serve, commit, or own label."""

    label: str
    count: int


@dataclass(frozen=True)
class AggregateSnapshot:
    """Statistics recomputed from the full entry set each cycle.

    Attributes:
        weekly_points: WEEKS + 1 points, oldest first.
        campus_stats: Campuses with at least one entry, by count descending.
        step_stats: Raw step labels by count descending.
        serve_commit_own_stats: Normalized labels by count descending.
        involvement_total: Overall involvement percent in [0, 100].
        entry_count: Number of entries aggregated.
    """

    weekly_points: tuple[WeeklyPoint, ...]
    campus_stats: tuple[CampusStat, ...]
    step_stats: tuple[StepStat, ...]
    serve_commit_own_stats: tuple[LabelStat, ...]
    involvement_total: int
    entry_count: int

    def involvement_for(self, site_key: str) -> int:
        """Return involvement percent for a campus, 0 when it has no entries."""
        for campus_stat in self.campus_stats:
            if campus_stat.site == site_key:
                return campus_stat.involvement_percent
        return 0


@dataclass(frozen=True)
class ActivityFeed:
    """Rendered recent-activity sentences.

    Attributes:
        texts: Sentences for the most recent entries, in fetch order.
        count: Total number of known entries.
    """

    texts: tuple[str, ...]
    count: int


@dataclass(frozen=True)
class FormField:
    """Field metadata entry from the form definition."""

    field_id: str
    title: str
    field_type: str
