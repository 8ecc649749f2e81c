"""Dashboard statistics over the full entry set.

This module walks every canonical entry once and produces the weekly
signup chart, campus leaderboard, step distribution, serve/commit/own
distribution, and overall involvement. Nothing carries over between
cycles; each snapshot is rebuilt from scratch.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Iterable, TypeVar

from core.constants import MAX_INVOLVEMENT_PERCENT, SECONDS_IN_A_WEEK, WEEKS
from core.logging_config import get_logger
from core.types import (
    AggregateSnapshot,
    CampusStat,
    CanonicalEntry,
    LabelStat,
    StepStat,
    WeeklyPoint,
)
from transforms.field_schema import FieldSchemaRegistry

_LOGGER = get_logger(__name__)
_Row = TypeVar("_Row")


def aggregate_entries(
    entries: Iterable[CanonicalEntry],
    registry: FieldSchemaRegistry,
    now: datetime,
    weeks: int = WEEKS,
) -> AggregateSnapshot:
    """Compute one statistics snapshot.

    Args:
        entries: Every known entry, in fetch order.
        registry: Site schema providing campus populations.
        now: Current time; its week is the last bucket of the chart.
        weeks: Number of full weeks shown before the current one.

    Returns:
        Snapshot with all counts sorted by count descending. Ties keep the
        order in which their keys were first encountered.
    """
    first_week = week_of(now) - weeks
    weekly_counts = [0] * (weeks + 1)
    campus_counts: dict[str, int] = {}
    step_counts: dict[str, int] = {}
    label_counts: dict[str, int] = {}
    entry_count = 0
    for entry in entries:
        entry_count += 1
        _count_week(entry, first_week, weekly_counts)
        if entry.site:
            campus_counts[entry.site] = campus_counts.get(entry.site, 0) + 1
        step_counts[entry.step_label] = step_counts.get(entry.step_label, 0) + 1
        for label in _serve_commit_own_labels(entry):
            label_counts[label] = label_counts.get(label, 0) + 1
    campus_stats = _build_campus_stats(campus_counts, registry)
    total_involvement = involvement_percent(
        sum(campus_counts.values()),
        registry.total_population(),
    )
    return AggregateSnapshot(
        weekly_points=tuple(
            WeeklyPoint(week_index=index, count=count)
            for index, count in enumerate(weekly_counts)
        ),
        campus_stats=_sort_descending(campus_stats, lambda stat: stat.count),
        step_stats=_sort_descending(
            [StepStat(step_label=label, count=count) for label, count in step_counts.items()],
            lambda stat: stat.count,
        ),
        serve_commit_own_stats=_sort_descending(
            [LabelStat(label=label, count=count) for label, count in label_counts.items()],
            lambda stat: stat.count,
        ),
        involvement_total=total_involvement,
        entry_count=entry_count,
    )


def week_of(moment: datetime) -> int:
    """Return the absolute week bucket of a timestamp."""
    return int(moment.timestamp()) // SECONDS_IN_A_WEEK


def involvement_percent(count: int, population: int | None) -> int:
    """Return ``min(100, round_half_up(100 * count / population))``.

    A missing or zero population gives 0.
    """
    if not population:
        return 0
    rounded = (200 * count + population) // (2 * population)
    return min(MAX_INVOLVEMENT_PERCENT, rounded)


def _count_week(entry: CanonicalEntry, first_week: int, weekly_counts: list[int]) -> None:
    if entry.created_at is None:
        return
    index = week_of(entry.created_at) - first_week
    if 0 <= index < len(weekly_counts):
        weekly_counts[index] += 1


def _serve_commit_own_labels(entry: CanonicalEntry) -> list[str]:
    labels = list(entry.serve or ())
    for label in (entry.commit, entry.own):
        if label:
            labels.append(label)
    return labels


def _build_campus_stats(
    campus_counts: dict[str, int],
    registry: FieldSchemaRegistry,
) -> list[CampusStat]:
    campus_stats: list[CampusStat] = []
    for site_key, count in campus_counts.items():
        population = registry.population(site_key)
        if not population:
            _LOGGER.warning("site_population_missing", site=site_key, count=count)
        campus_stats.append(
            CampusStat(
                site=site_key,
                count=count,
                involvement_percent=involvement_percent(count, population),
            )
        )
    return campus_stats


def _sort_descending(rows: list[_Row], count_of: Callable[[_Row], int]) -> tuple[_Row, ...]:
    """Sort rows by count descending; equal counts keep encounter order."""
    return tuple(sorted(rows, key=lambda row: -count_of(row)))
