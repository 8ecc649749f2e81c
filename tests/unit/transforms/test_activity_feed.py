"""Unit tests for activity feed sentences."""

from __future__ import annotations

import pytest

from core.types import CanonicalEntry
from tests.entry_factories import raw_record
from transforms.activity_feed import initials, join_areas, narrate_entry, narrate_recent_activity
from transforms.entry_normalizer import normalize_entries, normalize_entry
from transforms.field_schema import load_field_schema

REGISTRY = load_field_schema()


def _entry(**kwargs) -> CanonicalEntry:
    return normalize_entry(raw_record(**kwargs), REGISTRY)


def test_attend_sentence() -> None:
    """Attend entries narrate without extra detail."""
    entry = _entry(first_name="John", last_name="", site="South", step="Attend")

    assert narrate_entry(entry) == "From our SOUTH campus: J's next step is to ATTEND more regularly."


def test_serve_sentence_uses_oxford_comma() -> None:
    """Three serve areas are joined with an Oxford comma."""
    entry = _entry(
        site="South",
        step="Serve",
        Field752="Parking",
        Field754="KIDS Registration",
        Field756="Greeting",
    )

    assert narrate_entry(entry) == (
        "From our SOUTH campus: J.D.'s next step is to SERVE in "
        "Parking Team, KIDS, and Welcome Team."
    )


def test_commit_sentence() -> None:
    """Commit entries name the canonical commitment."""
    entry = _entry(site="Downtown AM", step="Commit", Field230="Join a Missional Community")

    assert narrate_entry(entry) == (
        "From our DOWNTOWN AM campus: J.D.'s next step is to COMMIT to a Missional Community."
    )


def test_own_sentence() -> None:
    """Own entries describe participation in the mission."""
    entry = _entry(site="West", step="Own", Field242="Missional Community Training")

    assert narrate_entry(entry) == (
        "From our WEST campus: J.D.'s next step is to OWN the mission by "
        "participating in MC Training."
    )


def test_lead_sentence() -> None:
    """Lead entries end at the verb."""
    assert narrate_entry(_entry(site="North", step="Lead")) == (
        "From our NORTH campus: J.D.'s next step is to LEAD."
    )


def test_commit_without_label_stops_at_verb() -> None:
    """An unmapped commit answer leaves just the verb."""
    entry = _entry(site="South", step="Commit", Field238="Something new")

    assert narrate_entry(entry).endswith("J.D.'s next step is to COMMIT.")


def test_missing_site_uses_generic_prefix() -> None:
    """Entries without a campus omit the campus name."""
    entry = _entry(site=None, step="Lead")

    assert narrate_entry(entry).startswith("From our campus: ")


def test_recent_activity_keeps_last_entries_and_total() -> None:
    """Only the last entries are narrated but every entry is counted."""
    entries = normalize_entries(
        [raw_record(first_name=name, last_name="", step="Lead") for name in "ABCDE"],
        REGISTRY,
    )

    feed = narrate_recent_activity(entries, limit=2)

    assert ([text.split(": ")[1][0] for text in feed.texts], feed.count) == (["D", "E"], 5)


def test_recent_activity_narrates_unknown_steps() -> None:
    """Entries with an unrecognized step still fill the feed window."""
    entries = normalize_entries(
        [raw_record(step="Pray"), raw_record(step=None), raw_record(step="Lead")],
        REGISTRY,
    )

    feed = narrate_recent_activity(entries, limit=3)

    assert feed.texts[:2] == (
        "From our SOUTH campus: J.D.'s next step is to PRAY.",
        "From our SOUTH campus: J.D.'s next step is to TAKE A NEXT STEP.",
    ) and (len(feed.texts), feed.count) == (3, 3)


@pytest.mark.parametrize(
    ("first_name", "last_name", "expected"),
    [
        ("john", "doe", "J.D."),
        ("John", "", "J"),
        ("", "Doe", "Someone"),
        ("  ", "  ", "Someone"),
    ],
)
def test_initials(first_name: str, last_name: str, expected: str) -> None:
    """Initials degrade to the first letter or Someone."""
    assert initials(first_name, last_name) == expected


@pytest.mark.parametrize(
    ("areas", "expected"),
    [
        ([], ""),
        (["KIDS"], "KIDS"),
        (["KIDS", "Prayer Team"], "KIDS and Prayer Team"),
        (["A", "B", "C", "D"], "A, B, C, and D"),
    ],
)
def test_join_areas(areas: list[str], expected: str) -> None:
    """Areas join with and, using an Oxford comma for three or more."""
    assert join_areas(areas) == expected
