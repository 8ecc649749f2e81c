"""Recent activity sentences for the real-time feed widget.

Each of the most recent entries becomes one sentence such as
``From our SOUTH campus: J.D.'s next step is to SERVE in KIDS and Prayer Team.``
"""

from __future__ import annotations

from typing import Sequence

from core.constants import ACTIVITY_FEED_SIZE
from core.types import ActivityFeed, CanonicalEntry

_ANONYMOUS_NAME = "Someone"
_UNLABELED_STEP = "TAKE A NEXT STEP"
_SENTENCE_ENDINGS = (".", "!")


def narrate_recent_activity(
    entries: Sequence[CanonicalEntry],
    limit: int = ACTIVITY_FEED_SIZE,
) -> ActivityFeed:
    """Render the last ``limit`` entries as feed sentences.

    Entries whose step is unrecognized are narrated with their raw step
    answer, so the feed always shows the last ``limit`` entries.

    Args:
        entries: Every known entry, in fetch order.
        limit: Number of most recent entries to render.

    Returns:
        Sentences in fetch order plus the total entry count.
    """
    recent_entries = entries[-limit:] if limit > 0 else []
    texts = [narrate_entry(entry) for entry in recent_entries]
    return ActivityFeed(texts=tuple(texts), count=len(entries))


def narrate_entry(entry: CanonicalEntry) -> str:
    """Render one entry as a campus-prefixed sentence."""
    sentence = f"{initials(entry.first_name, entry.last_name)}'s next step is to "
    sentence += _step_clause(entry)
    if not sentence.endswith(_SENTENCE_ENDINGS):
        sentence += "."
    site_name = (entry.site or "").upper()
    prefix = f"From our {site_name} campus: " if site_name else "From our campus: "
    return prefix + sentence


def initials(first_name: str, last_name: str) -> str:
    """Return ``F.L.``, ``F`` without a last name, or ``Someone`` without a first name."""
    first_name = first_name.strip()
    last_name = last_name.strip()
    if not first_name:
        return _ANONYMOUS_NAME
    name = first_name[0].upper()
    if last_name:
        name += f".{last_name[0].upper()}."
    return name


def join_areas(areas: Sequence[str]) -> str:
    """Join serve areas as ``A``, ``A and B``, or ``A, B, and C``."""
    if len(areas) > 2:
        return ", ".join(areas[:-1]) + ", and " + areas[-1]
    return " and ".join(areas)


def _step_clause(entry: CanonicalEntry) -> str:
    if entry.step == "attend":
        return "ATTEND more regularly."
    if entry.step == "commit":
        return _with_detail("COMMIT", " to a ", entry.commit)
    if entry.step == "own":
        return _with_detail("OWN", " the mission by participating in ", entry.own)
    if entry.step == "serve":
        areas = [area for area in (entry.serve or ()) if area]
        return _with_detail("SERVE", " in ", join_areas(areas))
    if entry.step == "lead":
        return "LEAD"
    return entry.step_label.strip().upper() or _UNLABELED_STEP


def _with_detail(verb: str, transition: str, detail: str | None) -> str:
    # Without a normalized answer the sentence stops at the verb.
    if not detail:
        return verb
    return f"{verb}{transition}{detail}"
