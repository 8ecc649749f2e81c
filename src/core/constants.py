"""Core constants used across Farmore modules.

This module centralizes paging, cache, and dashboard constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_WUFOO_SUBDOMAIN = "theaustinstone"
DEFAULT_WUFOO_FORM = "far-more-involve"
WUFOO_API_PATH_TEMPLATE = "https://{subdomain}.wufoo.com/api/v3/forms/{form}/"
ENTRIES_ENDPOINT = "entries.json"
FIELDS_ENDPOINT = "fields.json"
DEFAULT_HTTP_TIMEOUT_SECONDS = 10.0
HTTP_OK = 200

PAGE_SIZE = 100
ENTRIES_CACHE_KEY_PREFIX = "wufoo_response_page_"
FIELDS_CACHE_KEY_PREFIX = "wufoo_form_fields_"

SECONDS_IN_A_DAY = 60 * 60 * 24
SECONDS_IN_A_WEEK = SECONDS_IN_A_DAY * 7
WUFOO_API_DAILY_LIMIT = 5000
API_BUDGET_SAFETY_FACTOR = 1.5
FULL_PAGE_CACHE_TIME = 60 * 60 * 3
PARTIAL_PAGE_CACHE_TIME = round(
    SECONDS_IN_A_DAY / (WUFOO_API_DAILY_LIMIT / API_BUDGET_SAFETY_FACTOR)
)
FIELDS_CACHE_TIME = 60 * 60 * 3

# Signups are charted for the last WEEKS weeks plus the current one.
WEEKS = 6
ACTIVITY_FEED_SIZE = 50
LEAD_SENTINEL_LABEL = "campus_pastor"
MAX_INVOLVEMENT_PERCENT = 100

STATISTICS_JOB_INTERVAL_SECONDS = 10.0
ACTIVITY_FEED_JOB_INTERVAL_SECONDS = 15.0

DEFAULT_SITE_SCHEMA_PATH = Path(__file__).resolve().parent / "site_schema.yaml"
SUPPORTED_SITE_SCHEMA_VERSIONS = (1,)

EVENT_NEXT_STEP = "farmore-next-step"
EVENT_SERVE_COMMIT_OWN = "farmore-serve-commit-own"
EVENT_CAMPUS_LEADERBOARD = "farmore-campus-leaderboard"
EVENT_SIGNUP_TOTAL = "signup-total"
EVENT_WEEKLY = "farmore-weekly"
EVENT_INVOLVEMENT_TOTAL = "farmore-involvement-total"
EVENT_ACTIVITY_FEED = "real-time-feed"
