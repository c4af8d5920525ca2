"""Utility functions for project tracking records."""

import uuid
from datetime import datetime, timezone

from .constants import DONE_STATUS


def new_id() -> str:
    """Generate a record id."""
    return str(uuid.uuid4())


def utc_now() -> str:
    """Current time as an ISO-8601 UTC string."""
    return datetime.now(timezone.utc).isoformat()


def name_matches(name: str, query: str) -> bool:
    """Case-insensitive substring match, the same as `ilike '%query%'`."""
    return query.casefold() in name.casefold()


def compute_progress(statuses: list[str]) -> int:
    """Percentage of issues that are done, rounded down."""
    if not statuses:
        return 0
    done = sum(1 for s in statuses if s == DONE_STATUS)
    return (done * 100) // len(statuses)
