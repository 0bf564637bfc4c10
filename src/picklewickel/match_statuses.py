"""Shared match-status definitions and helpers.

This module is the single source of truth for status groups and the
per-view status priorities reused across sorting, the web handlers and the
ingestion services.
"""

from __future__ import annotations

from typing import Iterable, Mapping

LIVE = "Live"
UPCOMING = "Upcoming"
COMPLETED = "Completed"
FORFEIT = "Forfeit"
WALKOVER = "Walkover"
PENDING_APPROVAL = "pending_approval"

# Statuses a match can carry once it is publicly visible.
PUBLIC_MATCH_STATUSES: tuple[str, ...] = (LIVE, UPCOMING, COMPLETED, FORFEIT, WALKOVER)

# Every status the system stores. pending_approval is the review-queue gate.
ALL_MATCH_STATUSES: tuple[str, ...] = PUBLIC_MATCH_STATUSES + (PENDING_APPROVAL,)

MATCH_STATUS_GROUPS: dict[str, tuple[str, ...]] = {
    # Matches shown on public pages.
    "public": PUBLIC_MATCH_STATUSES,
    # Outcomes where a winner may be flagged.
    "finished": (COMPLETED, FORFEIT, WALKOVER),
    # Matches whose result is not yet known.
    "in_play": (LIVE, UPCOMING),
    # Review queue.
    "review": (PENDING_APPROVAL,),
    "all": ALL_MATCH_STATUSES,
}

# Admin table "status" column and tournament bracket view.
STATUS_ORDER: dict[str, int] = {
    LIVE: 0,
    UPCOMING: 1,
    COMPLETED: 2,
    FORFEIT: 3,
    WALKOVER: 4,
}
STATUS_ORDER_DEFAULT = 5

# Admin default order, today's partition: finished outcomes collapse together.
ADMIN_TODAY_STATUS_ORDER: dict[str, int] = {
    LIVE: 0,
    UPCOMING: 1,
    COMPLETED: 2,
    FORFEIT: 2,
    WALKOVER: 2,
}
ADMIN_TODAY_STATUS_DEFAULT = 3

# Public schedule round buckets.
SCHEDULE_STATUS_ORDER: dict[str, int] = {
    UPCOMING: 0,
    COMPLETED: 1,
    FORFEIT: 1,
    WALKOVER: 1,
}
SCHEDULE_STATUS_DEFAULT = 2


def get_status_group(group_name: str) -> tuple[str, ...]:
    """Return a named status group, raising KeyError for unknown names."""
    return MATCH_STATUS_GROUPS[group_name]


def is_public_status(status: str | None) -> bool:
    return status in PUBLIC_MATCH_STATUSES


def status_rank(status: str | None, table: Mapping[str, int], default: int) -> int:
    """Look up a status priority, falling back to ``default`` for unknowns."""
    if status is None:
        return default
    return table.get(status, default)


def normalize_status_filter(
    raw_statuses: Iterable[str] | None,
    *,
    default_group: str = "public",
) -> list[str]:
    """Normalize requested statuses against known values.

    - If no statuses are provided, returns the statuses from ``default_group``.
    - Matching is case-insensitive; the canonical spelling is returned.
    - Unknown statuses are ignored.
    - Order is preserved and duplicates are removed.
    """
    if raw_statuses is None:
        return list(get_status_group(default_group))

    canonical = {status.lower(): status for status in ALL_MATCH_STATUSES}
    seen: set[str] = set()
    normalized: list[str] = []

    for raw in raw_statuses:
        status = canonical.get(raw.strip().lower())
        if not status or status in seen:
            continue
        seen.add(status)
        normalized.append(status)

    if normalized:
        return normalized

    return list(get_status_group(default_group))
