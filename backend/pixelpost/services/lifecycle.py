from __future__ import annotations
from datetime import datetime
from typing import Literal, Protocol

ContestStatus = Literal["upcoming", "active", "completed"]

STATUS_ORDER: dict[str, int] = {"active": 0, "upcoming": 1, "completed": 2}


class _Bounded(Protocol):
    status: str
    start_date: datetime
    end_date: datetime
    created_at: datetime


def derive_status(now: datetime, start: datetime, end: datetime) -> ContestStatus:
    """Status implied by the contest window at `now`. Both bounds are inclusive for `active`."""
    if now < start:
        return "upcoming"
    if start <= now <= end:
        return "active"
    return "completed"


def next_status(status: str, start: datetime, end: datetime, now: datetime) -> str:
    """
    Stored-status transition used by the refresh job.

    Moves forward only: upcoming -> active once `now >= start`, active ->
    completed once `now >= end`. A contest still marked upcoming after its end
    passes through active to completed in one step, so a single refresh
    converges. Completed is terminal.
    """
    if status == "upcoming" and now >= start:
        status = "active"
    if status == "active" and now >= end:
        status = "completed"
    return status


def current_status(contest: _Bounded, now: datetime) -> ContestStatus:
    # Live view; may disagree with contest.status until the next refresh.
    return derive_status(now, contest.start_date, contest.end_date)


def not_active_message(status: str) -> str:
    if status == "upcoming":
        return "This contest has not started yet"
    return "This contest has already ended"


def public_sort_key(c: _Bounded):
    # active before upcoming, then start date ascending
    return (STATUS_ORDER.get(c.status, 3), c.start_date)


def full_sort_key(c: _Bounded):
    # active, upcoming, completed; completed ones most recently ended first
    rank = STATUS_ORDER.get(c.status, 3)
    if c.status == "completed":
        return (rank, -c.end_date.timestamp())
    return (rank, c.start_date.timestamp())


def admin_sort_key(c: _Bounded):
    return -c.created_at.timestamp()
