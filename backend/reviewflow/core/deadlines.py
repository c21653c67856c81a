"""Deadline and lateness detection."""

from datetime import datetime, timedelta
from typing import Optional


def seconds_remaining(started_at: datetime, allowed_duration: timedelta, now: datetime) -> float:
    """
    Seconds left before the allowance runs out.

    A negative result means the work is late by that many seconds.
    """
    return (allowed_duration - (now - started_at)).total_seconds()


def is_late(started_at: Optional[datetime], allowed_duration: timedelta, now: datetime) -> bool:
    """Unstarted work is never late."""
    if started_at is None:
        return False
    return seconds_remaining(started_at, allowed_duration, now) < 0


def is_past_deadline(deadline: Optional[datetime], now: datetime) -> bool:
    return deadline is not None and now > deadline
