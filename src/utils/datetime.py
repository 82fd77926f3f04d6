# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""DateTime utilities for LingoCoach.

All timestamps are stored in UTC and all Python datetimes are
timezone-aware. Naive datetimes coming back from a database driver are
assumed to be UTC.

Usage:
    from src.utils.datetime import utc_now, calendar_days_between

    gap = calendar_days_between(user.last_active_at, utc_now())
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Timezone-aware datetime representing current UTC time.
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Ensure a datetime is timezone-aware and in UTC.

    Args:
        dt: Datetime to normalize. Naive values are treated as UTC.

    Returns:
        UTC datetime, or None if dt is None.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def calendar_days_between(earlier: datetime | None, later: datetime) -> int | None:
    """Count UTC calendar-day boundaries between two datetimes.

    Two moments on the same UTC date are 0 days apart; yesterday 23:59
    and today 00:01 are 1 day apart.

    Args:
        earlier: The earlier datetime, or None if unknown.
        later: The later datetime.

    Returns:
        Number of days between the UTC dates, or None if earlier is None.
    """
    if earlier is None:
        return None
    return (ensure_utc(later).date() - ensure_utc(earlier).date()).days


def is_older_than(moment: datetime | None, max_age: timedelta) -> bool:
    """Check whether a moment lies further in the past than max_age.

    Args:
        moment: The datetime to check. None counts as too old.
        max_age: Maximum allowed age.

    Returns:
        True if moment is None or older than max_age.
    """
    if moment is None:
        return True
    return utc_now() - ensure_utc(moment) > max_age
