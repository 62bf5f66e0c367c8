"""
Datetime utility functions for handling timezone-aware datetimes.
"""
from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Return the current datetime in UTC timezone.

    Use this instead of ``datetime.now(timezone.utc)`` so tests can patch a
    single call site.
    """
    return datetime.now(timezone.utc)
