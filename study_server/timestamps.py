# -*- coding: utf-8 -*-
"""Conversions between stored ISO 8601 strings and datetimes."""
from datetime import datetime, timezone


def parse_timestamp(iso_string: str) -> datetime:
    """Parses an ISO 8601 string, accepting a trailing ``Z`` for UTC.

    Naive values are taken to be UTC so stored and generated times compare.
    """
    dt = datetime.fromisoformat(iso_string.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def ensure_aware(dt: datetime) -> datetime:
    """Attaches UTC to naive datetimes, leaves aware ones alone."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def format_timestamp(dt: datetime) -> str:
    return ensure_aware(dt).isoformat()


def format_datetime_human(iso_string: str) -> str:
    """Formats an ISO datetime string as 'Mon 1/15 2:30 PM'.

    If parsing fails, returns the original string.
    """
    try:
        dt = datetime.fromisoformat(iso_string.replace("Z", "+00:00"))
        return dt.strftime("%a %-m/%-d %-I:%M %p")
    except (ValueError, AttributeError):
        return iso_string


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
