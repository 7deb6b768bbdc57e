# -*- coding: utf-8 -*-
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path

import requests
from icalendar import Calendar

# Seconds to wait for a remote calendar feed
FETCH_TIMEOUT = 20


@dataclass
class ParsedEvent:
    """A VEVENT reduced to what the planner needs."""
    title: str
    start: datetime
    end: datetime
    uid: str = ""


def load_ics(path_or_url: str) -> bytes:
    """
    Loads calendar data from a local path or a URL.
    :param path_or_url: A local file path or a URL to an .ics file.
    :return: The raw calendar bytes.
    """
    if path_or_url.startswith('http://') or path_or_url.startswith('https://'):
        response = requests.get(path_or_url, timeout=FETCH_TIMEOUT)
        response.raise_for_status()
        return response.content
    path = Path(path_or_url)
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    return path.read_bytes()


def _as_datetime(value: date | datetime) -> datetime:
    # All-day entries carry a date; treat them as starting at midnight UTC.
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _event_end(start: date | datetime, component) -> date | datetime:
    # Without DTEND the end follows from DURATION, or RFC 5545 defaults:
    # one day for a date start, the start itself for a date-time start.
    dtend = component.get("DTEND")
    if dtend is not None:
        return dtend.dt
    duration = component.get("DURATION")
    if duration is not None:
        return start + duration.dt
    if not isinstance(start, datetime):
        return start + timedelta(days=1)
    return start


def parse_ics_events(data: bytes | str) -> list[ParsedEvent]:
    """
    Extracts the events of a calendar.
    Recurrence rules are not expanded; only each event's first occurrence is kept.
    :param data: Raw iCalendar data.
    :return: Events that have a start, in file order.
    """
    calendar = Calendar.from_ical(data)
    events: list[ParsedEvent] = []
    for component in calendar.walk("VEVENT"):
        dtstart = component.get("DTSTART")
        if dtstart is None:
            continue
        events.append(ParsedEvent(
            title=str(component.get("SUMMARY") or "event"),
            start=_as_datetime(dtstart.dt),
            end=_as_datetime(_event_end(dtstart.dt, component)),
            uid=str(component.get("UID") or ""),
        ))
    return events
