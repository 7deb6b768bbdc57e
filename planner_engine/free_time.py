"""Free-time calculation over a sorted list of busy intervals."""
from __future__ import annotations

from datetime import datetime
import typing as t

from planner_engine.errors import InvalidInterval
from planner_engine.models import BusyInterval, FreeInterval, validate_interval


def compute_free_intervals(
        busy: t.Sequence[BusyInterval],
        window_start: datetime,
        window_end: datetime,
) -> list[FreeInterval]:
    """Returns the gaps between busy intervals inside ``[window_start, window_end]``.

    ``busy`` must already be sorted ascending by start. Overlapping entries are
    tolerated since the cursor only ever moves forward; an unsorted list is not
    repaired and yields gaps of undefined quality.

    :param busy: Busy intervals sorted by start.
    :param window_start: Start of the window to search.
    :param window_end: End of the window to search.
    :return: Free intervals, ascending and pairwise disjoint, all inside the window.
    :raises InvalidInterval: If the window or any busy interval starts after it ends.
    """
    if window_start > window_end:
        raise InvalidInterval(
            f"window starts after it ends: {window_start.isoformat()} > {window_end.isoformat()}"
        )
    for interval in busy:
        validate_interval(interval)

    free: list[FreeInterval] = []
    cursor = window_start
    for interval in busy:
        if cursor >= window_end:
            break
        if interval.end <= cursor:
            continue
        # Nothing past the window matters; the tail below closes the gap.
        if interval.start >= window_end:
            break
        if interval.start > cursor:
            free.append(FreeInterval(start=cursor, end=interval.start))
        cursor = max(cursor, interval.end)

    if cursor < window_end:
        free.append(FreeInterval(start=cursor, end=window_end))
    return free
