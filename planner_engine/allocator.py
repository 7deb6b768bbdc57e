"""Greedy placement of fixed-length work blocks into free time."""
from __future__ import annotations

from datetime import timedelta
import typing as t

from planner_engine.errors import InvalidParameter
from planner_engine.models import (DEFAULT_BLOCK_LENGTH, DEFAULT_BREAK_LENGTH, FreeInterval, WorkBlock,
                                   validate_lengths)


def allocate(
        remaining_minutes: float,
        free_intervals: t.Iterable[FreeInterval],
        block_length: timedelta = DEFAULT_BLOCK_LENGTH,
        break_length: timedelta = DEFAULT_BREAK_LENGTH,
        task_id: t.Optional[str] = None,
        cover_remainder: bool = False,
) -> list[WorkBlock]:
    """Places whole blocks for one task, earliest free time first.

    Within each free interval a cursor starts at the interval's start; a block
    is placed whenever ``cursor + block_length`` still fits, then the cursor
    skips ahead by one block plus one break. Placement stops once the task's
    minutes are used up or the free intervals run out, so a task may end up
    under-scheduled.

    Blocks are never shortened. A remainder smaller than one block is left
    unscheduled unless ``cover_remainder`` is set, in which case it is rounded
    up to a full block.

    :param remaining_minutes: Minutes of work still to place.
    :param free_intervals: Free intervals in ascending order.
    :param block_length: Length of every placed block.
    :param break_length: Gap left after each block before the next one.
    :param task_id: Identity stamped on each produced block.
    :param cover_remainder: Give a trailing remainder shorter than a block a full block.
    :return: The placed blocks in chronological order.
    :raises InvalidParameter: On negative minutes, a non-positive block or a negative break.
    """
    if remaining_minutes < 0:
        raise InvalidParameter(f"remaining minutes must not be negative, got {remaining_minutes}")
    validate_lengths(block_length, break_length)

    block_minutes = block_length / timedelta(minutes=1)
    # Smallest remainder that still earns a block.
    threshold = 0.0 if cover_remainder else block_minutes

    blocks: list[WorkBlock] = []
    for interval in free_intervals:
        if remaining_minutes <= 0 or remaining_minutes < threshold:
            break
        cursor = interval.start
        while cursor + block_length <= interval.end:
            if remaining_minutes <= 0 or remaining_minutes < threshold:
                break
            blocks.append(WorkBlock(task_id=task_id, start=cursor, end=cursor + block_length))
            remaining_minutes -= block_minutes
            cursor += block_length + break_length
    return blocks
