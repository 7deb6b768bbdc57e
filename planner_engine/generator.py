"""
Plan generation.

Tasks are serviced earliest deadline first. For every task the free time
between ``now`` and the task's effective deadline (its own deadline, capped at
the planning horizon) is computed and handed to the block allocator.

By default free time is derived from calendar events alone for every task, so
blocks placed for an earlier task are invisible to later ones and two tasks
may be given the same wall-clock slot. ``PlanningConfig.avoid_collisions``
instead feeds each task's blocks back into the busy set before the next task
is planned.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
import typing as t

from planner_engine.allocator import allocate
from planner_engine.errors import InvalidParameter
from planner_engine.free_time import compute_free_intervals
from planner_engine.models import (BusyInterval, Plan, PlanningConfig, Task, WorkBlock, insert_sorted,
                                   validate_interval)

logger = logging.getLogger(__name__)


def order_by_deadline(tasks: t.Iterable[Task]) -> list[Task]:
    """Earliest deadline first; equal deadlines keep their input order."""
    return sorted(tasks, key=lambda task: task.deadline)


def generate_plan(
        tasks: t.Iterable[Task],
        busy_intervals: t.Sequence[BusyInterval],
        now: datetime,
        horizon_days: t.Optional[int] = None,
        config: t.Optional[PlanningConfig] = None,
) -> Plan:
    """Builds a plan of work blocks for ``tasks`` around ``busy_intervals``.

    :param tasks: Tasks to schedule.
    :param busy_intervals: Calendar events, sorted ascending by start.
    :param now: Reference time; nothing is scheduled before it.
    :param horizon_days: Days past ``now`` to schedule into. Overrides ``config.horizon_days``.
    :param config: Block, break, horizon and collision settings.
    :return: The generated plan; tasks that did not fit are under-scheduled, not rejected.
    :raises InvalidParameter: On out-of-range parameters or negative task estimates.
    :raises InvalidInterval: On a busy interval that starts after it ends.
    """
    config = (config or PlanningConfig()).validate()
    if horizon_days is None:
        horizon_days = config.horizon_days
    if horizon_days < 0:
        raise InvalidParameter(f"horizon_days must be >= 0, got {horizon_days}")

    horizon = now + timedelta(days=horizon_days)
    busy = list(busy_intervals)
    for interval in busy:
        validate_interval(interval)
    blocks: list[WorkBlock] = []

    for task in order_by_deadline(tasks):
        if task.estimated_minutes < 0:
            raise InvalidParameter(
                f"task {task.id!r} has negative estimated minutes: {task.estimated_minutes}"
            )
        effective_deadline = min(task.deadline, horizon)
        if effective_deadline <= now:
            logger.debug("Task %s is due at or before now, skipping", task.id)
            continue

        free = compute_free_intervals(busy, now, effective_deadline)
        placed = allocate(
            task.estimated_minutes,
            free,
            block_length=config.block_length,
            break_length=config.break_length,
            task_id=task.id,
            cover_remainder=config.cover_remainder,
        )
        blocks.extend(placed)

        scheduled = sum(block.minutes for block in placed)
        if scheduled < task.estimated_minutes:
            logger.info(
                "Task %s under-scheduled: %.0f of %d minutes placed before %s",
                task.id, scheduled, task.estimated_minutes, effective_deadline.isoformat(),
            )
        if config.avoid_collisions and placed:
            busy = insert_sorted(busy, placed)

    return Plan(created_at=now, horizon=horizon, blocks=tuple(blocks))
