"""
Data models for the planning engine.

This module contains the value types a planning run works with: busy and free
intervals, tasks, work blocks, the resulting plan and the planning parameters.
All of them are immutable; a plan is superseded by a newer plan, never edited.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
import typing as t

from planner_engine.errors import InvalidInterval, InvalidParameter


DEFAULT_BLOCK_LENGTH = timedelta(minutes=50)
DEFAULT_BREAK_LENGTH = timedelta(minutes=10)
DEFAULT_HORIZON_DAYS = 7


@dataclass(frozen=True)
class BusyInterval:
    """A time range occupied by a calendar event."""
    start: datetime
    end: datetime


@dataclass(frozen=True)
class FreeInterval:
    """A time range inside a window that no busy interval covers."""
    start: datetime
    end: datetime

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


Interval = t.Union[BusyInterval, FreeInterval, "WorkBlock"]


@dataclass(frozen=True)
class Task:
    """A unit of work to schedule, read-only for the duration of a run."""
    id: str
    estimated_minutes: int
    deadline: datetime


@dataclass(frozen=True)
class WorkBlock:
    """A fixed-length slot of work placed for one task."""
    task_id: t.Optional[str]
    start: datetime
    end: datetime

    @property
    def minutes(self) -> float:
        return (self.end - self.start) / timedelta(minutes=1)


@dataclass(frozen=True)
class Plan:
    """Snapshot produced by one planning run."""
    created_at: datetime
    horizon: datetime
    blocks: tuple[WorkBlock, ...] = ()

    def blocks_for(self, task_id: str) -> list[WorkBlock]:
        """Blocks placed for ``task_id``, in plan order."""
        return [block for block in self.blocks if block.task_id == task_id]

    def scheduled_minutes(self, task_id: str) -> float:
        """Total minutes allocated to ``task_id``."""
        return sum(block.minutes for block in self.blocks_for(task_id))


@dataclass(frozen=True)
class PlanningConfig:
    """Scheduling parameters for a planning run.

    ``avoid_collisions`` switches the generator from recomputing free time
    against calendar events alone for every task to folding each task's
    placed blocks into the busy set before the next task is planned.
    ``cover_remainder`` rounds a task's final sliver up to a full block.
    """
    block_length: timedelta = DEFAULT_BLOCK_LENGTH
    break_length: timedelta = DEFAULT_BREAK_LENGTH
    horizon_days: int = DEFAULT_HORIZON_DAYS
    avoid_collisions: bool = False
    cover_remainder: bool = False

    @classmethod
    def from_minutes(
            cls,
            block_minutes: float = 50,
            break_minutes: float = 10,
            horizon_days: int = DEFAULT_HORIZON_DAYS,
            avoid_collisions: bool = False,
            cover_remainder: bool = False,
    ) -> "PlanningConfig":
        """Builds a config from plain minute counts, as the outer layers receive them."""
        return cls(
            block_length=timedelta(minutes=block_minutes),
            break_length=timedelta(minutes=break_minutes),
            horizon_days=horizon_days,
            avoid_collisions=avoid_collisions,
            cover_remainder=cover_remainder,
        )

    def validate(self) -> "PlanningConfig":
        validate_lengths(self.block_length, self.break_length)
        if self.horizon_days < 0:
            raise InvalidParameter(f"horizon_days must be >= 0, got {self.horizon_days}")
        return self


def validate_lengths(block_length: timedelta, break_length: timedelta) -> None:
    """Raises InvalidParameter unless the block is positive and the break non-negative."""
    if block_length <= timedelta(0):
        raise InvalidParameter(f"block length must be positive, got {block_length}")
    if break_length < timedelta(0):
        raise InvalidParameter(f"break length must not be negative, got {break_length}")


def validate_interval(interval: Interval) -> None:
    if interval.start > interval.end:
        raise InvalidInterval(
            f"interval starts after it ends: {interval.start.isoformat()} > {interval.end.isoformat()}"
        )


def overlaps(a: Interval, b: Interval) -> bool:
    """True iff the half-open ranges of ``a`` and ``b`` share any instant."""
    return a.start < b.end and b.start < a.end


def insert_sorted(busy: list[BusyInterval], blocks: t.Iterable[WorkBlock]) -> list[BusyInterval]:
    """Returns ``busy`` with ``blocks`` added as busy intervals, ordered by start.

    The sort is stable, so intervals with equal starts keep their relative order.
    """
    merged = list(busy)
    merged.extend(BusyInterval(start=block.start, end=block.end) for block in blocks)
    merged.sort(key=lambda interval: interval.start)
    return merged
