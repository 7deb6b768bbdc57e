"""
Data models for the study planner's stored records.

This module contains the dataclasses persisted by the store: users, tasks,
calendar events, generated plans with their blocks, and work sessions.
Timestamps are kept as ISO 8601 strings so records serialize as plain JSON.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import typing as t


SessionStatus = t.Literal["inprogress", "completed"]


@dataclass
class User:
    """A registered planner user."""
    id: str
    name: str
    email: str = ""
    preferences: dict[str, t.Any] = field(default_factory=dict)
    created_at: str = ""


@dataclass
class TaskRecord:
    """A task with its estimate and deadline."""
    id: str
    user_id: str
    title: str
    est_minutes: int
    deadline: str
    subject: str = ""
    created_at: str = ""


@dataclass
class CalendarEvent:
    """A busy interval imported from a calendar."""
    id: str
    user_id: str
    title: str
    start: str
    end: str
    uid: str = ""


@dataclass
class BlockRecord:
    """A persisted work block; sessions refer to it by ``id``."""
    id: str
    user_id: str
    task_id: str
    start: str
    end: str
    title: str = ""
    subject: str = ""


@dataclass
class PlanRecord:
    """A persisted plan snapshot."""
    id: str
    user_id: str
    created_at: str
    horizon_days: int
    horizon: str
    blocks: list[BlockRecord] = field(default_factory=list)


@dataclass
class Session:
    """A worked (or in-progress) block."""
    id: str
    user_id: str
    block_id: str
    start: str
    status: SessionStatus = "inprogress"
    end: t.Optional[str] = None
    focus_score: t.Optional[int] = None


@dataclass
class Analytics:
    """Adherence figures for one user."""
    planned_blocks: int
    completed: int
    adherence: int


@dataclass
class Dashboard:
    """Everything stored for one user."""
    user: User
    tasks: list[TaskRecord] = field(default_factory=list)
    events: list[CalendarEvent] = field(default_factory=list)
    plans: list[PlanRecord] = field(default_factory=list)
    sessions: list[Session] = field(default_factory=list)
