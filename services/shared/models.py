"""
Shared Pydantic models for REST API serialization.

This module contains Pydantic equivalents of the dataclass records used by the
study planner, plus the request and response bodies of the planner service,
so that JSON crossing the HTTP boundary is validated in one place.
"""
from __future__ import annotations

import typing as t
from datetime import datetime

from pydantic import BaseModel, Field


SessionStatus = t.Literal["inprogress", "completed"]


class User(BaseModel):
    """A registered planner user."""
    id: str
    name: str
    email: str = ""
    preferences: dict[str, t.Any] = Field(default_factory=dict)
    created_at: str = ""


class TaskRecord(BaseModel):
    """A task with its estimate and deadline."""
    id: str
    user_id: str
    title: str
    est_minutes: int
    deadline: str
    subject: str = ""
    created_at: str = ""


class CalendarEvent(BaseModel):
    """A busy interval imported from a calendar."""
    id: str
    user_id: str
    title: str
    start: str
    end: str
    uid: str = ""


class BlockRecord(BaseModel):
    """A persisted work block."""
    id: str
    user_id: str
    task_id: str
    start: str
    end: str
    title: str = ""
    subject: str = ""


class PlanRecord(BaseModel):
    """A persisted plan snapshot."""
    id: str
    user_id: str
    created_at: str
    horizon_days: int
    horizon: str
    blocks: list[BlockRecord] = Field(default_factory=list)


class Session(BaseModel):
    """A worked (or in-progress) block."""
    id: str
    user_id: str
    block_id: str
    start: str
    status: SessionStatus = "inprogress"
    end: t.Optional[str] = None
    focus_score: t.Optional[int] = None


class Analytics(BaseModel):
    """Adherence figures for one user."""
    planned_blocks: int
    completed: int
    adherence: int


class Dashboard(BaseModel):
    """Everything stored for one user."""
    user: User
    tasks: list[TaskRecord] = Field(default_factory=list)
    events: list[CalendarEvent] = Field(default_factory=list)
    plans: list[PlanRecord] = Field(default_factory=list)
    sessions: list[Session] = Field(default_factory=list)


class PlanningParameters(BaseModel):
    """
    Scheduling parameters for one planning run.
    Validated here so the planning engine only ever sees sane values.
    """
    horizon_days: int = Field(default=7, ge=0)
    block_minutes: float = Field(default=50, gt=0)
    break_minutes: float = Field(default=10, ge=0)
    avoid_collisions: bool = False
    cover_remainder: bool = False


# Request/Response Models for API endpoints
class RegisterUserRequest(BaseModel):
    """Request model for registering a user."""
    name: str
    email: str = ""


class AddTaskRequest(BaseModel):
    """Request model for adding a task."""
    user_id: str
    title: str
    est_minutes: int = Field(ge=0)
    deadline: datetime
    subject: str = ""


class AddCalendarEventRequest(BaseModel):
    """Request model for adding a single busy interval."""
    user_id: str
    title: str = "event"
    start: datetime
    end: datetime


class ImportCalendarRequest(BaseModel):
    """Request model for importing an .ics file or feed."""
    user_id: str
    ics_path_or_url: str


class GeneratePlanRequest(BaseModel):
    """Request model for generating a plan."""
    user_id: str
    parameters: PlanningParameters = Field(default_factory=PlanningParameters)


class StartSessionRequest(BaseModel):
    """Request model for starting a session on a planned block."""
    user_id: str
    block_id: str


class EndSessionRequest(BaseModel):
    """Request model for completing a session."""
    user_id: str
    session_id: str
    focus_score: t.Optional[int] = None


class ShowPlanResponse(BaseModel):
    """Response model for the formatted plan display."""
    formatted_plan: str
