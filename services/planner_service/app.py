"""
FastAPI service for study planning operations.

This service exposes the planner operations from study_server/planner.py as
REST API endpoints: users, tasks, calendar import, plan generation, work
sessions and adherence analytics. Plan generation is pure computation over the
stored tasks and events, so every endpoint is fast.
"""
from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from dataclasses import asdict

from fastapi import FastAPI, HTTPException

from planner_engine import PlannerError, PlanningConfig
from services.shared.models import (
    AddCalendarEventRequest,
    AddTaskRequest,
    Analytics as PydanticAnalytics,
    CalendarEvent as PydanticCalendarEvent,
    Dashboard as PydanticDashboard,
    EndSessionRequest,
    GeneratePlanRequest,
    ImportCalendarRequest,
    PlanningParameters,
    PlanRecord as PydanticPlanRecord,
    RegisterUserRequest,
    Session as PydanticSession,
    ShowPlanResponse,
    StartSessionRequest,
    TaskRecord as PydanticTaskRecord,
    User as PydanticUser,
)
from study_server import planner
from study_server.errors import NotFound, StorageUnavailable
from study_server.formatting import format_latest_plan
from study_server.store import InMemoryStore, JsonFileStore, Store

logger = logging.getLogger(__name__)

# Store location - configurable via environment variable, in-memory when unset
STUDY_PLANNER_DB = os.getenv("STUDY_PLANNER_DB")

# Global store - will be initialized on startup
store: Store = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize resources on startup and cleanup on shutdown."""
    global store

    store = JsonFileStore(STUDY_PLANNER_DB) if STUDY_PLANNER_DB else InMemoryStore()
    logger.info("Planner service using %s", STUDY_PLANNER_DB or "in-memory store")

    yield


app = FastAPI(
    title="Study Planner Service",
    description="REST API for task scheduling, work sessions and adherence reporting",
    version="1.0.0",
    lifespan=lifespan,
)


def _to_http_error(e: Exception) -> HTTPException:
    """Map planner errors onto HTTP status codes."""
    if isinstance(e, NotFound):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, PlannerError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, StorageUnavailable):
        return HTTPException(status_code=503, detail=str(e))
    if isinstance(e, FileNotFoundError):
        return HTTPException(status_code=400, detail=str(e))
    return HTTPException(status_code=500, detail=f"Error in planner service: {str(e)}")


def to_planning_config(parameters: PlanningParameters) -> PlanningConfig:
    return PlanningConfig.from_minutes(
        block_minutes=parameters.block_minutes,
        break_minutes=parameters.break_minutes,
        horizon_days=parameters.horizon_days,
        avoid_collisions=parameters.avoid_collisions,
        cover_remainder=parameters.cover_remainder,
    )


@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "healthy", "service": "planner-service"}


@app.post("/users", response_model=PydanticUser)
async def register_user(request: RegisterUserRequest) -> PydanticUser:
    """Register a user."""
    try:
        user = planner.register_user(store, request.name, request.email)
        return PydanticUser(**asdict(user))
    except Exception as e:
        raise _to_http_error(e)


@app.get("/users", response_model=list[PydanticUser])
async def list_users() -> list[PydanticUser]:
    """List all registered users."""
    try:
        return [PydanticUser(**asdict(u)) for u in store.list_users()]
    except Exception as e:
        raise _to_http_error(e)


@app.post("/tasks", response_model=PydanticTaskRecord)
async def add_task(request: AddTaskRequest) -> PydanticTaskRecord:
    """Add a task with its estimate and deadline."""
    try:
        task = planner.add_task(
            store,
            request.user_id,
            request.title,
            request.est_minutes,
            request.deadline,
            subject=request.subject,
        )
        return PydanticTaskRecord(**asdict(task))
    except Exception as e:
        raise _to_http_error(e)


@app.post("/calendar/event", response_model=PydanticCalendarEvent)
async def add_calendar_event(request: AddCalendarEventRequest) -> PydanticCalendarEvent:
    """Add a single busy interval."""
    try:
        event = planner.add_event(store, request.user_id, request.title, request.start, request.end)
        return PydanticCalendarEvent(**asdict(event))
    except Exception as e:
        raise _to_http_error(e)


@app.post("/calendar/import", response_model=list[PydanticCalendarEvent])
async def import_calendar(request: ImportCalendarRequest) -> list[PydanticCalendarEvent]:
    """
    Import an .ics file or feed as busy intervals.

    Fetching a remote feed blocks for up to the fetch timeout.
    """
    try:
        events = planner.import_calendar(store, request.user_id, request.ics_path_or_url)
        return [PydanticCalendarEvent(**asdict(e)) for e in events]
    except Exception as e:
        raise _to_http_error(e)


@app.post("/plans", response_model=PydanticPlanRecord)
async def generate_plan(request: GeneratePlanRequest) -> PydanticPlanRecord:
    """
    Generate and store a plan of work blocks.

    Tasks are serviced earliest deadline first. Unless ``avoid_collisions`` is
    set, blocks of different tasks may overlap.
    """
    try:
        plan = planner.create_plan(store, request.user_id, to_planning_config(request.parameters))
        return PydanticPlanRecord(**asdict(plan))
    except Exception as e:
        raise _to_http_error(e)


@app.get("/plans", response_model=list[PydanticPlanRecord])
async def list_plans(user_id: str) -> list[PydanticPlanRecord]:
    """List every stored plan of a user, oldest first."""
    try:
        planner.require_user(store, user_id)
        return [PydanticPlanRecord(**asdict(p)) for p in store.load_plans(user_id)]
    except Exception as e:
        raise _to_http_error(e)


@app.get("/plans/latest/formatted", response_model=ShowPlanResponse)
async def show_plan(user_id: str) -> ShowPlanResponse:
    """Show the most recent plan as a formatted table."""
    try:
        planner.require_user(store, user_id)
        return ShowPlanResponse(formatted_plan=format_latest_plan(store.load_plans(user_id)))
    except Exception as e:
        raise _to_http_error(e)


@app.post("/sessions/start", response_model=PydanticSession)
async def start_session(request: StartSessionRequest) -> PydanticSession:
    """Start a work session on a planned block."""
    try:
        session = planner.start_session(store, request.user_id, request.block_id)
        return PydanticSession(**asdict(session))
    except Exception as e:
        raise _to_http_error(e)


@app.post("/sessions/end", response_model=PydanticSession)
async def end_session(request: EndSessionRequest) -> PydanticSession:
    """Complete a work session."""
    try:
        session = planner.end_session(store, request.user_id, request.session_id, request.focus_score)
        return PydanticSession(**asdict(session))
    except Exception as e:
        raise _to_http_error(e)


@app.get("/analytics", response_model=PydanticAnalytics)
async def get_analytics(user_id: str) -> PydanticAnalytics:
    """Planned blocks, completed sessions and adherence percentage."""
    try:
        return PydanticAnalytics(**asdict(planner.analytics(store, user_id)))
    except Exception as e:
        raise _to_http_error(e)


@app.get("/dashboard", response_model=PydanticDashboard)
async def get_dashboard(user_id: str) -> PydanticDashboard:
    """Everything stored for a user."""
    try:
        return PydanticDashboard(**asdict(planner.dashboard(store, user_id)))
    except Exception as e:
        raise _to_http_error(e)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8004)
