"""
MCP wrapper for the planner service.

This module keeps the MCP tool signatures of study_server/server.py but makes
HTTP calls to the distributed planner service. It handles serialization and
deserialization between the dataclass records and the Pydantic models.
"""
from __future__ import annotations

import os
import typing as t
from contextlib import contextmanager

import httpx
from fastmcp import FastMCP

# Dataclass records, so these tools return what study_server.server returns
from study_server.models import (Analytics, BlockRecord, CalendarEvent, Dashboard, PlanRecord, Session,
                                 TaskRecord, User)
# Import Pydantic models for HTTP serialization
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


mcp = FastMCP("PlannerMCPWrapper")

# Service URL - configurable via environment variable
PLANNER_SERVICE_URL = os.getenv("PLANNER_SERVICE_URL", "http://localhost:8004")

# Timeout settings (in seconds); plan generation is pure computation, so one budget fits all calls
STANDARD_TIMEOUT = 30.0


def _client() -> httpx.Client:
    """HTTP client bound to the planner service."""
    return httpx.Client(base_url=PLANNER_SERVICE_URL, timeout=STANDARD_TIMEOUT)


@contextmanager
def _service_errors() -> t.Iterator[None]:
    """Report request building and HTTP failures as RuntimeError."""
    try:
        yield
    except httpx.TimeoutException:
        raise RuntimeError(f"Planner service call timed out after {STANDARD_TIMEOUT} seconds")
    except httpx.HTTPStatusError as e:
        raise RuntimeError(f"HTTP error from planner service: {e.response.status_code} {e.response.text}")
    except Exception as e:
        raise RuntimeError(f"Error calling planner service: {str(e)}")


def _send(method: str, path: str, **kwargs: t.Any) -> t.Any:
    """Send one request to the planner service and return the decoded JSON body."""
    with _client() as client:
        response = client.request(method, path, **kwargs)
        response.raise_for_status()
        return response.json()


def _register_user(name: str, email: str = "") -> User:
    """Register a user through the planner service."""
    with _service_errors():
        request = RegisterUserRequest(name=name, email=email)
        result = PydanticUser(**_send("POST", "/users", json=request.model_dump()))
    return User(**result.model_dump())


def _list_users() -> list[User]:
    with _service_errors():
        data = _send("GET", "/users")
        users = [PydanticUser(**item) for item in data]
    return [User(**u.model_dump()) for u in users]


def _add_task(user_id: str, title: str, est_minutes: int, deadline: str, subject: str = "") -> TaskRecord:
    """Add a task through the planner service."""
    with _service_errors():
        request = AddTaskRequest(
            user_id=user_id,
            title=title,
            est_minutes=est_minutes,
            deadline=deadline,
            subject=subject,
        )
        result = PydanticTaskRecord(**_send("POST", "/tasks", json=request.model_dump(mode="json")))
    return TaskRecord(**result.model_dump())


def _add_calendar_event(user_id: str, title: str, start: str, end: str) -> CalendarEvent:
    """Add a single busy interval through the planner service."""
    with _service_errors():
        request = AddCalendarEventRequest(user_id=user_id, title=title, start=start, end=end)
        result = PydanticCalendarEvent(**_send("POST", "/calendar/event", json=request.model_dump(mode="json")))
    return CalendarEvent(**result.model_dump())


def _import_calendar(user_id: str, ics_path_or_url: str) -> list[CalendarEvent]:
    """Import an .ics file or feed through the planner service."""
    with _service_errors():
        request = ImportCalendarRequest(user_id=user_id, ics_path_or_url=ics_path_or_url)
        data = _send("POST", "/calendar/import", json=request.model_dump())
        events = [PydanticCalendarEvent(**item) for item in data]
    return [CalendarEvent(**e.model_dump()) for e in events]


def _generate_plan(
    user_id: str,
    horizon_days: int = 7,
    block_minutes: int = 50,
    break_minutes: int = 10,
    avoid_collisions: bool = False,
    cover_remainder: bool = False
) -> PlanRecord:
    """
    Generate a plan.

    This maintains the same signature as study_server.server.generate_plan
    but makes an HTTP call to the distributed planner service.
    """
    with _service_errors():
        request = GeneratePlanRequest(
            user_id=user_id,
            parameters=PlanningParameters(
                horizon_days=horizon_days,
                block_minutes=block_minutes,
                break_minutes=break_minutes,
                avoid_collisions=avoid_collisions,
                cover_remainder=cover_remainder,
            ),
        )
        result = PydanticPlanRecord(**_send("POST", "/plans", json=request.model_dump()))
    return _pydantic_to_dataclass_plan(result)


def _start_session(user_id: str, block_id: str) -> Session:
    with _service_errors():
        request = StartSessionRequest(user_id=user_id, block_id=block_id)
        result = PydanticSession(**_send("POST", "/sessions/start", json=request.model_dump()))
    return Session(**result.model_dump())


def _end_session(user_id: str, session_id: str, focus_score: t.Optional[int] = None) -> Session:
    with _service_errors():
        request = EndSessionRequest(user_id=user_id, session_id=session_id, focus_score=focus_score)
        result = PydanticSession(**_send("POST", "/sessions/end", json=request.model_dump()))
    return Session(**result.model_dump())


def _get_analytics(user_id: str) -> Analytics:
    with _service_errors():
        result = PydanticAnalytics(**_send("GET", "/analytics", params={"user_id": user_id}))
    return Analytics(**result.model_dump())


def _get_dashboard(user_id: str) -> Dashboard:
    with _service_errors():
        result = PydanticDashboard(**_send("GET", "/dashboard", params={"user_id": user_id}))
    return Dashboard(
        user=User(**result.user.model_dump()),
        tasks=[TaskRecord(**task.model_dump()) for task in result.tasks],
        events=[CalendarEvent(**e.model_dump()) for e in result.events],
        plans=[_pydantic_to_dataclass_plan(p) for p in result.plans],
        sessions=[Session(**s.model_dump()) for s in result.sessions],
    )


def _show_plan(user_id: str) -> str:
    with _service_errors():
        result = ShowPlanResponse(**_send("GET", "/plans/latest/formatted", params={"user_id": user_id}))
    return result.formatted_plan


def _pydantic_to_dataclass_plan(pydantic_plan: PydanticPlanRecord) -> PlanRecord:
    """Convert Pydantic PlanRecord to dataclass PlanRecord."""
    return PlanRecord(
        id=pydantic_plan.id,
        user_id=pydantic_plan.user_id,
        created_at=pydantic_plan.created_at,
        horizon_days=pydantic_plan.horizon_days,
        horizon=pydantic_plan.horizon,
        blocks=[BlockRecord(**block.model_dump()) for block in pydantic_plan.blocks],
    )


# MCP tool wrappers that call the raw functions
@mcp.tool()
def register_user(name: str, email: str = "") -> User:
    """Registers a planner user."""
    return _register_user(name, email)


@mcp.tool()
def list_users() -> list[User]:
    """Lists all registered users."""
    return _list_users()


@mcp.tool()
def add_task(user_id: str, title: str, est_minutes: int, deadline: str, subject: str = "") -> TaskRecord:
    """Adds a task to schedule."""
    return _add_task(user_id, title, est_minutes, deadline, subject)


@mcp.tool()
def add_calendar_event(user_id: str, title: str, start: str, end: str) -> CalendarEvent:
    """Adds a busy interval to the user's calendar."""
    return _add_calendar_event(user_id, title, start, end)


@mcp.tool()
def import_calendar(user_id: str, ics_path_or_url: str) -> list[CalendarEvent]:
    """Imports the events of an .ics file or URL as busy time."""
    return _import_calendar(user_id, ics_path_or_url)


@mcp.tool()
def generate_plan(
    user_id: str,
    horizon_days: int = 7,
    block_minutes: int = 50,
    break_minutes: int = 10,
    avoid_collisions: bool = False,
    cover_remainder: bool = False
) -> PlanRecord:
    """Generates and stores a plan of work blocks for the user's tasks."""
    return _generate_plan(user_id, horizon_days, block_minutes, break_minutes, avoid_collisions, cover_remainder)


@mcp.tool()
def start_session(user_id: str, block_id: str) -> Session:
    """Starts a work session on a planned block."""
    return _start_session(user_id, block_id)


@mcp.tool()
def end_session(user_id: str, session_id: str, focus_score: t.Optional[int] = None) -> Session:
    """Completes a work session."""
    return _end_session(user_id, session_id, focus_score)


@mcp.tool()
def get_analytics(user_id: str) -> Analytics:
    """Reports planned blocks, completed sessions and adherence percentage."""
    return _get_analytics(user_id)


@mcp.tool()
def get_dashboard(user_id: str) -> Dashboard:
    """Returns the user's tasks, events, plans and sessions."""
    return _get_dashboard(user_id)


@mcp.tool()
def show_plan(user_id: str) -> str:
    """Displays the user's most recent plan as a formatted table."""
    return _show_plan(user_id)


if __name__ == "__main__":
    mcp.run()
