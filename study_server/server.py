# -*- coding: utf-8 -*-
import os
import typing as t

from fastmcp import FastMCP

from planner_engine import PlanningConfig
from study_server import planner
from study_server.formatting import format_latest_plan
from study_server.models import Analytics, CalendarEvent, Dashboard, PlanRecord, Session, TaskRecord, User
from study_server.store import InMemoryStore, JsonFileStore, Store
from study_server.timestamps import parse_timestamp

mcp = FastMCP("StudyPlanner")

# JSON file when STUDY_PLANNER_DB is set, otherwise in-memory for the life of the process
STUDY_PLANNER_DB = os.getenv("STUDY_PLANNER_DB")
store: Store = JsonFileStore(STUDY_PLANNER_DB) if STUDY_PLANNER_DB else InMemoryStore()


@mcp.tool()
def register_user(name: str, email: str = "") -> User:
    """Registers a planner user.

    :param name: Display name.
    :param email: Contact address (optional).
    :return: The created User, including its id.
    """
    return planner.register_user(store, name, email)


@mcp.tool()
def list_users() -> list[User]:
    """Lists all registered users.

    :return: A list of User objects.
    """
    return store.list_users()


@mcp.tool()
def add_task(
        user_id: str,
        title: str,
        est_minutes: int,
        deadline: str,
        subject: str = ""
) -> TaskRecord:
    """Adds a task to schedule.

    :param user_id: Owner of the task.
    :param title: Title of the task.
    :param est_minutes: Estimated work in minutes.
    :param deadline: Deadline in ISO format.
    :param subject: Subject or course (optional).
    :return: The stored TaskRecord.
    """
    return planner.add_task(store, user_id, title, est_minutes, parse_timestamp(deadline), subject=subject)


@mcp.tool()
def add_calendar_event(user_id: str, title: str, start: str, end: str) -> CalendarEvent:
    """Adds a busy interval to the user's calendar.

    :param user_id: Owner of the event.
    :param title: Title of the event.
    :param start: Start time in ISO format.
    :param end: End time in ISO format.
    :return: The stored CalendarEvent.
    """
    return planner.add_event(store, user_id, title, parse_timestamp(start), parse_timestamp(end))


@mcp.tool()
def import_calendar(user_id: str, ics_path_or_url: str) -> list[CalendarEvent]:
    """Imports the events of an .ics file or URL as busy time.

    :param user_id: Owner of the calendar.
    :param ics_path_or_url: Local path or http(s) URL of the calendar.
    :return: The imported CalendarEvent objects.
    """
    return planner.import_calendar(store, user_id, ics_path_or_url)


@mcp.tool()
def generate_plan(
        user_id: str,
        horizon_days: int = 7,
        block_minutes: int = 50,
        break_minutes: int = 10,
        avoid_collisions: bool = False,
        cover_remainder: bool = False
) -> PlanRecord:
    """Generates and stores a plan of work blocks for the user's tasks.

    Tasks are scheduled earliest deadline first into free calendar time
    before min(deadline, now + horizon_days).

    :param user_id: The user to plan for.
    :param horizon_days: How many days ahead to schedule.
    :param block_minutes: Length of each work block.
    :param break_minutes: Break after each block.
    :param avoid_collisions: Keep blocks of different tasks from overlapping.
    :param cover_remainder: Give a remainder shorter than a block a full block.
    :return: The stored PlanRecord.
    """
    config = PlanningConfig.from_minutes(
        block_minutes=block_minutes,
        break_minutes=break_minutes,
        horizon_days=horizon_days,
        avoid_collisions=avoid_collisions,
        cover_remainder=cover_remainder,
    )
    return planner.create_plan(store, user_id, config)


@mcp.tool()
def start_session(user_id: str, block_id: str) -> Session:
    """Starts a work session on a planned block.

    :param user_id: The user working.
    :param block_id: Id of the block from a stored plan.
    :return: The in-progress Session.
    """
    return planner.start_session(store, user_id, block_id)


@mcp.tool()
def end_session(user_id: str, session_id: str, focus_score: t.Optional[int] = None) -> Session:
    """Completes a work session.

    :param user_id: The user working.
    :param session_id: Id returned by start_session.
    :param focus_score: Self-rated focus (optional).
    :return: The completed Session.
    """
    return planner.end_session(store, user_id, session_id, focus_score=focus_score)


@mcp.tool()
def get_analytics(user_id: str) -> Analytics:
    """Reports planned blocks, completed sessions and adherence percentage.

    :param user_id: The user to report on.
    :return: An Analytics object.
    """
    return planner.analytics(store, user_id)


@mcp.tool()
def get_dashboard(user_id: str) -> Dashboard:
    """Returns the user's tasks, events, plans and sessions.

    :param user_id: The user to look up.
    :return: A Dashboard object.
    """
    return planner.dashboard(store, user_id)


@mcp.tool()
def show_plan(user_id: str) -> str:
    """Displays the user's most recent plan as a formatted table.

    :param user_id: The user whose plan to show.
    :return: Formatted table of work blocks, or a message if no plan exists.
    """
    planner.require_user(store, user_id)
    return format_latest_plan(store.load_plans(user_id))


if __name__ == "__main__":
    mcp.run()
