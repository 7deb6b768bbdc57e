# -*- coding: utf-8 -*-
import logging
import typing as t
from datetime import datetime

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from planner_engine import PlannerError, PlanningConfig, WorkBlock, overlaps
from study_server import planner
from study_server.errors import NotFound, StorageUnavailable
from study_server.models import PlanRecord
from study_server.store import JsonFileStore
from study_server.timestamps import parse_timestamp


console = Console()
err_console = Console(stderr=True)

# Errors reported to the user as a one-line message instead of a traceback
USER_ERRORS = (NotFound, PlannerError, StorageUnavailable, FileNotFoundError)


def format_datetime_human(iso_datetime: str) -> str:
    """Convert ISO datetime to human-readable format (MM/DD HH:MM)."""
    try:
        dt = datetime.fromisoformat(iso_datetime.replace('Z', '+00:00'))
        return dt.strftime("%m/%d %H:%M")
    except (ValueError, AttributeError):
        return iso_datetime


def truncate_title(title: str, max_length: int = 45) -> str:
    """Truncate title to max_length characters, adding ellipsis if needed."""
    if len(title) <= max_length:
        return title
    return title[:max_length-3] + "..."


def count_collisions(plan: PlanRecord) -> int:
    """Number of block pairs from different tasks that share wall-clock time."""
    blocks = [
        WorkBlock(task_id=b.task_id, start=parse_timestamp(b.start), end=parse_timestamp(b.end))
        for b in plan.blocks
    ]
    collisions = 0
    for i, a in enumerate(blocks):
        for b in blocks[i + 1:]:
            if a.task_id != b.task_id and overlaps(a, b):
                collisions += 1
    return collisions


def create_plan_table(plan: PlanRecord) -> Table:
    """Create a table of a plan's work blocks."""
    table = Table(title="🗓 Study Plan", show_header=True, header_style="bold magenta")
    table.add_column("Block", style="dim")
    table.add_column("Task", style="white")
    table.add_column("Subject", style="cyan")
    table.add_column("Date/Time", style="yellow")

    for block in plan.blocks:
        table.add_row(
            block.id,
            truncate_title(block.title),
            block.subject or "—",
            f"{format_datetime_human(block.start)} → {format_datetime_human(block.end)}",
        )
    return table


def _fail(e: Exception) -> t.NoReturn:
    err_console.print(f"[red]Error:[/red] {e}")
    raise SystemExit(1)


def _parse_time_option(value: t.Optional[str]) -> t.Optional[datetime]:
    if value is None:
        return None
    try:
        return parse_timestamp(value)
    except ValueError:
        raise click.BadParameter(f"not an ISO 8601 timestamp: {value}")


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--db", "db_path", default="db.json", show_default=True, envvar="STUDY_PLANNER_DB",
              type=click.Path(dir_okay=False), help="JSON file holding users, tasks, events, plans and sessions.")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.pass_context
def main(ctx: click.Context, db_path: str, verbose: bool) -> None:
    """Study planner: schedule tasks into free calendar time and track adherence."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
    ctx.obj = JsonFileStore(db_path)


@main.command()
@click.argument("name")
@click.option("--email", default="", help="Contact address.")
@click.pass_obj
def register(store: JsonFileStore, name: str, email: str) -> None:
    """Register a user and print its id."""
    try:
        user = planner.register_user(store, name, email)
    except USER_ERRORS as e:
        _fail(e)
    console.print(f"✓ Registered [bold]{user.name}[/bold]")
    console.print(user.id)


@main.command("add-task")
@click.argument("user_id")
@click.argument("title")
@click.option("--minutes", "est_minutes", type=int, required=True, help="Estimated work in minutes.")
@click.option("--deadline", required=True, help="Deadline as an ISO 8601 timestamp.")
@click.option("--subject", default="", help="Subject or course.")
@click.pass_obj
def add_task(store: JsonFileStore, user_id: str, title: str, est_minutes: int, deadline: str, subject: str) -> None:
    """Add a task with its estimate and deadline."""
    try:
        task = planner.add_task(store, user_id, title, est_minutes, _parse_time_option(deadline), subject=subject)
    except USER_ERRORS as e:
        _fail(e)
    console.print(f"✓ Task [bold]{task.title}[/bold] due {format_datetime_human(task.deadline)}")
    console.print(task.id)


@main.command("add-event")
@click.argument("user_id")
@click.argument("title")
@click.option("--start", required=True, help="Start as an ISO 8601 timestamp.")
@click.option("--end", required=True, help="End as an ISO 8601 timestamp.")
@click.pass_obj
def add_event(store: JsonFileStore, user_id: str, title: str, start: str, end: str) -> None:
    """Add a single busy interval."""
    try:
        event = planner.add_event(store, user_id, title, _parse_time_option(start), _parse_time_option(end))
    except USER_ERRORS as e:
        _fail(e)
    console.print(
        f"✓ Event [bold]{event.title}[/bold] "
        f"{format_datetime_human(event.start)} → {format_datetime_human(event.end)}"
    )


@main.command("import-ics")
@click.argument("user_id")
@click.argument("ics_path_or_url")
@click.pass_obj
def import_ics(store: JsonFileStore, user_id: str, ics_path_or_url: str) -> None:
    """Import calendar events from an .ics file or URL."""
    with console.status("[bold green]Importing calendar..."):
        try:
            events = planner.import_calendar(store, user_id, ics_path_or_url)
        except USER_ERRORS as e:
            _fail(e)
    console.print(f"✓ Imported [bold]{len(events)}[/bold] event(s)")


@main.command()
@click.argument("user_id")
@click.option("--horizon-days", default=7, show_default=True, type=int, help="Days ahead to schedule.")
@click.option("--block-minutes", default=50.0, show_default=True, type=float, help="Length of a work block.")
@click.option("--break-minutes", default=10.0, show_default=True, type=float, help="Break after each block.")
@click.option("--avoid-collisions", is_flag=True, help="Keep blocks of different tasks from overlapping.")
@click.option("--cover-remainder", is_flag=True, help="Give a remainder shorter than a block a full block.")
@click.option("--now", "now_option", default=None, help="Plan as if it were this ISO 8601 time.")
@click.pass_obj
def plan(
        store: JsonFileStore,
        user_id: str,
        horizon_days: int,
        block_minutes: float,
        break_minutes: float,
        avoid_collisions: bool,
        cover_remainder: bool,
        now_option: t.Optional[str],
) -> None:
    """Generate and store a plan of work blocks."""
    config = PlanningConfig.from_minutes(
        block_minutes=block_minutes,
        break_minutes=break_minutes,
        horizon_days=horizon_days,
        avoid_collisions=avoid_collisions,
        cover_remainder=cover_remainder,
    )
    try:
        record = planner.create_plan(store, user_id, config, now=_parse_time_option(now_option))
    except USER_ERRORS as e:
        _fail(e)

    if record.blocks:
        console.print(create_plan_table(record))
    else:
        console.print("🗓 No work blocks fit before the deadlines.")

    collisions = count_collisions(record)
    if collisions:
        console.print(
            f"[yellow]⚠ {collisions} pair(s) of blocks from different tasks overlap; "
            f"use --avoid-collisions to prevent this.[/yellow]"
        )
    console.print(f"Plan id: {record.id}")


@main.command()
@click.argument("user_id")
@click.pass_obj
def show(store: JsonFileStore, user_id: str) -> None:
    """Show the most recent plan."""
    try:
        planner.require_user(store, user_id)
        plans = store.load_plans(user_id)
    except USER_ERRORS as e:
        _fail(e)
    if not plans:
        console.print("🗓 No plans generated yet.")
        return
    console.print(create_plan_table(plans[-1]))


@main.group()
def session() -> None:
    """Start and finish work sessions on planned blocks."""


@session.command("start")
@click.argument("user_id")
@click.argument("block_id")
@click.pass_obj
def session_start(store: JsonFileStore, user_id: str, block_id: str) -> None:
    """Start working on a planned block."""
    try:
        sess = planner.start_session(store, user_id, block_id)
    except USER_ERRORS as e:
        _fail(e)
    console.print("✓ Session started")
    console.print(sess.id)


@session.command("end")
@click.argument("user_id")
@click.argument("session_id")
@click.option("--focus", "focus_score", type=int, default=None, help="Self-rated focus score.")
@click.pass_obj
def session_end(store: JsonFileStore, user_id: str, session_id: str, focus_score: t.Optional[int]) -> None:
    """Complete a work session."""
    try:
        planner.end_session(store, user_id, session_id, focus_score=focus_score)
    except USER_ERRORS as e:
        _fail(e)
    console.print("✓ Session completed")


@main.command()
@click.argument("user_id")
@click.pass_obj
def stats(store: JsonFileStore, user_id: str) -> None:
    """Show adherence: completed sessions against planned blocks."""
    try:
        report = planner.analytics(store, user_id)
    except USER_ERRORS as e:
        _fail(e)

    stats_text = Text()
    stats_text.append("Planned blocks: ", style="white")
    stats_text.append(f"{report.planned_blocks}", style="bold green")
    stats_text.append("\n")
    stats_text.append("Completed sessions: ", style="white")
    stats_text.append(f"{report.completed}", style="bold green")
    stats_text.append("\n")
    stats_text.append("Adherence: ", style="white")
    stats_text.append(f"{report.adherence}%", style="bold green")

    console.print(Panel(stats_text, title="📊 Statistics", border_style="green"))


if __name__ == "__main__":
    main()
