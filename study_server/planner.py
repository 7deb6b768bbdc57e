"""
Planner operations over an explicit store.

Each function takes the store it works on as its first argument; nothing here
holds global state apart from the per-user locks that keep two plan runs for
the same user from interleaving their reads and writes.
"""
from __future__ import annotations

import logging
import threading
import uuid
from collections import defaultdict
from datetime import datetime
import typing as t

from planner_engine import BusyInterval, PlanningConfig, Task, adherence, generate_plan
from planner_engine.errors import InvalidInterval, InvalidParameter

from .errors import NotFound
from .ics_utils import load_ics, parse_ics_events
from .models import (Analytics, BlockRecord, CalendarEvent, Dashboard, PlanRecord, Session, TaskRecord,
                     User)
from .store import Store
from .timestamps import ensure_aware, format_timestamp, parse_timestamp, utcnow

logger = logging.getLogger(__name__)

_plan_locks: dict[str, threading.Lock] = defaultdict(threading.Lock)
_plan_locks_guard = threading.Lock()


def _new_id() -> str:
    return str(uuid.uuid4())


def _plan_lock(user_id: str) -> threading.Lock:
    with _plan_locks_guard:
        return _plan_locks[user_id]


def require_user(store: Store, user_id: str) -> User:
    user = store.get_user(user_id)
    if user is None:
        raise NotFound(f"User not found: {user_id}")
    return user


def register_user(store: Store, name: str, email: str = "", now: t.Optional[datetime] = None) -> User:
    """Creates a user."""
    user = User(
        id=_new_id(),
        name=name,
        email=email,
        created_at=format_timestamp(now or utcnow()),
    )
    store.add_user(user)
    logger.info("Registered user %s", user.id)
    return user


def add_task(
        store: Store,
        user_id: str,
        title: str,
        est_minutes: int,
        deadline: datetime,
        subject: str = "",
        now: t.Optional[datetime] = None,
) -> TaskRecord:
    """Records a task for ``user_id``.

    :raises NotFound: If the user does not exist.
    :raises InvalidParameter: If ``est_minutes`` is negative.
    """
    require_user(store, user_id)
    if est_minutes < 0:
        raise InvalidParameter(f"estimated minutes must not be negative, got {est_minutes}")
    task = TaskRecord(
        id=_new_id(),
        user_id=user_id,
        title=title,
        subject=subject,
        est_minutes=int(est_minutes),
        deadline=format_timestamp(deadline),
        created_at=format_timestamp(now or utcnow()),
    )
    store.add_task(task)
    return task


def add_event(store: Store, user_id: str, title: str, start: datetime, end: datetime) -> CalendarEvent:
    """Records a single busy interval.

    :raises InvalidInterval: If ``start`` is after ``end``.
    """
    require_user(store, user_id)
    if start > end:
        raise InvalidInterval(f"event starts after it ends: {start.isoformat()} > {end.isoformat()}")
    event = CalendarEvent(
        id=_new_id(),
        user_id=user_id,
        title=title,
        start=format_timestamp(start),
        end=format_timestamp(end),
    )
    store.add_events([event])
    return event


def import_calendar(store: Store, user_id: str, path_or_url: str) -> list[CalendarEvent]:
    """Imports the events of an .ics file or feed as busy intervals.

    Events whose start is after their end are skipped.
    """
    require_user(store, user_id)
    parsed = parse_ics_events(load_ics(path_or_url))
    events = []
    for item in parsed:
        if item.start > item.end:
            logger.warning("Skipping event %r: starts after it ends", item.title)
            continue
        events.append(CalendarEvent(
            id=_new_id(),
            user_id=user_id,
            title=item.title,
            start=format_timestamp(item.start),
            end=format_timestamp(item.end),
            uid=item.uid,
        ))
    store.add_events(events)
    logger.info("Imported %d event(s) for user %s from %s", len(events), user_id, path_or_url)
    return events


def _to_task(record: TaskRecord) -> Task:
    return Task(id=record.id, estimated_minutes=record.est_minutes, deadline=parse_timestamp(record.deadline))


def _to_busy(event: CalendarEvent) -> BusyInterval:
    return BusyInterval(start=parse_timestamp(event.start), end=parse_timestamp(event.end))


def create_plan(
        store: Store,
        user_id: str,
        config: t.Optional[PlanningConfig] = None,
        now: t.Optional[datetime] = None,
) -> PlanRecord:
    """Generates a plan from the user's tasks and calendar and stores it.

    Every block gets a fresh id so sessions can refer to it.
    """
    require_user(store, user_id)
    config = config or PlanningConfig()
    now = ensure_aware(now or utcnow())

    with _plan_lock(user_id):
        records = store.load_tasks(user_id)
        busy = [_to_busy(e) for e in store.load_events(user_id)]
        plan = generate_plan([_to_task(r) for r in records], busy, now, config=config)

        by_id = {r.id: r for r in records}
        blocks = [
            BlockRecord(
                id=_new_id(),
                user_id=user_id,
                task_id=block.task_id,
                title=by_id[block.task_id].title,
                subject=by_id[block.task_id].subject,
                start=format_timestamp(block.start),
                end=format_timestamp(block.end),
            )
            for block in plan.blocks
        ]
        record = PlanRecord(
            id=_new_id(),
            user_id=user_id,
            created_at=format_timestamp(plan.created_at),
            horizon_days=config.horizon_days,
            horizon=format_timestamp(plan.horizon),
            blocks=blocks,
        )
        store.save_plan(record)

    logger.info("Stored plan %s with %d block(s) for user %s", record.id, len(blocks), user_id)
    return record


def start_session(store: Store, user_id: str, block_id: str, now: t.Optional[datetime] = None) -> Session:
    """Marks work on a planned block as started.

    :raises NotFound: If the user or block does not exist.
    """
    require_user(store, user_id)
    if store.find_block(user_id, block_id) is None:
        raise NotFound(f"Block not found: {block_id}")
    session = Session(
        id=_new_id(),
        user_id=user_id,
        block_id=block_id,
        start=format_timestamp(now or utcnow()),
        status="inprogress",
    )
    store.add_session(session)
    return session


def end_session(
        store: Store,
        user_id: str,
        session_id: str,
        focus_score: t.Optional[int] = None,
        now: t.Optional[datetime] = None,
) -> Session:
    """Completes a session, recording when it ended and how focused it was.

    :raises NotFound: If the user or session does not exist.
    """
    require_user(store, user_id)
    if store.get_session(user_id, session_id) is None:
        raise NotFound(f"Session not found: {session_id}")
    updated = store.update_session(
        session_id,
        end=format_timestamp(now or utcnow()),
        status="completed",
        focus_score=focus_score,
    )
    if updated is None:
        raise NotFound(f"Session not found: {session_id}")
    return updated


def analytics(store: Store, user_id: str) -> Analytics:
    """Counts planned blocks across all of the user's plans against completed sessions."""
    require_user(store, user_id)
    planned = sum(len(p.blocks) for p in store.load_plans(user_id))
    completed = sum(1 for s in store.load_sessions(user_id) if s.status == "completed")
    return Analytics(planned_blocks=planned, completed=completed, adherence=adherence(planned, completed))


def dashboard(store: Store, user_id: str) -> Dashboard:
    user = require_user(store, user_id)
    return Dashboard(
        user=user,
        tasks=store.load_tasks(user_id),
        events=store.load_events(user_id),
        plans=store.load_plans(user_id),
        sessions=store.load_sessions(user_id),
    )
