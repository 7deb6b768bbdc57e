# -*- coding: utf-8 -*-
"""
Storage for users, tasks, calendar events, plans and sessions.

``Store`` names the capabilities the planner needs from storage. Two
implementations are provided: ``InMemoryStore`` keeps everything in lists for
the lifetime of the process, and ``JsonFileStore`` keeps one JSON document on
disk with the same five collections.
"""
from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
import typing as t

from .errors import StorageUnavailable
from .models import BlockRecord, CalendarEvent, PlanRecord, Session, TaskRecord, User
from .timestamps import parse_timestamp

logger = logging.getLogger(__name__)


class Store(t.Protocol):
    """Capability set the planner operations depend on."""

    def add_user(self, user: User) -> None: ...

    def get_user(self, user_id: str) -> t.Optional[User]: ...

    def list_users(self) -> list[User]: ...

    def add_task(self, task: TaskRecord) -> None: ...

    def load_tasks(self, user_id: str) -> list[TaskRecord]: ...

    def add_events(self, events: t.Iterable[CalendarEvent]) -> None: ...

    def load_events(self, user_id: str) -> list[CalendarEvent]: ...

    def save_plan(self, plan: PlanRecord) -> None: ...

    def load_plans(self, user_id: str) -> list[PlanRecord]: ...

    def find_block(self, user_id: str, block_id: str) -> t.Optional[BlockRecord]: ...

    def add_session(self, session: Session) -> None: ...

    def get_session(self, user_id: str, session_id: str) -> t.Optional[Session]: ...

    def update_session(self, session_id: str, **changes: t.Any) -> t.Optional[Session]: ...

    def load_sessions(self, user_id: str) -> list[Session]: ...


@dataclass
class Database:
    """The five collections, as held in memory or in the JSON document."""
    users: list[User] = field(default_factory=list)
    tasks: list[TaskRecord] = field(default_factory=list)
    events: list[CalendarEvent] = field(default_factory=list)
    plans: list[PlanRecord] = field(default_factory=list)
    sessions: list[Session] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, t.Any]) -> "Database":
        return cls(
            users=[User(**u) for u in data.get("users", [])],
            tasks=[TaskRecord(**task) for task in data.get("tasks", [])],
            events=[CalendarEvent(**e) for e in data.get("events", [])],
            plans=[
                PlanRecord(**{**p, "blocks": [BlockRecord(**b) for b in p.get("blocks", [])]})
                for p in data.get("plans", [])
            ],
            sessions=[Session(**s) for s in data.get("sessions", [])],
        )

    def to_dict(self) -> dict[str, t.Any]:
        return asdict(self)


class InMemoryStore:
    """Store backed by in-process lists."""

    def __init__(self) -> None:
        self._db = Database()
        self._lock = threading.RLock()

    # Subclasses swap these two to change where the collections live.
    def _read(self) -> Database:
        return self._db

    def _commit(self, db: Database) -> None:
        self._db = db

    def add_user(self, user: User) -> None:
        with self._lock:
            db = self._read()
            db.users.append(user)
            self._commit(db)

    def get_user(self, user_id: str) -> t.Optional[User]:
        return next((u for u in self._read().users if u.id == user_id), None)

    def list_users(self) -> list[User]:
        return list(self._read().users)

    def add_task(self, task: TaskRecord) -> None:
        with self._lock:
            db = self._read()
            db.tasks.append(task)
            self._commit(db)

    def load_tasks(self, user_id: str) -> list[TaskRecord]:
        return [task for task in self._read().tasks if task.user_id == user_id]

    def add_events(self, events: t.Iterable[CalendarEvent]) -> None:
        with self._lock:
            db = self._read()
            db.events.extend(events)
            self._commit(db)

    def load_events(self, user_id: str) -> list[CalendarEvent]:
        """Returns the user's events sorted ascending by start."""
        events = [e for e in self._read().events if e.user_id == user_id]
        return sorted(events, key=lambda e: parse_timestamp(e.start))

    def save_plan(self, plan: PlanRecord) -> None:
        with self._lock:
            db = self._read()
            db.plans.append(plan)
            self._commit(db)

    def load_plans(self, user_id: str) -> list[PlanRecord]:
        return [p for p in self._read().plans if p.user_id == user_id]

    def find_block(self, user_id: str, block_id: str) -> t.Optional[BlockRecord]:
        for plan in self.load_plans(user_id):
            for block in plan.blocks:
                if block.id == block_id:
                    return block
        return None

    def add_session(self, session: Session) -> None:
        with self._lock:
            db = self._read()
            db.sessions.append(session)
            self._commit(db)

    def get_session(self, user_id: str, session_id: str) -> t.Optional[Session]:
        return next(
            (s for s in self._read().sessions if s.id == session_id and s.user_id == user_id),
            None,
        )

    def update_session(self, session_id: str, **changes: t.Any) -> t.Optional[Session]:
        """Applies ``changes`` to the session with ``session_id`` and returns the updated record."""
        with self._lock:
            db = self._read()
            for idx, session in enumerate(db.sessions):
                if session.id == session_id:
                    updated = replace(session, **changes)
                    db.sessions[idx] = updated
                    self._commit(db)
                    return updated
        return None

    def load_sessions(self, user_id: str) -> list[Session]:
        return [s for s in self._read().sessions if s.user_id == user_id]


class JsonFileStore(InMemoryStore):
    """Store persisted as a single JSON document.

    The file is re-read on every access and rewritten after every change, so
    several processes may share it (last write wins).
    """

    def __init__(self, path: t.Union[str, os.PathLike]) -> None:
        super().__init__()
        self.path = Path(path)

    def _read(self) -> Database:
        if not self.path.exists():
            return Database()
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise StorageUnavailable(f"Error reading store {self.path}: expected a JSON object")
            return Database.from_dict(data)
        except (OSError, ValueError, TypeError, AttributeError) as e:
            raise StorageUnavailable(f"Error reading store {self.path}: {e}") from e

    def _commit(self, db: Database) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(db.to_dict(), f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as e:
            raise StorageUnavailable(f"Error writing store {self.path}: {e}") from e
        logger.debug("Wrote store %s", self.path)
