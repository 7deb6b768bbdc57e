"""Tests for the MCP wrapper of the planner service.

The wrapper's HTTP client is pointed at the FastAPI app through a TestClient,
so requests go through the real endpoints without a running server.
"""
import typing as t

import httpx
import pytest
from fastapi.testclient import TestClient

from mcp_wrappers.planner import mcp_service
from services.planner_service import app as app_module
from study_server.models import BlockRecord, CalendarEvent, Dashboard, PlanRecord, Session, User


class BorrowedClient:
    """Context manager handing out an already-open client without closing it."""

    def __init__(self, client: TestClient) -> None:
        self.client = client

    def __enter__(self) -> TestClient:
        return self.client

    def __exit__(self, *exc_info: t.Any) -> None:
        pass


@pytest.fixture
def service(monkeypatch) -> t.Iterator[TestClient]:
    monkeypatch.setattr(app_module, "STUDY_PLANNER_DB", None)
    with TestClient(app_module.app) as client:
        monkeypatch.setattr(mcp_service, "_client", lambda: BorrowedClient(client))
        yield client


def test_round_trip_through_service(service: TestClient) -> None:
    """Test that the wrapper returns dataclass records built from the service's JSON."""
    user = mcp_service._register_user("Ada")
    assert isinstance(user, User)

    mcp_service._add_task(user.id, "Essay", 100, "2099-01-01T00:00:00Z", subject="English")
    plan = mcp_service._generate_plan(user.id, horizon_days=7)

    assert isinstance(plan, PlanRecord)
    assert len(plan.blocks) == 2
    assert plan.blocks[0].subject == "English"

    session = mcp_service._start_session(user.id, plan.blocks[0].id)
    assert isinstance(session, Session)
    mcp_service._end_session(user.id, session.id, focus_score=5)

    report = mcp_service._get_analytics(user.id)
    assert (report.planned_blocks, report.completed, report.adherence) == (2, 1, 50)
    assert "STUDY PLAN" in mcp_service._show_plan(user.id)


def test_service_errors_become_runtime_errors(service: TestClient) -> None:
    with pytest.raises(RuntimeError, match="404"):
        mcp_service._get_analytics("ghost")


def test_timeout_is_reported(monkeypatch) -> None:
    class TimingOutClient:
        def __enter__(self):
            return self

        def __exit__(self, *exc_info: t.Any) -> None:
            pass

        def request(self, method: str, path: str, **kwargs: t.Any) -> httpx.Response:
            raise httpx.ReadTimeout("too slow")

    monkeypatch.setattr(mcp_service, "_client", TimingOutClient)

    with pytest.raises(RuntimeError, match="timed out"):
        mcp_service._show_plan("u1")


def test_users_events_and_dashboard(service: TestClient) -> None:
    """Test the listing, single-event and dashboard tools."""
    user = mcp_service._register_user("Ada")

    event = mcp_service._add_calendar_event(user.id, "Lecture", "2099-01-01T10:00:00Z", "2099-01-01T11:00:00Z")
    assert isinstance(event, CalendarEvent)
    assert [u.id for u in mcp_service._list_users()] == [user.id]

    mcp_service._add_task(user.id, "Essay", 50, "2099-01-02T00:00:00Z")
    mcp_service._generate_plan(user.id)
    board = mcp_service._get_dashboard(user.id)

    assert isinstance(board, Dashboard)
    assert board.user.id == user.id
    assert [e.title for e in board.events] == ["Lecture"]
    assert isinstance(board.plans[0], PlanRecord)
    assert isinstance(board.plans[0].blocks[0], BlockRecord)


def test_cover_remainder_reaches_the_service(service: TestClient) -> None:
    """Test that a task shorter than one block is planned only with cover_remainder."""
    user = mcp_service._register_user("Ada")
    mcp_service._add_task(user.id, "Quiz prep", 30, "2099-01-01T00:00:00Z")

    assert mcp_service._generate_plan(user.id).blocks == []
    assert len(mcp_service._generate_plan(user.id, cover_remainder=True).blocks) == 1


@pytest.mark.parametrize(
    "call",
    [
        lambda: mcp_service._generate_plan("u1", block_minutes=0),
        lambda: mcp_service._add_task("u1", "Essay", -5, "2099-01-01T00:00:00Z"),
        lambda: mcp_service._add_task("u1", "Essay", 50, "not a date"),
    ],
)
def test_invalid_arguments_become_runtime_errors(service: TestClient, call: t.Callable[[], t.Any]) -> None:
    """Test that arguments rejected before sending are reported like service errors."""
    with pytest.raises(RuntimeError, match="validation error"):
        call()
