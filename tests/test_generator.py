"""Tests for plan generation.

Covers deadline ordering, horizon capping, the overlap behaviour between
tasks (and the collision-avoiding alternative), idempotence and validation.
"""
from datetime import datetime, timedelta, timezone

import pytest

from planner_engine.errors import InvalidInterval, InvalidParameter
from planner_engine.generator import generate_plan, order_by_deadline
from planner_engine.models import BusyInterval, PlanningConfig, Task, overlaps

DAY0 = datetime(2025, 3, 3, tzinfo=timezone.utc)


def at(hour: int, minute: int = 0, day: int = 0) -> datetime:
    return DAY0 + timedelta(days=day, hours=hour, minutes=minute)


def test_single_task_around_one_event() -> None:
    """Test the worked example: one event, one 100-minute task."""
    now = at(9)
    task = Task(id="t1", estimated_minutes=100, deadline=at(23))

    plan = generate_plan([task], [BusyInterval(at(10), at(11))], now, horizon_days=1)

    assert [(b.start, b.end) for b in plan.blocks] == [(at(9), at(9, 50)), (at(11), at(11, 50))]
    assert plan.scheduled_minutes("t1") == 100
    assert plan.created_at == now
    assert plan.horizon == now + timedelta(days=1)


def test_tasks_may_share_wall_clock_time_by_default() -> None:
    """Test that a later task is planned without seeing earlier tasks' blocks."""
    tasks = [
        Task(id="a", estimated_minutes=50, deadline=at(12)),
        Task(id="b", estimated_minutes=50, deadline=at(13)),
    ]

    plan = generate_plan(tasks, [], at(9), horizon_days=1)

    (block_a,) = plan.blocks_for("a")
    (block_b,) = plan.blocks_for("b")
    assert block_a.start == block_b.start == at(9)
    assert overlaps(block_a, block_b)


def test_avoid_collisions_keeps_tasks_apart() -> None:
    """Test that folding placed blocks into the busy set removes the overlap."""
    tasks = [
        Task(id="a", estimated_minutes=50, deadline=at(12)),
        Task(id="b", estimated_minutes=50, deadline=at(13)),
    ]
    config = PlanningConfig(avoid_collisions=True)

    plan = generate_plan(tasks, [], at(9), horizon_days=1, config=config)

    (block_a,) = plan.blocks_for("a")
    (block_b,) = plan.blocks_for("b")
    assert (block_a.start, block_b.start) == (at(9), at(9, 50))
    assert not overlaps(block_a, block_b)


def test_avoid_collisions_respects_calendar_and_many_tasks() -> None:
    """Test that no two blocks overlap when collisions are avoided, with events in the way."""
    tasks = [Task(id=f"t{i}", estimated_minutes=150, deadline=at(20)) for i in range(3)]
    events = [BusyInterval(at(10), at(11)), BusyInterval(at(13), at(14))]

    plan = generate_plan(tasks, events, at(8), horizon_days=1, config=PlanningConfig(avoid_collisions=True))

    for i, a in enumerate(plan.blocks):
        for b in plan.blocks[i + 1:]:
            assert not overlaps(a, b)
        assert not any(overlaps(a, e) for e in events)


def test_earliest_deadline_is_planned_first() -> None:
    """Test that blocks appear in earliest-deadline-first task order."""
    tasks = [
        Task(id="late", estimated_minutes=50, deadline=at(18)),
        Task(id="early", estimated_minutes=50, deadline=at(12)),
    ]

    plan = generate_plan(tasks, [], at(9), horizon_days=1)

    assert [b.task_id for b in plan.blocks] == ["early", "late"]


def test_equal_deadlines_keep_input_order() -> None:
    """Test that ties are broken by input order."""
    tasks = [Task(id=name, estimated_minutes=10, deadline=at(12)) for name in ["x", "y", "z"]]

    assert [task.id for task in order_by_deadline(tasks)] == ["x", "y", "z"]


def test_blocks_end_by_the_task_deadline() -> None:
    """Test that a task's window closes at its own deadline."""
    task = Task(id="t", estimated_minutes=200, deadline=at(10, 30))

    plan = generate_plan([task], [], at(9), horizon_days=1)

    assert [(b.start, b.end) for b in plan.blocks] == [(at(9), at(9, 50))]


def test_deadline_window_is_independent_of_other_tasks() -> None:
    """Test that an earlier task never uses time past min(deadline, horizon)."""
    d1 = at(11)
    tasks = [
        Task(id="first", estimated_minutes=500, deadline=d1),
        Task(id="second", estimated_minutes=500, deadline=at(20)),
    ]

    plan = generate_plan(tasks, [], at(9), horizon_days=1)

    assert all(b.end <= d1 for b in plan.blocks_for("first"))
    assert plan.blocks_for("first") == generate_plan(tasks[:1], [], at(9), horizon_days=1).blocks_for("first")


def test_horizon_caps_far_deadlines() -> None:
    """Test that nothing is scheduled past now + horizon_days."""
    now = at(9)
    task = Task(id="t", estimated_minutes=10_000, deadline=at(9, day=10))

    plan = generate_plan([task], [], now, horizon_days=1)

    assert len(plan.blocks) == 24
    assert max(b.end for b in plan.blocks) <= now + timedelta(days=1)


def test_horizon_days_argument_overrides_config() -> None:
    """Test that an explicit horizon_days wins over the config value."""
    plan = generate_plan([], [], at(9), horizon_days=2, config=PlanningConfig(horizon_days=5))

    assert plan.horizon == at(9, day=2)


def test_default_horizon_is_a_week() -> None:
    """Test that the config default applies when no horizon is given."""
    assert generate_plan([], [], at(9)).horizon == at(9, day=7)


def test_overdue_task_gets_no_blocks() -> None:
    """Test that a task due before now is left out without an error."""
    tasks = [
        Task(id="overdue", estimated_minutes=50, deadline=at(8)),
        Task(id="due", estimated_minutes=50, deadline=at(12)),
    ]

    plan = generate_plan(tasks, [BusyInterval(at(13), at(14))], at(9), horizon_days=1)

    assert plan.blocks_for("overdue") == []
    assert len(plan.blocks_for("due")) == 1


def test_empty_inputs() -> None:
    """Test that no tasks gives an empty plan and no events leaves all time free."""
    assert generate_plan([], [BusyInterval(at(10), at(11))], at(9), horizon_days=1).blocks == ()

    plan = generate_plan([Task(id="t", estimated_minutes=50, deadline=at(12))], [], at(9), horizon_days=1)
    assert plan.blocks[0].start == at(9)


def test_generation_is_deterministic() -> None:
    """Test that identical inputs and now give identical plans."""
    tasks = [
        Task(id="a", estimated_minutes=120, deadline=at(15)),
        Task(id="b", estimated_minutes=200, deadline=at(12, day=1)),
    ]
    events = [BusyInterval(at(10), at(11)), BusyInterval(at(12), at(14))]

    first = generate_plan(tasks, events, at(8), horizon_days=3)
    second = generate_plan(tasks, events, at(8), horizon_days=3)

    assert first == second


def test_short_task_stays_unscheduled() -> None:
    """Test that a task smaller than one block gets no partial block."""
    plan = generate_plan([Task(id="t", estimated_minutes=30, deadline=at(17))], [], at(9), horizon_days=1)

    assert plan.blocks == ()
    assert plan.scheduled_minutes("t") == 0


def test_cover_remainder_config_reaches_allocator() -> None:
    """Test that cover_remainder gives the short task its block."""
    config = PlanningConfig(cover_remainder=True)

    plan = generate_plan([Task(id="t", estimated_minutes=30, deadline=at(17))], [], at(9), 1, config)

    assert len(plan.blocks) == 1


def test_negative_estimate_is_rejected() -> None:
    with pytest.raises(InvalidParameter):
        generate_plan([Task(id="t", estimated_minutes=-5, deadline=at(17))], [], at(9), horizon_days=1)


def test_negative_horizon_is_rejected() -> None:
    with pytest.raises(InvalidParameter):
        generate_plan([], [], at(9), horizon_days=-1)


def test_invalid_block_length_is_rejected() -> None:
    with pytest.raises(InvalidParameter):
        generate_plan([], [], at(9), config=PlanningConfig(block_length=timedelta(0)))


def test_malformed_event_is_rejected() -> None:
    """Test that a busy interval ending before it starts raises even with no tasks."""
    with pytest.raises(InvalidInterval):
        generate_plan([], [BusyInterval(at(11), at(10))], at(9), horizon_days=1)
