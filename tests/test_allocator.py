"""Tests for the block allocator."""
from datetime import datetime, timedelta, timezone

import pytest

from planner_engine.allocator import allocate
from planner_engine.errors import InvalidParameter
from planner_engine.models import FreeInterval, WorkBlock

DAY0 = datetime(2025, 3, 3, tzinfo=timezone.utc)
BLOCK = timedelta(minutes=50)
BREAK = timedelta(minutes=10)


def at(hour: int, minute: int = 0) -> datetime:
    return DAY0 + timedelta(hours=hour, minutes=minute)


def free(start: datetime, end: datetime) -> FreeInterval:
    return FreeInterval(start=start, end=end)


def spans(blocks: list[WorkBlock]) -> list[tuple[datetime, datetime]]:
    return [(b.start, b.end) for b in blocks]


def test_block_that_would_run_into_busy_time_moves_to_next_interval() -> None:
    """Test that a second block is not squeezed into a gap that cannot hold it."""
    blocks = allocate(100, [free(at(9), at(10)), free(at(11), at(23))], BLOCK, BREAK)

    assert spans(blocks) == [(at(9), at(9, 50)), (at(11), at(11, 50))]
    assert sum(b.minutes for b in blocks) == 100


def test_remainder_smaller_than_a_block_gets_nothing() -> None:
    """Test that 30 minutes of work with 50-minute blocks yields no block."""
    assert allocate(30, [free(at(9), at(17))], BLOCK, BREAK) == []


def test_cover_remainder_rounds_up_to_a_full_block() -> None:
    """Test that cover_remainder gives a short remainder one full block."""
    blocks = allocate(30, [free(at(9), at(17))], BLOCK, BREAK, cover_remainder=True)

    assert spans(blocks) == [(at(9), at(9, 50))]


def test_trailing_remainder_is_dropped_by_default() -> None:
    """Test that 120 minutes gives two 50-minute blocks, and three with cover_remainder."""
    assert len(allocate(120, [free(at(9), at(17))], BLOCK, BREAK)) == 2
    assert len(allocate(120, [free(at(9), at(17))], BLOCK, BREAK, cover_remainder=True)) == 3


def test_interval_shorter_than_a_block_is_skipped() -> None:
    """Test that a 40-minute gap holds no 50-minute block."""
    blocks = allocate(50, [free(at(9), at(9, 40)), free(at(10), at(12))], BLOCK, BREAK)

    assert spans(blocks) == [(at(10), at(10, 50))]


def test_zero_length_interval_is_unusable_not_an_error() -> None:
    """Test that a degenerate interval is passed over."""
    blocks = allocate(50, [free(at(9), at(9)), free(at(10), at(11))], BLOCK, BREAK)

    assert spans(blocks) == [(at(10), at(10, 50))]


def test_blocks_are_spaced_by_the_break() -> None:
    """Test block integrity and monotonic spacing inside one long interval."""
    blocks = allocate(300, [free(at(9), at(17))], BLOCK, BREAK)

    assert [b.start for b in blocks] == [at(h) for h in range(9, 15)]
    for block in blocks:
        assert block.end - block.start == BLOCK
    for prev, nxt in zip(blocks, blocks[1:]):
        assert nxt.start >= prev.end + BREAK


def test_zero_break_packs_blocks_back_to_back() -> None:
    """Test that without a break each block starts where the previous ended."""
    blocks = allocate(150, [free(at(9), at(12))], BLOCK, timedelta(0))

    assert [b.start for b in blocks] == [at(9), at(9, 50), at(10, 40)]


def test_insufficient_free_time_under_schedules_silently() -> None:
    """Test that a task larger than the free time gets what fits and no error."""
    blocks = allocate(500, [free(at(9), at(12))], BLOCK, BREAK)

    assert [b.start for b in blocks] == [at(9), at(10), at(11)]
    assert sum(b.minutes for b in blocks) < 500


def test_zero_minutes_places_nothing() -> None:
    """Test that a finished task gets no blocks."""
    assert allocate(0, [free(at(9), at(17))], BLOCK, BREAK) == []


def test_blocks_carry_task_identity() -> None:
    """Test that every block is tagged with the task it was placed for."""
    blocks = allocate(100, [free(at(9), at(17))], BLOCK, BREAK, task_id="essay")

    assert {b.task_id for b in blocks} == {"essay"}


def test_custom_block_length() -> None:
    """Test that a 25-minute cadence is honoured."""
    blocks = allocate(50, [free(at(9), at(10))], timedelta(minutes=25), timedelta(minutes=5))

    assert spans(blocks) == [(at(9), at(9, 25)), (at(9, 30), at(9, 55))]


@pytest.mark.parametrize(
    "minutes, block_length, break_length",
    [
        (-1, BLOCK, BREAK),
        (50, timedelta(0), BREAK),
        (50, timedelta(minutes=-5), BREAK),
        (50, BLOCK, timedelta(minutes=-1)),
    ],
)
def test_invalid_parameters_are_rejected(minutes: int, block_length: timedelta, break_length: timedelta) -> None:
    """Test that out-of-range minutes, blocks and breaks raise InvalidParameter."""
    with pytest.raises(InvalidParameter):
        allocate(minutes, [free(at(9), at(17))], block_length, break_length)
