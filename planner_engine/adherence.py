"""Adherence readout over planned blocks and completed sessions."""
import math


def adherence(planned_block_count: int, completed_session_count: int) -> int:
    """Percentage of planned blocks that were worked, rounded half up.

    Returns ``0`` when nothing was planned.
    """
    if planned_block_count <= 0:
        return 0
    return int(math.floor(completed_session_count / planned_block_count * 100 + 0.5))
