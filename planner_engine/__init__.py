# -*- coding: utf-8 -*-
from planner_engine.adherence import adherence
from planner_engine.allocator import allocate
from planner_engine.errors import InvalidInterval, InvalidParameter, PlannerError
from planner_engine.free_time import compute_free_intervals
from planner_engine.generator import generate_plan, order_by_deadline
from planner_engine.models import (BusyInterval, FreeInterval, Plan, PlanningConfig, Task, WorkBlock, overlaps,
                                   validate_interval)

__all__ = [
    "adherence",
    "allocate",
    "compute_free_intervals",
    "generate_plan",
    "order_by_deadline",
    "overlaps",
    "validate_interval",
    "BusyInterval",
    "FreeInterval",
    "Plan",
    "PlanningConfig",
    "Task",
    "WorkBlock",
    "InvalidInterval",
    "InvalidParameter",
    "PlannerError",
]
