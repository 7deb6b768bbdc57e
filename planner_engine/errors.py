# -*- coding: utf-8 -*-
"""Errors raised by the planning engine."""


class PlannerError(ValueError):
    """Base class for planning engine errors."""


class InvalidParameter(PlannerError):
    """A planning parameter is out of range (negative minutes, empty block, ...)."""


class InvalidInterval(PlannerError):
    """An interval or window starts after it ends."""
