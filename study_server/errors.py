# -*- coding: utf-8 -*-
"""Errors raised by the study planner outside the planning engine."""


class NotFound(LookupError):
    """A user, block or session does not exist (or belongs to someone else)."""


class StorageUnavailable(RuntimeError):
    """The backing store could not be read or written."""
