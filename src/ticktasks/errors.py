# src/ticktasks/errors.py

"""Error taxonomy shared by the store, the service and the scheduler."""

from __future__ import annotations


class TickTasksError(Exception):
    """Base class for all ticktasks errors."""


class InvalidInput(TickTasksError, ValueError):
    """Rejected user input (blank title, negative day count, ...). Never reaches the store."""


class StorageError(TickTasksError):
    """The local database could not be read or written."""


class SchedulerRunFailure(TickTasksError):
    """
    A scheduled cleanup run failed.

    Attached to the run result and logged; never raised out of the scheduler.
    """

    def __init__(self, schedule_name: str, cause: BaseException) -> None:
        super().__init__(f"scheduled run {schedule_name!r} failed: {cause}")
        self.schedule_name = schedule_name
        self.cause = cause
