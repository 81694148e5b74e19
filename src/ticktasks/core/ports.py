# src/ticktasks/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The service and the scheduler depend on Protocols instead of concrete
implementations. This keeps storage swappable and makes testing easier.
"""

from collections.abc import AsyncIterator
from typing import Protocol

from ..tasks.task_models import Task


class TaskRepo(Protocol):
    def get_all(self) -> AsyncIterator[tuple[Task, ...]]: ...
    async def current(self) -> tuple[Task, ...]: ...
    async def insert(self, task: Task) -> int: ...
    async def update(self, task: Task) -> int: ...
    async def delete(self, task: Task) -> int: ...
    async def delete_checked_before(self, cutoff_ms: int) -> int: ...


class RetentionPreferences(Protocol):
    """Read side of the user preferences the retention logic needs."""

    @property
    def auto_delete_days(self) -> int: ...

    def reload(self) -> None: ...


class CleanupService(Protocol):
    async def cleanup(self, cutoff_ms: int) -> int: ...
