# src/ticktasks/tasks/task_service.py

"""
Business rules between callers and the TaskStore.

This is the only place that sets or clears checked_at and the only place
that decides what "restore" means.

Restore is re-insertion: the deleted task's field values come back as a new
row with a new id. Reviving the original id would need a tombstone column in
the table; callers must not rely on identity across delete + undo.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable, Iterable
from dataclasses import replace

from ..core.ports import RetentionPreferences, TaskRepo
from ..errors import InvalidInput
from .retention import cutoff_for_days, now_ms
from .task_models import Task

logger = logging.getLogger(__name__)


class TaskService:
    def __init__(
        self,
        store: TaskRepo,
        preferences: RetentionPreferences,
        *,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._store = store
        self._preferences = preferences
        self._clock = clock

    # ---- reads ----

    def tasks(self) -> AsyncIterator[tuple[Task, ...]]:
        return self._store.get_all()

    async def snapshot(self) -> tuple[Task, ...]:
        return await self._store.current()

    async def find(self, task_id: int) -> Task | None:
        for task in await self._store.current():
            if task.id == task_id:
                return task
        return None

    # ---- writes ----

    async def add(self, title: str, description: str = "") -> Task:
        title = (title or "").strip()
        description = (description or "").strip()
        if not title:
            raise InvalidInput("title cannot be empty")

        task = Task(title=title, description=description)
        task_id = await self._store.insert(task)
        logger.info("Task added id=%s", task_id)
        return replace(task, id=task_id)

    async def delete(self, task: Task) -> Task | None:
        """Delete by id. Returns the removed task (for undo) or None if it was already gone."""
        n = await self._store.delete(task)
        if not n:
            logger.debug("Delete skipped, task id=%s not found", task.id)
            return None
        logger.info("Task deleted id=%s", task.id)
        return task

    async def restore(self, task: Task) -> Task:
        """Re-insert a deleted task as a new entity (new id, same fields)."""
        fresh = task.as_new()
        task_id = await self._store.insert(fresh)
        logger.info("Task restored old_id=%s new_id=%s", task.id, task_id)
        return replace(fresh, id=task_id)

    async def restore_all(self, tasks: Iterable[Task]) -> list[Task]:
        return [await self.restore(t) for t in tasks]

    async def check(self, task: Task, is_checked: bool) -> Task:
        if task.checked == is_checked:
            return task

        updated = replace(
            task,
            checked=is_checked,
            checked_at=self._clock() if is_checked else None,
        )
        n = await self._store.update(updated)
        if not n:
            logger.debug("Check skipped, task id=%s not found", task.id)
            return task
        logger.info("Task %s id=%s", "checked" if is_checked else "unchecked", task.id)
        return updated

    async def bulk_delete(self, ids: Iterable[int]) -> list[Task]:
        """
        Delete every id found in the current list, one row at a time.

        Unknown ids are skipped. The returned tasks can be passed to restore_all()
        as a single combined undo.
        """
        current = {t.id: t for t in await self._store.current()}
        removed: list[Task] = []
        for task_id in ids:
            task = current.pop(task_id, None)
            if task is None:
                continue
            if await self.delete(task) is not None:
                removed.append(task)
        logger.info("Bulk delete removed=%d", len(removed))
        return removed

    # ---- retention ----

    async def cleanup(self, cutoff_ms: int) -> int:
        return await self._store.delete_checked_before(cutoff_ms)

    async def cleanup_expired(self, now: int | None = None) -> int:
        """Apply the configured retention immediately."""
        await asyncio.to_thread(self._preferences.reload)
        days = self._preferences.auto_delete_days
        cutoff = cutoff_for_days(days, self._clock() if now is None else now)
        removed = await self.cleanup(cutoff)
        logger.info("Cleanup days=%s cutoff=%s removed=%s", days, cutoff, removed)
        return removed
