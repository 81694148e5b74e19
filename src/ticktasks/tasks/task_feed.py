# src/ticktasks/tasks/task_feed.py

"""
Push stream of task list snapshots.

Every subscriber owns a one-slot queue. Publishing replaces whatever is still
waiting in the slot, so a slow reader always wakes up to the newest snapshot
and never has to replay intermediate ones. A subscriber that joins late gets
the current snapshot immediately.

All methods must be called from the event loop thread that owns the store.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator

from .task_models import Task

logger = logging.getLogger(__name__)

Snapshot = tuple[Task, ...]


class TaskFeed:
    def __init__(self) -> None:
        self._latest: Snapshot | None = None
        self._subscribers: set[asyncio.Queue[Snapshot]] = set()

    @property
    def latest(self) -> Snapshot | None:
        return self._latest

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, snapshot: Snapshot) -> None:
        self._latest = snapshot
        for q in self._subscribers:
            if q.full():
                q.get_nowait()
            q.put_nowait(snapshot)
        logger.debug("Feed published %d tasks to %d subscribers", len(snapshot), len(self._subscribers))

    async def subscribe(self) -> AsyncIterator[Snapshot]:
        """Yield the current snapshot (if any) and then every newer one. Never ends on its own."""
        q: asyncio.Queue[Snapshot] = asyncio.Queue(maxsize=1)
        if self._latest is not None:
            q.put_nowait(self._latest)
        self._subscribers.add(q)
        try:
            while True:
                yield await q.get()
        finally:
            self._subscribers.discard(q)
