# src/ticktasks/tasks/task_store.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import sqlite3
from collections.abc import AsyncIterator, Callable
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TypeVar

from ..errors import StorageError
from .task_feed import Snapshot, TaskFeed
from .task_models import Task

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TaskStore:
    """
    SQLite task store.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Threading:
    - every public method is a coroutine; SQLite work runs on a single worker
      thread owned by the store, so writes are serialized and never block the loop
    - each unit of work opens its own SQLite connection

    After every mutation the full list is re-read and pushed to the feed before
    the coroutine returns, so a caller that awaited a write already sees it in
    every subscriber. If that re-read fails the write still stands: the error is
    logged, the write returns normally and subscribers keep the previous list
    until the next successful write.
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ticktasks-db")
        self._feed = TaskFeed()
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._ensure_schema()
            total = self._count_sync()
        except (sqlite3.Error, OSError) as e:
            self._executor.shutdown(wait=False)
            raise StorageError(f"cannot open task database {self._db_path}") from e
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    @property
    def db_path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    checked INTEGER NOT NULL DEFAULT 0,
                    checked_at INTEGER
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("description", "TEXT NOT NULL DEFAULT ''")
            add_col("checked", "INTEGER NOT NULL DEFAULT 0")
            add_col("checked_at", "INTEGER")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_checked_at ON tasks(checked, checked_at)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        checked = bool(row["checked"])
        return Task(
            id=int(row["id"]),
            title=str(row["title"] or ""),
            description=str(row["description"] or ""),
            checked=checked,
            checked_at=int(row["checked_at"]) if row["checked_at"] is not None else None,
        )

    async def _run(self, fn: Callable[..., T], *args: object) -> T:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(self._executor, fn, *args)
        except (sqlite3.Error, OSError) as e:
            logger.error("TaskStore %s failed: %s", getattr(fn, "__name__", fn), e)
            raise StorageError(f"task database error: {e}") from e

    async def _publish(self) -> Snapshot:
        snapshot = await self._run(self._list_sync)
        self._feed.publish(snapshot)
        return snapshot

    async def _publish_after_write(self) -> None:
        # The write is already committed; a failed re-read must not report it as failed.
        try:
            await self._publish()
        except StorageError:
            logger.exception("TaskStore committed a write but could not refresh the list")

    # ---- sync units of work (run on the worker thread) ----

    def _count_sync(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)
        finally:
            conn.close()

    def _list_sync(self) -> Snapshot:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM tasks ORDER BY id DESC").fetchall()
            return tuple(self._row_to_task(r) for r in rows)
        finally:
            conn.close()

    def _get_sync(self, task_id: int) -> Task | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (int(task_id),)).fetchone()
            return self._row_to_task(row) if row else None
        finally:
            conn.close()

    def _insert_sync(self, task: Task) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "INSERT INTO tasks(title, description, checked, checked_at) VALUES (?, ?, ?, ?)",
                (task.title, task.description, int(task.checked), task.checked_at),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise sqlite3.OperationalError("SQLite did not return lastrowid for tasks insert")
            return int(rowid)
        finally:
            conn.close()

    def _update_sync(self, task: Task) -> int:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                UPDATE tasks
                SET title = ?, description = ?, checked = ?, checked_at = ?
                WHERE id = ?
                """,
                (task.title, task.description, int(task.checked), task.checked_at, int(task.id)),
            )
            conn.commit()
            return int(cur.rowcount)
        finally:
            conn.close()

    def _delete_sync(self, task_id: int) -> int:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM tasks WHERE id = ?", (int(task_id),))
            conn.commit()
            return int(cur.rowcount)
        finally:
            conn.close()

    def _delete_checked_before_sync(self, cutoff_ms: int) -> int:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                DELETE FROM tasks
                WHERE checked = 1
                  AND checked_at IS NOT NULL
                  AND checked_at <= ?
                """,
                (int(cutoff_ms),),
            )
            conn.commit()
            return int(cur.rowcount)
        finally:
            conn.close()

    # ---- public API ----

    async def get_all(self) -> AsyncIterator[Snapshot]:
        """
        Live view of all tasks, newest first.

        Yields the current list right away and again after every change.
        Each call is an independent subscription; stop iterating (or close the
        generator) to unsubscribe.
        """
        if self._feed.latest is None:
            await self._publish()
        async for snapshot in self._feed.subscribe():
            yield snapshot

    async def current(self) -> Snapshot:
        latest = self._feed.latest
        if latest is None:
            latest = await self._publish()
        return latest

    async def get(self, task_id: int) -> Task | None:
        return await self._run(self._get_sync, int(task_id))

    async def count(self) -> int:
        return await self._run(self._count_sync)

    async def insert(self, task: Task) -> int:
        """Insert the task's fields as a new row; its own id is ignored."""
        task_id = await self._run(self._insert_sync, task)
        logger.debug("Task inserted id=%s checked=%s", task_id, task.checked)
        await self._publish_after_write()
        return task_id

    async def update(self, task: Task) -> int:
        n = await self._run(self._update_sync, task)
        if n:
            logger.debug("Task updated id=%s checked=%s", task.id, task.checked)
            await self._publish_after_write()
        return n

    async def delete(self, task: Task) -> int:
        n = await self._run(self._delete_sync, task.id)
        if n:
            logger.debug("Task deleted id=%s", task.id)
            await self._publish_after_write()
        return n

    async def delete_checked_before(self, cutoff_ms: int) -> int:
        """Remove every checked task whose checked_at is at or before cutoff_ms."""
        n = await self._run(self._delete_checked_before_sync, int(cutoff_ms))
        logger.info("Retention delete cutoff=%s removed=%s", cutoff_ms, n)
        if n:
            await self._publish_after_write()
        return n
