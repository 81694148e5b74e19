# src/ticktasks/tasks/schedule_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import time
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

logger = logging.getLogger(__name__)


class RunStatus(StrEnum):
    NEVER = "never"
    SUCCESS = "success"
    FAILED = "failed"

    @classmethod
    def from_db(cls, raw: str | None) -> RunStatus:
        if not raw:
            return cls.NEVER
        try:
            return cls(raw)
        except ValueError:
            return cls.NEVER


@dataclass(frozen=True, slots=True)
class PeriodicSchedule:
    name: str
    interval_seconds: float
    next_run_at: float
    last_run_at: float | None
    last_status: RunStatus
    generation: int

    def is_due(self, now_ts: float) -> bool:
        return self.next_run_at <= now_ts


class ScheduleStore:
    """
    Named periodic schedules persisted in SQLite, so a cadence survives restarts.

    One row per name: replace() overwrites the row and bumps its generation,
    which is what keeps at most one active schedule per name.

    Each method opens its own SQLite connection; callers on the event loop
    should go through asyncio.to_thread().
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS schedules (
                    name TEXT PRIMARY KEY,
                    interval_seconds REAL NOT NULL,
                    next_run_at REAL NOT NULL,
                    last_run_at REAL,
                    last_status TEXT NOT NULL DEFAULT 'never',
                    generation INTEGER NOT NULL DEFAULT 1
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_schedule(row: sqlite3.Row) -> PeriodicSchedule:
        return PeriodicSchedule(
            name=str(row["name"]),
            interval_seconds=float(row["interval_seconds"]),
            next_run_at=float(row["next_run_at"]),
            last_run_at=float(row["last_run_at"]) if row["last_run_at"] is not None else None,
            last_status=RunStatus.from_db(row["last_status"]),
            generation=int(row["generation"] or 1),
        )

    def replace(
        self,
        name: str,
        *,
        interval_seconds: float,
        first_run_at: float | None = None,
    ) -> PeriodicSchedule:
        """Create the schedule, or overwrite an existing one with the same name."""
        if first_run_at is None:
            first_run_at = time.time()

        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO schedules(name, interval_seconds, next_run_at, last_status, generation)
                VALUES (?, ?, ?, 'never', 1)
                ON CONFLICT(name) DO UPDATE SET
                    interval_seconds = excluded.interval_seconds,
                    next_run_at = excluded.next_run_at,
                    generation = schedules.generation + 1
                """,
                (name, float(interval_seconds), float(first_run_at)),
            )
            conn.commit()
            row = conn.execute("SELECT * FROM schedules WHERE name = ?", (name,)).fetchone()
        finally:
            conn.close()

        sched = self._row_to_schedule(row)
        logger.info(
            "Schedule %s set interval=%ss next_run_at=%.0f generation=%s",
            name,
            sched.interval_seconds,
            sched.next_run_at,
            sched.generation,
        )
        return sched

    def get(self, name: str) -> PeriodicSchedule | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM schedules WHERE name = ?", (name,)).fetchone()
            return self._row_to_schedule(row) if row else None
        finally:
            conn.close()

    def list_all(self) -> list[PeriodicSchedule]:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM schedules ORDER BY name").fetchall()
            return [self._row_to_schedule(r) for r in rows]
        finally:
            conn.close()

    def remove(self, name: str) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM schedules WHERE name = ?", (name,))
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def record_run(
        self,
        name: str,
        *,
        generation: int,
        started_at: float,
        status: RunStatus,
    ) -> bool:
        """
        Store the outcome and push next_run_at one interval past started_at.

        Only applies if the row still has the given generation: a schedule that
        was replaced while the run was in flight keeps its own timing.
        """
        conn = self._get_conn()
        try:
            cur = conn.execute(
                """
                UPDATE schedules
                SET last_run_at = ?,
                    last_status = ?,
                    next_run_at = ? + interval_seconds
                WHERE name = ?
                  AND generation = ?
                """,
                (float(started_at), status.value, float(started_at), name, int(generation)),
            )
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()
