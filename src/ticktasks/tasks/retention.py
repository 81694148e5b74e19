# src/ticktasks/tasks/retention.py

"""Retention arithmetic. All timestamps are epoch milliseconds, the time base of Task.checked_at."""

from __future__ import annotations

import time

from ..errors import InvalidInput

DAY_MS = 24 * 60 * 60 * 1000


def now_ms() -> int:
    return int(time.time() * 1000)


def cutoff_for_days(days: int, now: int | None = None) -> int:
    """
    Checked tasks with checked_at <= the returned value are due for deletion.

    days == 0 means "everything checked up to now".
    """
    if days < 0:
        raise InvalidInput("retention days must be >= 0")
    if now is None:
        now = now_ms()
    return int(now) - int(days) * DAY_MS
