# src/ticktasks/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..preferences import Preferences
from ..tasks.task_models import Task
from ..tasks.task_scheduler import RetentionScheduler
from ..tasks.task_service import TaskService
from ..tasks.task_store import TaskStore

if TYPE_CHECKING:
    from concurrent.futures import Future

    from ..cli.runtime import BackgroundLoop


@dataclass
class AppState:
    settings: Any

    preferences: Preferences
    store: TaskStore
    service: TaskService
    scheduler: RetentionScheduler
    runtime: BackgroundLoop

    # Console session state (what the mobile UI kept in the activity).
    selection: set[int] = field(default_factory=set)
    last_deleted: list[Task] = field(default_factory=list)
    watch_future: Future | None = None
    scheduler_future: Future | None = None
