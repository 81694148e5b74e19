# src/ticktasks/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, replace

UNSAVED_ID = 0


@dataclass(frozen=True, slots=True)
class Task:
    """
    A single to-do item.

    checked_at is epoch milliseconds and is present exactly when checked is True.
    id == 0 means the task has not been written to the store yet.
    """

    title: str
    description: str = ""
    checked: bool = False
    checked_at: int | None = None
    id: int = UNSAVED_ID

    @property
    def is_persisted(self) -> bool:
        return self.id > UNSAVED_ID

    def as_new(self) -> Task:
        """Same field values, no identity: inserting it yields a fresh id."""
        return replace(self, id=UNSAVED_ID)
