# tests/test_task_store.py

from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path

import pytest

from ticktasks.errors import StorageError
from ticktasks.tasks.task_models import Task
from ticktasks.tasks.task_store import TaskStore


@pytest.mark.asyncio
async def test_insert_assigns_ids_and_lists_newest_first(store: TaskStore) -> None:
    a = await store.insert(Task(title="a"))
    b = await store.insert(Task(title="b", description="second"))
    assert b > a > 0

    tasks = await store.current()
    assert [t.id for t in tasks] == [b, a]
    assert tasks[0].description == "second"
    assert tasks[1].checked is False
    assert tasks[1].checked_at is None


@pytest.mark.asyncio
async def test_insert_ignores_task_id_and_never_reuses_ids(store: TaskStore) -> None:
    first = await store.insert(Task(title="a"))
    await store.delete(Task(title="a", id=first))

    second = await store.insert(Task(title="a", id=first))
    assert second != first
    assert second > first


@pytest.mark.asyncio
async def test_update_and_delete_report_affected_rows(store: TaskStore) -> None:
    task_id = await store.insert(Task(title="a"))
    task = Task(title="a", checked=True, checked_at=123, id=task_id)

    assert await store.update(task) == 1
    stored = await store.get(task_id)
    assert stored is not None
    assert stored.checked is True
    assert stored.checked_at == 123

    assert await store.delete(task) == 1
    assert await store.delete(task) == 0
    assert await store.update(task) == 0
    assert await store.count() == 0


@pytest.mark.asyncio
async def test_delete_checked_before_only_touches_expired_checked(store: TaskStore) -> None:
    a = await store.insert(Task(title="A", checked=True, checked_at=100))
    b = await store.insert(Task(title="B", checked=True, checked_at=200))
    c = await store.insert(Task(title="C"))

    assert await store.delete_checked_before(150) == 1
    remaining = {t.id for t in await store.current()}
    assert remaining == {b, c}
    assert a not in remaining

    # Re-running on an already clean set is a no-op.
    assert await store.delete_checked_before(150) == 0


@pytest.mark.asyncio
async def test_delete_checked_before_includes_the_cutoff_itself(store: TaskStore) -> None:
    await store.insert(Task(title="edge", checked=True, checked_at=500))
    await store.insert(Task(title="open"))

    assert await store.delete_checked_before(500) == 1
    assert [t.title for t in await store.current()] == ["open"]


@pytest.mark.asyncio
async def test_get_all_delivers_current_snapshot_then_changes(store: TaskStore) -> None:
    stream = store.get_all()
    try:
        assert await anext(stream) == ()

        task_id = await store.insert(Task(title="milk"))
        # The write has already been pushed when insert() returns.
        snapshot = await asyncio.wait_for(anext(stream), timeout=1.0)
        assert [t.id for t in snapshot] == [task_id]
    finally:
        await stream.aclose()


@pytest.mark.asyncio
async def test_get_all_slow_reader_gets_latest_only(store: TaskStore) -> None:
    stream = store.get_all()
    try:
        await anext(stream)
        await store.insert(Task(title="a"))
        await store.insert(Task(title="b"))

        snapshot = await asyncio.wait_for(anext(stream), timeout=1.0)
        assert [t.title for t in snapshot] == ["b", "a"]
    finally:
        await stream.aclose()


@pytest.mark.asyncio
async def test_late_subscriber_gets_current_list_immediately(store: TaskStore) -> None:
    await store.insert(Task(title="a"))

    stream = store.get_all()
    try:
        snapshot = await asyncio.wait_for(anext(stream), timeout=1.0)
        assert [t.title for t in snapshot] == ["a"]
    finally:
        await stream.aclose()


def test_schema_migration_adds_missing_columns(tmp_path: Path) -> None:
    db = tmp_path / "old.sqlite3"
    conn = sqlite3.connect(db)
    conn.execute("CREATE TABLE tasks (id INTEGER PRIMARY KEY AUTOINCREMENT, title TEXT NOT NULL)")
    conn.execute("INSERT INTO tasks(title) VALUES ('legacy')")
    conn.commit()
    conn.close()

    store = TaskStore(db)
    try:
        tasks = asyncio.run(store.current())
    finally:
        store.close()

    assert len(tasks) == 1
    assert tasks[0].title == "legacy"
    assert tasks[0].description == ""
    assert tasks[0].checked is False
    assert tasks[0].checked_at is None


def test_unavailable_medium_raises_storage_error(tmp_path: Path) -> None:
    # A directory cannot be opened as a database file.
    with pytest.raises(StorageError):
        TaskStore(tmp_path)


@pytest.mark.asyncio
async def test_write_stands_when_list_refresh_fails(store: TaskStore, monkeypatch: pytest.MonkeyPatch) -> None:
    await store.insert(Task(title="a"))
    before = await store.current()

    def broken_list() -> tuple[Task, ...]:
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(store, "_list_sync", broken_list)

    task_id = await store.insert(Task(title="b"))

    assert task_id > 0
    assert await store.count() == 2
    stored = await store.get(task_id)
    assert stored is not None and stored.title == "b"
    # Subscribers keep the last good list until a refresh succeeds.
    assert await store.current() == before

    monkeypatch.undo()
    await store.insert(Task(title="c"))
    assert [t.title for t in await store.current()] == ["c", "b", "a"]
