# src/ticktasks/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from datetime import datetime
from typing import cast

from ..core.state import AppState
from ..errors import InvalidInput, StorageError, TickTasksError
from ..preferences import Theme
from ..tasks.task_models import Task
from .bootstrap import reschedule_retention

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/add, /list, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except InvalidInput as e:
            return str(e)
        except StorageError as e:
            logger.warning("Command /%s hit a storage error: %s", name, e)
            return f"Storage error: {e}"
        except TickTasksError as e:
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _fmt_ms(ms: int | None) -> str:
    if ms is None:
        return "-"
    return datetime.fromtimestamp(ms / 1000).astimezone().strftime("%Y-%m-%d %H:%M")


def _fmt_ts(ts: float | None) -> str:
    if ts is None:
        return "-"
    return datetime.fromtimestamp(ts).astimezone().strftime("%Y-%m-%d %H:%M:%S")


def format_task(task: Task, *, selected: bool = False) -> str:
    box = "[x]" if task.checked else "[ ]"
    mark = "*" if selected else " "
    line = f"{mark}{box} #{task.id} {task.title}"
    if task.description:
        line += f" - {task.description}"
    return line


def format_task_list(tasks: tuple[Task, ...] | list[Task], selection: set[int] | None = None) -> str:
    if not tasks:
        return "No tasks."
    selection = selection or set()
    return "\n".join(format_task(t, selected=t.id in selection) for t in tasks)


def _parse_ids(args: list[str]) -> list[int]:
    ids: list[int] = []
    for a in args:
        for piece in a.replace(",", " ").split():
            try:
                ids.append(int(piece.lstrip("#")))
            except ValueError as e:
                raise InvalidInput(f"not a task id: {piece}") from e
    return ids


def _find_task(state: AppState, args: list[str]) -> Task:
    ids = _parse_ids(args)
    if len(ids) != 1:
        raise InvalidInput("Usage: give exactly one task id.")
    task = state.runtime.call(state.service.find(ids[0]))
    if task is None:
        raise InvalidInput(f"No task #{ids[0]}.")
    return task


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add Buy milk
    /add Buy milk | 2 litres, semi-skimmed
    """
    text = " ".join(args)
    title, _, description = text.partition("|")
    task = state.runtime.call(state.service.add(title, description))
    return f"Added #{task.id} {task.title}"


def cmd_list(state: AppState, args: list[str]) -> str:
    tasks = state.runtime.call(state.service.snapshot())
    return format_task_list(tasks, state.selection)


def cmd_show(state: AppState, args: list[str]) -> str:
    task = _find_task(state, args)
    return (
        f"Task #{task.id}\n"
        f"  Title: {task.title}\n"
        f"  Description: {task.description or '-'}\n"
        f"  Checked: {'yes' if task.checked else 'no'} (at {_fmt_ms(task.checked_at)})"
    )


def _set_checked(state: AppState, args: list[str], is_checked: bool) -> str:
    task = _find_task(state, args)
    if task.checked == is_checked:
        return f"#{task.id} is already {'checked' if is_checked else 'unchecked'}."
    updated = state.runtime.call(state.service.check(task, is_checked))
    return format_task(updated)


def cmd_check(state: AppState, args: list[str]) -> str:
    return _set_checked(state, args, True)


def cmd_uncheck(state: AppState, args: list[str]) -> str:
    return _set_checked(state, args, False)


def cmd_delete(state: AppState, args: list[str]) -> str:
    task = _find_task(state, args)
    removed = state.runtime.call(state.service.delete(task))
    if removed is None:
        return f"#{task.id} was already gone."
    state.last_deleted = [removed]
    state.selection.discard(removed.id)
    return f"Deleted #{removed.id} {removed.title}. Use /undo to restore."


def cmd_undo(state: AppState, args: list[str]) -> str:
    if not state.last_deleted:
        return "Nothing to undo."
    restored = state.runtime.call(state.service.restore_all(state.last_deleted))
    state.last_deleted = []
    # Restored tasks come back under new ids.
    return "Restored: " + ", ".join(f"#{t.id} {t.title}" for t in restored)


def cmd_select(state: AppState, args: list[str]) -> str:
    ids = _parse_ids(args)
    if not ids:
        return "Usage: /select <id> [id...]"
    state.selection.update(ids)
    return f"Selected: {', '.join(f'#{i}' for i in sorted(state.selection))}"


def cmd_unselect(state: AppState, args: list[str]) -> str:
    ids = _parse_ids(args)
    if not ids:
        state.selection.clear()
        return "Selection cleared."
    state.selection.difference_update(ids)
    return f"Selected: {', '.join(f'#{i}' for i in sorted(state.selection)) or 'nothing'}"


def cmd_selection(state: AppState, args: list[str]) -> str:
    if not state.selection:
        return "No tasks selected."
    return f"Selected: {', '.join(f'#{i}' for i in sorted(state.selection))}"


def cmd_bulkdelete(state: AppState, args: list[str]) -> str:
    ids = _parse_ids(args) if args else sorted(state.selection)
    if not ids:
        return "No tasks selected."
    removed = state.runtime.call(state.service.bulk_delete(ids))
    state.selection.clear()
    if not removed:
        return "Nothing deleted."
    state.last_deleted = removed
    return f"Deleted {len(removed)} task(s). Use /undo to restore them all."


def cmd_settings(state: AppState, args: list[str]) -> str:
    """
    /settings                 -> show
    /settings days 5          -> keep checked tasks for 5 days
    /settings theme dark      -> light | dark
    """
    prefs = state.preferences
    if not args:
        prefs.reload()
        return (
            "Settings:\n"
            f"  Auto-delete checked tasks after: {prefs.auto_delete_days} day(s)\n"
            f"  Theme: {prefs.theme.name.lower()}"
        )

    if len(args) % 2:
        return "Usage: /settings [days <n>] [theme light|dark]"

    # Parse every pair first; nothing is saved unless the whole command is valid.
    days: int | None = None
    theme: Theme | None = None
    for key, value in zip(args[::2], args[1::2]):
        key = key.lower()
        if key == "days":
            try:
                days = int(value)
            except ValueError as e:
                raise InvalidInput(f"days must be a whole number, got {value!r}") from e
            if days < 0:
                raise InvalidInput(f"days must be >= 0, got {days}")
        elif key == "theme":
            try:
                theme = Theme[value.upper()]
            except KeyError as e:
                raise InvalidInput("theme must be light or dark") from e
        else:
            return f"Unknown setting: {key}. Use days or theme."

    if theme is not None:
        prefs.set_theme(theme)
    if days is not None:
        prefs.set_auto_delete_days(days)
        reschedule_retention(state)

    return f"Saved. Checked tasks are kept {prefs.auto_delete_days} day(s); theme {prefs.theme.name.lower()}."


def cmd_cleanup(state: AppState, args: list[str]) -> str:
    removed = state.runtime.call(state.service.cleanup_expired())
    return f"Cleanup removed {removed} checked task(s)."


def cmd_schedule(state: AppState, args: list[str]) -> str:
    sched = state.runtime.call(state.scheduler.current_schedule())
    if sched is None:
        return "No cleanup scheduled."
    lines = [
        f"Schedule '{sched.name}':",
        f"  Every: {sched.interval_seconds / 3600:.1f} h",
        f"  Next run: {_fmt_ts(sched.next_run_at)}",
        f"  Last run: {_fmt_ts(sched.last_run_at)} ({sched.last_status.value})",
    ]
    last = state.scheduler.last_result
    if last is not None and last.error is not None:
        lines.append(f"  Last error: {last.error}")
    return "\n".join(lines)


def cmd_watch(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /watch on   -> print the task list whenever it changes
    /watch off
    """
    arg = args[0].lower() if args else ""
    fut = state.watch_future
    running = fut is not None and not fut.done()

    if arg in ("on", "1", "true", "yes"):
        if running:
            return "Watch is already ON."
        if emit is None:
            return "Watch needs an interactive console."

        async def _watch() -> None:
            async for snapshot in state.service.tasks():
                emit("[LIST]\n" + format_task_list(snapshot, state.selection))

        state.watch_future = state.runtime.spawn(_watch())
        return "Watch ON."

    if arg in ("off", "0", "false", "no"):
        if fut is None or not running:
            return "Watch is already OFF."
        fut.cancel()
        state.watch_future = None
        return "Watch OFF."

    return f"Watch is currently {'ON' if running else 'OFF'}. Use /watch on or /watch off."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("add", cmd_add, help_text="Add a task: /add <title> [| <description>].", aliases=["new"])
registry.register("list", cmd_list, help_text="List tasks, newest first.", aliases=["ls"])
registry.register("show", cmd_show, help_text="Show one task: /show <id>.")
registry.register("check", cmd_check, help_text="Mark a task done: /check <id>.", aliases=["done"])
registry.register("uncheck", cmd_uncheck, help_text="Mark a task not done: /uncheck <id>.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete <id>.", aliases=["rm"])
registry.register("undo", cmd_undo, help_text="Restore the last deleted task(s).")
registry.register("select", cmd_select, help_text="Add tasks to the selection: /select <id...>.")
registry.register("unselect", cmd_unselect, help_text="Remove from selection (no ids = clear).")
registry.register("selection", cmd_selection, help_text="Show the selection.")
registry.register(
    "bulkdelete", cmd_bulkdelete, help_text="Delete the selected tasks (or /bulkdelete <id...>)."
)
registry.register(
    "settings", cmd_settings, help_text="Show or change settings: /settings days <n> theme light|dark."
)
registry.register("cleanup", cmd_cleanup, help_text="Delete expired checked tasks now.")
registry.register("schedule", cmd_schedule, help_text="Show the daily cleanup schedule.")
registry.register("watch", cmd_watch, help_text="Print the list on every change: /watch on | off.")
