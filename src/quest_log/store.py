"""Quest store - the single source of truth for the quest log.

All mutations go through :class:`QuestStore`. After every mutation that
changes the collection the store calls its ``on_change`` hooks with the full
task list; in normal use the hook is :meth:`PersistenceAdapter.save`, so the
durable copy always reflects the latest in-memory state.

The store also owns two pieces of session-only state that are never
persisted: the per-quest click history used to tell a single click from a
rapid double click, and the rename drafts of quests being edited.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from quest_log.models import Subtask, Task
from quest_log.storage import PersistenceAdapter, PersistenceError

logger = logging.getLogger(__name__)

DOUBLE_CLICK_MS = 300

ChangeHook = Callable[[list[Task]], None]

# Fields update_task may merge; ``id`` never changes.
MERGEABLE_FIELDS = frozenset({"title", "completed", "priority", "expanded", "subtasks"})


class ClickAction(Enum):
    """What a click on a quest title was interpreted as."""

    NONE = "none"
    TOGGLE_EXPANDED = "toggle_expanded"
    TOGGLE_COMPLETED = "toggle_completed"


@dataclass
class _ClickRecord:
    at: float
    toggled_expanded: bool


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


def _wall_clock_ms() -> int:
    return time.time_ns() // 1_000_000


class QuestStore:
    """Holds the quest collection and applies every change to it."""

    def __init__(
        self,
        tasks: Iterable[Task] | None = None,
        *,
        on_change: ChangeHook | None = None,
        double_click_ms: float = DOUBLE_CLICK_MS,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self._tasks: list[Task] = list(tasks or [])
        ids = [task.id for task in self._tasks]
        if len(set(ids)) != len(ids):
            raise ValueError("quest ids must be unique")

        self._listeners: list[ChangeHook] = []
        if on_change is not None:
            self._listeners.append(on_change)

        self.double_click_ms = double_click_ms
        self._clock = clock or _monotonic_ms
        self._last_id = max(ids, default=0)
        self._clicks: dict[int, _ClickRecord] = {}
        self._drafts: dict[int, str] = {}

    @classmethod
    def open(
        cls,
        adapter: PersistenceAdapter,
        *,
        double_click_ms: float = DOUBLE_CLICK_MS,
        clock: Callable[[], float] | None = None,
    ) -> QuestStore:
        """Load the persisted quest log and persist every later change through it."""
        return cls(
            adapter.load(),
            on_change=adapter.save,
            double_click_ms=double_click_ms,
            clock=clock,
        )

    def add_listener(self, hook: ChangeHook) -> None:
        """Register another hook to run after each change."""
        self._listeners.append(hook)

    # ---- queries ----

    @property
    def tasks(self) -> list[Task]:
        """The quests in storage (insertion) order."""
        return list(self._tasks)

    def get_task(self, task_id: int) -> Task | None:
        """Get a quest by ID."""
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def sorted_tasks(self) -> list[Task]:
        """Return the quests in display order.

        Incomplete quests come before completed ones; within the same
        completion state, priority quests come first. The sort is stable, so
        anything else keeps insertion order. The stored order is untouched.
        """
        return sorted(self._tasks, key=lambda t: (t.completed, not t.priority))

    # ---- mutations ----

    def add_task(self, title: str) -> Task | None:
        """Append a new quest. Blank titles are ignored."""
        if not title.strip():
            return None

        task = Task(id=self._new_id(), title=title)
        self._tasks.append(task)
        logger.debug("Added quest %d", task.id)
        self._changed()
        return task

    def update_task(self, task_id: int, **changes: Any) -> Task | None:
        """Merge ``changes`` into the quest with ``task_id``.

        Unknown ids are ignored. A blank title is dropped from the changes so
        a quest never loses its title. Nothing is persisted when the merge
        leaves the quest as it was.
        """
        unknown = set(changes) - MERGEABLE_FIELDS
        if unknown:
            raise TypeError(f"update_task() got unexpected field(s): {', '.join(sorted(unknown))}")

        task = self.get_task(task_id)
        if task is None:
            return None

        title = changes.get("title")
        if isinstance(title, str) and not title.strip():
            del changes["title"]
        if not changes:
            return task

        merged = Task.model_validate({**task.model_dump(), **changes})
        if merged == task:
            return task

        for name in changes:
            setattr(task, name, getattr(merged, name))
        self._changed()
        return task

    def delete_task(self, task_id: int) -> bool:
        """Remove a quest and its subtasks. Returns True if removed."""
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                del self._tasks[index]
                self._clicks.pop(task_id, None)
                self._drafts.pop(task_id, None)
                logger.debug("Deleted quest %d", task_id)
                self._changed()
                return True
        return False

    def add_subtask(self, task_id: int, text: str) -> Subtask | None:
        """Append a subtask to a quest. Blank text and unknown ids are ignored."""
        text = text.strip()
        if not text:
            return None

        task = self.get_task(task_id)
        if task is None:
            return None

        subtask = Subtask(text=text)
        task.subtasks.append(subtask)
        self._changed()
        return subtask

    def toggle_subtask(self, task_id: int, index: int) -> bool:
        """Flip ``done`` on a subtask. Out-of-range indexes are ignored."""
        task = self.get_task(task_id)
        if task is None or not 0 <= index < len(task.subtasks):
            return False

        subtask = task.subtasks[index]
        subtask.done = not subtask.done
        self._changed()
        return True

    def toggle_completed(self, task_id: int) -> Task | None:
        task = self.get_task(task_id)
        if task is None:
            return None
        return self.update_task(task_id, completed=not task.completed)

    def toggle_expanded(self, task_id: int) -> Task | None:
        task = self.get_task(task_id)
        if task is None:
            return None
        return self.update_task(task_id, expanded=not task.expanded)

    def toggle_priority(self, task_id: int) -> Task | None:
        task = self.get_task(task_id)
        if task is None:
            return None
        return self.update_task(task_id, priority=not task.priority)

    # ---- click handling ----

    def handle_click(self, task_id: int, now: float | None = None) -> ClickAction:
        """Interpret a click on a quest title.

        A click within ``double_click_ms`` of the previous click on the same
        quest is a double click and toggles ``completed``. Any other click
        toggles ``expanded``. When a double click completes a pair whose first
        click expanded or collapsed the quest, that toggle is undone so the
        pair as a whole only changes ``completed``.
        """
        task = self.get_task(task_id)
        if task is None:
            return ClickAction.NONE

        if now is None:
            now = self._clock()

        last = self._clicks.get(task_id)
        elapsed = now - last.at if last is not None else math.inf

        if last is not None and elapsed < self.double_click_ms:
            changes: dict[str, Any] = {"completed": not task.completed}
            if last.toggled_expanded:
                changes["expanded"] = not task.expanded
            self.update_task(task_id, **changes)
            action = ClickAction.TOGGLE_COMPLETED
        else:
            self.update_task(task_id, expanded=not task.expanded)
            action = ClickAction.TOGGLE_EXPANDED

        self._clicks[task_id] = _ClickRecord(
            at=now, toggled_expanded=action is ClickAction.TOGGLE_EXPANDED
        )
        return action

    # ---- renaming ----

    def begin_edit(self, task_id: int) -> bool:
        """Start renaming a quest; the draft starts as the current title."""
        task = self.get_task(task_id)
        if task is None:
            return False
        self._drafts[task_id] = task.title
        return True

    def is_editing(self, task_id: int) -> bool:
        return task_id in self._drafts

    def edit_text(self, task_id: int) -> str | None:
        return self._drafts.get(task_id)

    def set_edit_text(self, task_id: int, text: str) -> bool:
        """Replace the draft title. Only valid while the quest is being edited."""
        if task_id not in self._drafts:
            return False
        self._drafts[task_id] = text
        return True

    def commit_edit(self, task_id: int) -> Task | None:
        """Finish renaming; a non-blank draft becomes the title."""
        if task_id not in self._drafts:
            return None
        draft = self._drafts.pop(task_id)
        return self.update_task(task_id, title=draft)

    def cancel_edit(self, task_id: int) -> bool:
        """Finish renaming without changing the title."""
        return self._drafts.pop(task_id, None) is not None

    # ---- internals ----

    def _new_id(self) -> int:
        # Creation time in ms, bumped past the newest id so ids stay unique
        # when quests are added within the same millisecond.
        new_id = max(_wall_clock_ms(), self._last_id + 1)
        self._last_id = new_id
        return new_id

    def _changed(self) -> None:
        snapshot = list(self._tasks)
        for hook in list(self._listeners):
            try:
                hook(snapshot)
            except PersistenceError:
                logger.exception("Could not persist the quest log; in-memory state kept")
