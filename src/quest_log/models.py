"""Data models for the quest log."""

from __future__ import annotations

from pydantic import BaseModel, Field


class Subtask(BaseModel):
    """A sub-item of a quest. Identified only by its position in the parent."""

    text: str = Field(min_length=1)
    done: bool = False


class Task(BaseModel):
    """A top-level quest.

    Records written by older front ends may carry draft fields such as
    ``editing`` or ``editText``; they are ignored on load and never written.
    """

    id: int
    title: str = Field(min_length=1)
    completed: bool = False
    priority: bool = False
    expanded: bool = False
    subtasks: list[Subtask] = Field(default_factory=list)

    def __str__(self) -> str:
        """Return a string representation."""
        status = "✓" if self.completed else "○"
        star = "★ " if self.priority else ""
        return f"[{status}] {star}{self.title}"
