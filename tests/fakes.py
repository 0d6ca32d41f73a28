"""Test doubles for quest-log tests."""

from __future__ import annotations

from quest_log.models import Task


class RecordingHook:
    """Change hook that keeps a deep copy of every collection it is given."""

    def __init__(self) -> None:
        self.calls: list[list[Task]] = []

    def __call__(self, tasks: list[Task]) -> None:
        self.calls.append([task.model_copy(deep=True) for task in tasks])

    @property
    def last(self) -> list[Task]:
        return self.calls[-1]


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, now: float = 10_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class FailingStore:
    """In-memory key-value store that can be told to fail."""

    def __init__(self, data: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(data or {})
        self.fail_reads = False
        self.fail_writes = False

    def get(self, key: str) -> str | None:
        if self.fail_reads:
            raise OSError("disk on fire")
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.fail_writes:
            raise OSError("read-only file system")
        self.data[key] = value
