"""Persistence for the quest log.

The quest collection lives under a single key of a key-value store as a JSON
array of task objects. Loading is fail-soft: anything missing or malformed
comes back as an empty log. Saving always rewrites the whole value, and the
file-backed store swaps the new content in atomically so a failed write
leaves the previous value intact.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Protocol

from pydantic import TypeAdapter, ValidationError

from quest_log.models import Task

logger = logging.getLogger(__name__)

DEFAULT_KEY = "quests"

_TASK_LIST = TypeAdapter(list[Task])


class PersistenceError(Exception):
    """Raised when the quest log could not be written."""


class KeyValueStore(Protocol):
    """Minimal durable string store."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryKeyValueStore:
    """Dict-backed store, mostly useful in tests."""

    def __init__(self, data: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(data or {})

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class FileKeyValueStore:
    """One JSON file per key inside a directory."""

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class PersistenceAdapter:
    """Serializes the quest collection to and from a key-value store."""

    def __init__(self, store: KeyValueStore, key: str = DEFAULT_KEY) -> None:
        self.store = store
        self.key = key

    def load(self) -> list[Task]:
        """Load the quest collection, or an empty list if it is missing or corrupt."""
        try:
            raw = self.store.get(self.key)
        except (OSError, UnicodeDecodeError):
            logger.warning("Could not read stored quests under %r", self.key, exc_info=True)
            return []

        if not raw:
            logger.debug("No stored quests under %r", self.key)
            return []

        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, RecursionError):
            logger.warning("Stored quests under %r are not valid JSON; starting empty", self.key)
            return []

        if not isinstance(data, list):
            logger.warning("Stored quests under %r are not a list; starting empty", self.key)
            return []

        try:
            tasks = _TASK_LIST.validate_python(data)
        except ValidationError as e:
            logger.warning(
                "Stored quests under %r failed validation (%d errors); starting empty",
                self.key,
                e.error_count(),
            )
            return []

        ids = [task.id for task in tasks]
        if len(set(ids)) != len(ids):
            logger.warning("Stored quests under %r contain duplicate ids; starting empty", self.key)
            return []

        logger.debug("Loaded %d quests from %r", len(tasks), self.key)
        return tasks

    def save(self, tasks: Iterable[Task]) -> None:
        """Write the full quest collection, replacing whatever was stored."""
        try:
            payload = json.dumps([task.model_dump(mode="json") for task in tasks], indent=2)
            self.store.set(self.key, payload)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to save quests under {self.key!r}: {e}") from e
