"""Shared fixtures for quest-log tests."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Generator
from pathlib import Path

import pytest

from quest_log.store import QuestStore

from .fakes import FakeClock, RecordingHook


@pytest.fixture
def temp_project(tmp_path: Path) -> Generator[Path, None, None]:
    """Create a temporary project directory and change to it."""
    original_dir = os.getcwd()
    os.chdir(tmp_path)
    try:
        yield tmp_path
    finally:
        os.chdir(original_dir)


@pytest.fixture
def temp_quest_dir(temp_project: Path) -> Path:
    """Create a temporary .quests directory."""
    quest_dir = temp_project / ".quests"
    quest_dir.mkdir()
    return quest_dir


@pytest.fixture
def recorder() -> RecordingHook:
    return RecordingHook()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(recorder: RecordingHook, clock: FakeClock) -> QuestStore:
    """An empty store wired to a recording hook and a fake clock."""
    return QuestStore(on_change=recorder, clock=clock)


@pytest.fixture
def sample_quests_data() -> list[dict]:
    """Sample stored quest log, including draft fields older front ends wrote."""
    return [
        {
            "id": 1700000000000,
            "title": "Find the water chip",
            "completed": False,
            "priority": True,
            "expanded": True,
            "subtasks": [
                {"text": "Go to Vault 15", "done": True},
                {"text": "Talk to Aradesh", "done": False},
            ],
            "editing": False,
            "editText": "",
            "showSubtaskInput": False,
        },
        {
            "id": 1700000000500,
            "title": "Kill the radscorpions",
            "completed": True,
            "priority": False,
            "expanded": False,
            "subtasks": [],
        },
    ]


@pytest.fixture
def sample_quests_file(temp_quest_dir: Path, sample_quests_data: list[dict]) -> Path:
    """Write the sample quest log where the default config expects it."""
    path = temp_quest_dir / "quests.json"
    path.write_text(json.dumps(sample_quests_data))
    return path


@pytest.fixture
def reset_quest_logger() -> Generator[logging.Logger, None, None]:
    """Restore the quest_log logger after a test reconfigures it."""
    logger = logging.getLogger("quest_log")
    level = logger.level
    handlers = list(logger.handlers)
    try:
        yield logger
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            if handler not in handlers:
                handler.close()
        for handler in handlers:
            logger.addHandler(handler)
        logger.setLevel(level)
