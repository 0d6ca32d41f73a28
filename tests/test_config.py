"""Tests for quest_log.config module."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from quest_log.config import (
    CONFIG_FILE,
    QUEST_DIR,
    InteractionConfig,
    LoggingConfig,
    QuestConfig,
    StorageConfig,
)


class TestDefaults:
    """Tests for default configuration values."""

    def test_storage_defaults(self) -> None:
        config = StorageConfig()
        assert config.directory == ".quests"
        assert config.key == "quests"

    def test_interaction_defaults(self) -> None:
        assert InteractionConfig().double_click_ms == 300

    def test_logging_defaults(self) -> None:
        config = LoggingConfig()
        assert config.level == "WARNING"
        assert config.file is None

    def test_paths(self) -> None:
        assert QUEST_DIR == Path(".quests")
        assert CONFIG_FILE == Path(".quests/config.json")

    def test_rejects_non_positive_threshold(self) -> None:
        with pytest.raises(ValidationError):
            InteractionConfig(double_click_ms=0)

    def test_rejects_unknown_log_level(self) -> None:
        with pytest.raises(ValidationError):
            LoggingConfig(level="LOUD")  # type: ignore[arg-type]


class TestQuestConfig:
    """Tests for loading and saving QuestConfig."""

    def test_load_missing_file(self, temp_project: Path) -> None:
        """Test loading returns defaults when file doesn't exist."""
        config = QuestConfig.load()
        assert config.storage.key == "quests"
        assert config.interaction.double_click_ms == 300

    def test_load_existing_file(self, temp_quest_dir: Path) -> None:
        data = {
            "storage": {"directory": "data", "key": "log"},
            "interaction": {"double_click_ms": 450},
            "logging": {"level": "DEBUG", "file": "quests.log"},
        }
        (temp_quest_dir / "config.json").write_text(json.dumps(data))

        config = QuestConfig.load()
        assert config.storage.directory == "data"
        assert config.storage.key == "log"
        assert config.interaction.double_click_ms == 450
        assert config.logging.file == "quests.log"

    def test_load_partial_file(self, temp_quest_dir: Path) -> None:
        """Missing sections fall back to defaults."""
        path = temp_quest_dir / "config.json"
        path.write_text(json.dumps({"interaction": {"double_click_ms": 250}}))

        config = QuestConfig.load(path)
        assert config.interaction.double_click_ms == 250
        assert config.storage.directory == ".quests"

    def test_load_invalid_file(self, temp_quest_dir: Path) -> None:
        path = temp_quest_dir / "config.json"
        path.write_text(json.dumps({"interaction": {"double_click_ms": "soon"}}))

        with pytest.raises(ValidationError):
            QuestConfig.load(path)

    def test_save_creates_directory(self, temp_project: Path) -> None:
        """Test save creates parent directory if needed."""
        config = QuestConfig(interaction=InteractionConfig(double_click_ms=200))
        config.save()

        assert CONFIG_FILE.exists()
        data = json.loads(CONFIG_FILE.read_text())
        assert data["interaction"]["double_click_ms"] == 200
        assert "file" not in data["logging"]

    def test_save_and_reload(self, tmp_path: Path) -> None:
        path = tmp_path / "nested" / "config.json"
        original = QuestConfig(storage=StorageConfig(key="other"))
        original.save(path)

        assert QuestConfig.load(path) == original
