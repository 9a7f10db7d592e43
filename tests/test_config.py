"""
Tests for settings resolution and logging setup
"""

import json
import logging

from textile import config


class TestResolveDataDir:
    def test_session_wins(self, tmp_path):
        assert config.resolve_data_dir(str(tmp_path / "s"), str(tmp_path / "e")) == (tmp_path / "s").resolve()

    def test_environment_next(self, tmp_path):
        assert config.resolve_data_dir(None, str(tmp_path / "e")) == (tmp_path / "e").resolve()

    def test_persisted_settings(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config, "_default_data_dir", lambda: tmp_path)
        (tmp_path / config.CONFIG_FILE_NAME).write_text(json.dumps({"data_dir": str(tmp_path / "elsewhere")}))
        assert config.resolve_data_dir() == (tmp_path / "elsewhere").resolve()

    def test_default_when_settings_unreadable(self, tmp_path, monkeypatch):
        monkeypatch.setattr(config, "_default_data_dir", lambda: tmp_path)
        (tmp_path / config.CONFIG_FILE_NAME).write_text("{not json")
        assert config.resolve_data_dir() == tmp_path.resolve()


class TestBuildSettings:
    def test_paths_and_defaults(self, tmp_path):
        settings = config.build_settings(tmp_path / "data", "debug")
        assert settings.data_dir.is_dir()
        assert settings.db_path == tmp_path / "data" / "app.db"
        assert settings.log_level == "DEBUG"
        assert settings.currency == "INR"

    def test_unknown_level_falls_back(self, tmp_path):
        assert config.build_settings(tmp_path, "chatty").log_level == "INFO"


class TestSetupLogging:
    def test_handler_attached_once(self):
        logger = config.setup_logging("WARNING")
        config.setup_logging("WARNING")
        assert logger.name == "textile"
        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING
