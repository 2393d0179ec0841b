"""
Tests for the JSON configuration layer.
"""

import json
from pathlib import Path

from cmd_watcher.config import DEFAULT_CONFIG, Config


class TestConfig:
    """Test cases for Config."""

    def test_creates_default_file(self, tmp_path):
        path = tmp_path / "config.json"
        cfg = Config(path)

        assert path.exists()
        assert json.loads(path.read_text(encoding="utf-8")) == DEFAULT_CONFIG
        assert cfg.control_file == Path("./command.txt")
        assert cfg.base_directory is None
        assert cfg.placeholder_payload == "test"
        assert cfg.truncate_on_add is False

    def test_stored_values_override_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(
            json.dumps({"control_file": "/tmp/cmd.txt", "base_directory": "/srv", "truncate_on_add": True}),
            encoding="utf-8",
        )
        cfg = Config(path)

        assert cfg.control_file == Path("/tmp/cmd.txt")
        assert cfg.base_directory == Path("/srv")
        assert cfg.truncate_on_add is True
        assert cfg.log_level == "INFO"

    def test_invalid_json_falls_back_to_defaults(self, tmp_path, caplog):
        path = tmp_path / "config.json"
        path.write_text("{not json", encoding="utf-8")

        cfg = Config(path)

        assert cfg.drain_timeout == 10.0
        assert "using defaults" in caplog.text

    def test_setters_clamp_and_persist(self, tmp_path):
        path = tmp_path / "config.json"
        cfg = Config(path)
        cfg.max_log_size_mb = 0
        cfg.log_backup_count = -2
        cfg.drain_timeout = -1
        cfg.control_file = tmp_path / "c.txt"
        cfg.save()

        reloaded = Config(path)
        assert reloaded.max_log_size_mb == 1
        assert reloaded.log_backup_count == 0
        assert reloaded.drain_timeout == 0.0
        assert reloaded.control_file == tmp_path / "c.txt"

    def test_log_path_sits_beside_config(self, tmp_path):
        cfg = Config(tmp_path / "config.json")
        assert cfg.log_path == tmp_path / "command_watcher.log"

    def test_default_location_uses_xdg(self, tmp_path, monkeypatch):
        monkeypatch.setattr("sys.platform", "linux")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        cfg = Config()
        assert cfg.path == tmp_path / "CommandWatcher" / "config.json"
