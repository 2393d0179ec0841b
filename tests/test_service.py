"""
Tests for the command line and foreground runner helpers.
"""

import json
from unittest.mock import patch

from cmd_watcher.config import Config
from cmd_watcher.service import build_session, main, run_foreground


class TestService:
    """Test cases for service.py."""

    def test_build_session_from_config(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(
            json.dumps({
                "control_file": str(tmp_path / "command.txt"),
                "base_directory": str(tmp_path),
                "placeholder_payload": "hi",
                "drain_timeout_seconds": 3,
            }),
            encoding="utf-8",
        )
        session = build_session(Config(path))

        assert session.control_file == tmp_path / "command.txt"
        assert session._operations.base_directory == tmp_path
        assert session._operations.placeholder == "hi"
        assert session._drain_timeout == 3.0

    def test_run_foreground_missing_control_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"control_file": str(tmp_path / "missing.txt")}), encoding="utf-8")
        assert run_foreground(Config(path)) == 1

    def test_copy_command(self, tmp_path):
        src = tmp_path / "file.txt"
        src.write_text("abc", encoding="utf-8")
        for mode in ("sync", "callback", "future"):
            dest = tmp_path / f"out-{mode}.txt"
            assert main(["copy", str(src), str(dest), mode]) == 0
            assert dest.read_text(encoding="utf-8") == "abc"

    def test_copy_command_failure(self, tmp_path):
        assert main(["copy", str(tmp_path / "nope"), str(tmp_path / "out")]) == 1

    def test_copy_command_needs_two_paths(self, capsys):
        assert main(["copy", "only-one"]) == 2
        assert "Usage" in capsys.readouterr().out

    def test_unknown_command(self, capsys):
        assert main(["frobnicate"]) == 2
        assert "Usage" in capsys.readouterr().out

    def test_start_uses_given_config(self, tmp_path):
        path = tmp_path / "config.json"
        with patch("cmd_watcher.service.setup_logging") as setup, patch(
            "cmd_watcher.service.run_foreground", return_value=0
        ) as run:
            assert main(["start", str(path)]) == 0
        assert setup.call_args[0][0].path == path
        assert run.call_args[0][0].path == path
