"""
Pytest configuration and shared fixtures.
"""

import pytest

from cmd_watcher.operations import FileOperations


@pytest.fixture
def workdir(tmp_path):
    """Directory the operations resolve relative paths against."""
    return tmp_path


@pytest.fixture
def operations(workdir):
    """FileOperations rooted at the temporary work directory."""
    return FileOperations(base_directory=workdir)


@pytest.fixture
def control_file(workdir):
    """An empty, pre-existing control file."""
    path = workdir / "command.txt"
    path.write_text("", encoding="utf-8")
    return path
