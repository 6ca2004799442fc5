"""Pytest configuration and fixtures for Git Merge Console tests."""

import os
import shutil
import stat
import subprocess
import sys
import tempfile
import threading
import time
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

from models import OutputKind


class RecordingSink:
    """OutputSink that remembers everything written to it."""

    def __init__(self):
        self.entries: list[tuple[str, OutputKind]] = []
        self._lock = threading.Lock()

    def write(self, text: str, kind: OutputKind) -> None:
        with self._lock:
            self.entries.append((text, kind))

    def text(self, kind: OutputKind | None = None) -> str:
        with self._lock:
            return "".join(t for t, k in self.entries if kind is None or k is kind)

    def wait_for(self, needle: str, timeout: float = 10.0) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if needle in self.text():
                return True
            time.sleep(0.02)
        return False


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp())
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def temp_git_repo(temp_dir: Path) -> Path:
    """Create a temporary git repository on branch main for testing."""
    subprocess.run(["git", "init"], cwd=temp_dir, check=True, capture_output=True)
    subprocess.run(["git", "config", "user.name", "Test User"], cwd=temp_dir, check=True)
    subprocess.run(["git", "config", "user.email", "test@example.com"], cwd=temp_dir, check=True)

    readme_file = temp_dir / "README.md"
    readme_file.write_text("# Test Repository\n")
    subprocess.run(["git", "add", "README.md"], cwd=temp_dir, check=True)
    subprocess.run(["git", "commit", "-m", "Initial commit"], cwd=temp_dir, check=True, capture_output=True)
    subprocess.run(["git", "branch", "-M", "main"], cwd=temp_dir, check=True)

    return temp_dir


@pytest.fixture
def sample_config() -> dict:
    """Provide a sample configuration for testing."""
    return {
        "recent_repos": [],
        "last_repo": None,
        "auto_reopen_last": True,
        "window_geometry": None,
        "git_executable": None,
        "keep_staged_script": False,
        "recent_targets": {},
    }


@pytest.fixture
def config_file(temp_dir: Path, sample_config: dict) -> Path:
    """Create a temporary config file for testing."""
    import json

    config_path = temp_dir / "config.json"
    config_path.write_text(json.dumps(sample_config, indent=2))
    return config_path


@pytest.fixture
def sink() -> RecordingSink:
    """Provide a sink that records merge output."""
    return RecordingSink()


@pytest.fixture
def python_interpreter() -> Path:
    """The running Python, used in place of bash so scripts run anywhere."""
    return Path(sys.executable)


@pytest.fixture
def make_script(temp_dir: Path) -> Callable[[str], Path]:
    """Write an executable Python script and return its path."""
    counter = {"n": 0}

    def _make(body: str) -> Path:
        counter["n"] += 1
        path = temp_dir / f"script_{counter['n']}.py"
        path.write_text(body, encoding="utf-8")
        os.chmod(path, os.stat(path).st_mode | stat.S_IXUSR)
        return path

    return _make
