"""Shared test fixtures."""

import subprocess
import sys
from datetime import date
from fnmatch import fnmatch
from pathlib import Path

import pytest

# Add project root to path for package and test imports
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class MockContext:
    """Mock Context for testing readers and sections without real system access."""

    def __init__(
        self,
        tools_available: list[str] | None = None,
        command_outputs: dict[tuple, str | Exception] | None = None,
        file_contents: dict[str, str] | None = None,
        file_sizes: dict[str, int] | None = None,
        disk_free_bytes: int | Exception = 0,
        today: date | None = None,
    ):
        self.tools_available = set(tools_available or [])
        self.command_outputs = command_outputs or {}
        self.file_contents = file_contents or {}
        self.file_sizes = file_sizes or {}
        self.disk_free_bytes = disk_free_bytes
        self.current_date = today or date(2025, 3, 11)
        self.commands_run: list[list[str]] = []
        self.sleeps: list[float] = []

    def check_tool(self, name: str) -> bool:
        """Check if tool is in mocked available list."""
        return name in self.tools_available

    def run(
        self,
        cmd: list[str],
        check: bool = False,
        **kwargs,
    ) -> subprocess.CompletedProcess:
        """Return mocked command output; unmocked commands behave like a missing binary."""
        self.commands_run.append(cmd)
        key = tuple(cmd)
        if key not in self.command_outputs:
            raise FileNotFoundError(f"No mock output for command: {cmd}")

        output = self.command_outputs[key]
        if isinstance(output, Exception):
            raise output

        # Allow passing CompletedProcess directly for more control (e.g., non-zero returncode)
        if isinstance(output, subprocess.CompletedProcess):
            if check and output.returncode != 0:
                raise subprocess.CalledProcessError(output.returncode, cmd)
            return output

        return subprocess.CompletedProcess(
            cmd,
            returncode=0,
            stdout=output,
            stderr="",
        )

    def read_file(self, path: str) -> str:
        """Return mocked file content."""
        if path not in self.file_contents:
            raise FileNotFoundError(f"No mock content for: {path}")
        content = self.file_contents[path]
        if isinstance(content, Exception):
            raise content
        return content

    def file_exists(self, path: str) -> bool:
        """Check if path is in mocked files."""
        return path in self.file_contents

    def file_size(self, path: str) -> int:
        """Return mocked file size."""
        if path not in self.file_sizes:
            raise FileNotFoundError(f"No mock size for: {path}")
        return self.file_sizes[path]

    def glob(self, pattern: str, recursive: bool = False) -> list[str]:
        """
        Match an absolute pattern against mocked file paths.

        fnmatch's ``*`` also matches "/", which is close enough for the
        patterns the readers use. With recursive=True, ``**/`` may also
        match no directory at all, as in glob.glob.
        """
        patterns = [pattern]
        if recursive and "**/" in pattern:
            patterns.append(pattern.replace("**/", ""))
        return sorted(
            path for path in self.file_contents
            if any(fnmatch(path, p) for p in patterns)
        )

    def disk_free(self, path: str = "/") -> int:
        """Return mocked free disk space."""
        if isinstance(self.disk_free_bytes, Exception):
            raise self.disk_free_bytes
        return self.disk_free_bytes

    def sleep(self, seconds: float) -> None:
        """Record the sleep instead of blocking."""
        self.sleeps.append(seconds)

    def today(self) -> date:
        """Return the mocked current date."""
        return self.current_date


@pytest.fixture
def mock_context():
    """Factory fixture for creating MockContext instances."""
    def _create(**kwargs) -> MockContext:
        return MockContext(**kwargs)
    return _create


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to test fixtures directory."""
    return FIXTURES_DIR


def load_fixture(category: str, name: str) -> str:
    """Load a fixture file by category and name."""
    fixture_path = FIXTURES_DIR / category / name
    if not fixture_path.exists():
        raise FileNotFoundError(f"Fixture not found: {fixture_path}")
    return fixture_path.read_text()
