"""Execution context for testability."""

import glob
import shutil
import subprocess
import time
from datetime import date
from pathlib import Path


class Context:
    """
    Wraps every host access made by the report.

    In production: reads real files and executes real commands
    In tests: replaced with MockContext
    """

    def check_tool(self, name: str) -> bool:
        """Check if a tool exists in PATH."""
        return shutil.which(name) is not None

    def run(
        self,
        cmd: list[str],
        check: bool = False,
        timeout: int | None = 60,
        **kwargs,
    ) -> subprocess.CompletedProcess:
        """
        Run a command and return result.

        Output is decoded as text; undecodable bytes are replaced.

        Args:
            cmd: Command and arguments as list
            check: Raise on non-zero exit code
            timeout: Timeout in seconds
            **kwargs: Additional subprocess.run arguments

        Returns:
            CompletedProcess with stdout, stderr, returncode
        """
        return subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            errors="replace",
            check=check,
            timeout=timeout,
            **kwargs,
        )

    def read_file(self, path: str) -> str:
        """Read file contents, replacing undecodable bytes."""
        return Path(path).read_text(errors="replace")

    def file_exists(self, path: str) -> bool:
        """Check if file or directory exists."""
        return Path(path).exists()

    def file_size(self, path: str) -> int:
        """Size of a file in bytes."""
        return Path(path).stat().st_size

    def glob(self, pattern: str, recursive: bool = False) -> list[str]:
        """Find paths matching an absolute glob pattern."""
        return sorted(glob.glob(pattern, recursive=recursive))

    def disk_free(self, path: str = "/") -> int:
        """Free bytes available to unprivileged users on the filesystem holding path."""
        return shutil.disk_usage(path).free

    def sleep(self, seconds: float) -> None:
        """Block for the given number of seconds."""
        time.sleep(seconds)

    def today(self) -> date:
        """Current local date."""
        return date.today()
