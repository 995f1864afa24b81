"""JSONL logging for report passes."""

import json
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

TOOL_NAME = "memdiag"


def get_log_path(base_path: Path, log_date: date | None = None) -> Path:
    """
    Get the log file path for a day.

    Args:
        base_path: Base directory for logs
        log_date: Day of the log (default: today)

    Returns:
        Path to the log file: {base}/{date}/memdiag.jsonl
    """
    if log_date is None:
        log_date = date.today()
    return base_path / log_date.isoformat() / f"{TOOL_NAME}.jsonl"


class RunLogger:
    """
    JSONL logger for report passes.

    Writes structured log entries to a JSONL file. With no log path the
    logger is disabled and every call is a no-op.
    """

    def __init__(self, log_path: Path | None = None):
        """
        Initialize logger.

        Args:
            log_path: Path to log file, or None to disable logging
        """
        self.log_path = log_path
        self._file = None

    @classmethod
    def for_dir(cls, log_dir: str | None) -> "RunLogger":
        """Logger writing under log_dir, or a disabled one if log_dir is None."""
        if not log_dir:
            return cls()
        return cls(get_log_path(Path(log_dir).expanduser()))

    @property
    def enabled(self) -> bool:
        return self.log_path is not None

    def _ensure_file(self) -> None:
        """Ensure log file is open."""
        if self._file is None:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.log_path, "a")

    def _log(self, level: str, message: str, **extra: Any) -> None:
        """Write a log entry."""
        if not self.enabled:
            return
        self._ensure_file()
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "tool": TOOL_NAME,
            "message": message,
            **extra,
        }
        self._file.write(json.dumps(entry, default=str) + "\n")
        self._file.flush()

    def debug(self, message: str, **extra: Any) -> None:
        """Log debug message."""
        self._log("debug", message, **extra)

    def info(self, message: str, **extra: Any) -> None:
        """Log info message."""
        self._log("info", message, **extra)

    def warning(self, message: str, **extra: Any) -> None:
        """Log warning message."""
        self._log("warning", message, **extra)

    def error(self, message: str, **extra: Any) -> None:
        """Log error message."""
        self._log("error", message, **extra)

    def close(self) -> None:
        """Close the log file."""
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> "RunLogger":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()
