"""Configuration loading with layered overrides."""

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from memdiag.oom_analysis import DEFAULT_LOG_FILES

PROJECT_CONFIG = Path(".memdiag.yaml")


def user_config_path() -> Path:
    return Path.home() / ".config" / "memdiag" / "config.yaml"


@dataclass
class Settings:
    """Report settings; every field can be set from YAML."""

    watch_interval: float = 5.0
    color: bool = True
    log_files: list[str] = field(default_factory=lambda: list(DEFAULT_LOG_FILES))
    top_processes: int = 5
    top_oom_scores: int = 10
    top_cgroups: int = 10
    top_slabs: int = 5
    top_mmaps: int = 5
    sample_interval: float = 1.0
    log_dir: str | None = None

    def update(self, data: dict[str, Any]) -> None:
        """Apply known keys from a config mapping, ignoring bad values."""
        defaults = Settings()
        for f in fields(self):
            if f.name not in data:
                continue
            value = data[f.name]
            expected = getattr(defaults, f.name)
            if f.name == "log_dir":
                if value is None or isinstance(value, str):
                    self.log_dir = value
            elif f.name == "log_files":
                if isinstance(value, list) and all(isinstance(p, str) for p in value):
                    self.log_files = list(value)
            elif isinstance(expected, bool):
                if isinstance(value, bool):
                    setattr(self, f.name, value)
            elif isinstance(expected, int):
                if isinstance(value, int) and not isinstance(value, bool) and value > 0:
                    setattr(self, f.name, value)
            elif isinstance(expected, float):
                if isinstance(value, (int, float)) and not isinstance(value, bool) and value >= 0:
                    setattr(self, f.name, float(value))


def load_config_file(path: Path) -> dict[str, Any]:
    """Load a YAML config file if it exists."""
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError):
        return {}
    return data if isinstance(data, dict) else {}


def load_settings(config_path: Path | None = None) -> Settings:
    """
    Build settings with user -> project -> explicit file precedence.

    Later layers override earlier ones key by key.
    """
    settings = Settings()
    layers = [user_config_path(), PROJECT_CONFIG]
    if config_path is not None:
        layers.append(config_path)
    for path in layers:
        settings.update(load_config_file(path))
    return settings
