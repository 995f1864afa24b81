"""Core memdiag functionality."""

from memdiag.core.config import Settings, load_settings
from memdiag.core.context import Context
from memdiag.core.logging import RunLogger
from memdiag.core.output import Report, human_size, parse_size
from memdiag.core.reading import Reading

__all__ = [
    "Context",
    "Reading",
    "Report",
    "RunLogger",
    "Settings",
    "human_size",
    "load_settings",
    "parse_size",
]
