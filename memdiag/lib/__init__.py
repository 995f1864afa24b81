"""Shared readers for memdiag sections."""

from memdiag.lib.filesystem import file_exists, glob_files, read_file, read_int
from memdiag.lib.process import check_tool, run_command

__all__ = [
    "check_tool",
    "file_exists",
    "glob_files",
    "read_file",
    "read_int",
    "run_command",
]
