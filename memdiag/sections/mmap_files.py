"""Largest memory-mapped files, from lsof."""

from memdiag.core.config import Settings
from memdiag.core.context import Context
from memdiag.core.output import NOT_AVAILABLE, Report, human_size
from memdiag.core.reading import Reading
from memdiag.errors import CommandError
from memdiag.lib.process import check_tool, run_command

TITLE = "MEMORY-MAPPED FILES"


def parse_lsof_mem(stdout: str) -> list[tuple[int, str, str]]:
    """
    Unique (pid, process, path) triples from ``lsof -a -d mem``.

    Columns: COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME
    """
    seen = set()
    mappings = []
    for line in stdout.strip().split("\n")[1:]:
        if "can't stat() fuse" in line:
            continue
        parts = line.split(None, 8)
        if len(parts) < 9 or not parts[1].isdigit():
            continue
        entry = (int(parts[1]), parts[0], parts[8])
        if entry in seen:
            continue
        seen.add(entry)
        mappings.append(entry)
    return mappings


def read_mappings(context: Context, limit: int) -> Reading[list[tuple[int, str, str, int | None]]]:
    """Mapped files with their size, largest first; unstattable files sort last."""
    if not check_tool("lsof", context=context):
        return Reading.unavailable("lsof command not available")
    try:
        stdout = run_command(["lsof", "-a", "-d", "mem"], context=context)
    except CommandError as e:
        return Reading.unavailable(str(e))

    sized = []
    for pid, process, path in parse_lsof_mem(stdout):
        try:
            size = context.file_size(path)
        except OSError:
            size = None
        sized.append((pid, process, path, size))
    sized.sort(key=lambda m: (m[3] is None, -(m[3] or 0), m[0]))
    return Reading.ok(sized[:limit])


def render(report: Report, context: Context, settings: Settings) -> None:
    report.header(TITLE)
    report.comment("Large memory-mapped files can consume significant address space")

    reading = read_mappings(context, settings.top_mmaps)
    if not reading.available:
        report.not_available("Memory-mapped file information", reading.reason)
        return

    report.comment(f"Top {settings.top_mmaps} mapped files by size")
    report.table(
        [("PID", 8, "<"), ("PROCESS", 12, "<"), ("SIZE", 10, ">"), ("FILE PATH", 0, "<")],
        [
            [str(pid), process, human_size(size) if size is not None else NOT_AVAILABLE, path]
            for pid, process, path, size in reading.value
        ],
    )
