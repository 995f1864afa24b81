"""Cgroups with the highest current memory usage."""

import os

from memdiag.core.config import Settings
from memdiag.core.context import Context
from memdiag.core.output import Report, human_size
from memdiag.errors import MalformedSample, SourceUnavailable
from memdiag.lib.filesystem import file_exists, glob_files, read_int

TITLE = "TOP CGROUP MEMORY CONSUMERS"

CGROUP_ROOT = "/sys/fs/cgroup"

PATH_WIDTH = 60
VALUE_WIDTH = 15


def detect_cgroup_version(context: Context) -> int | None:
    """
    2 for the unified hierarchy, 1 for a v1 memory controller, else None.

    v2 wins when both are mounted (hybrid setups).
    """
    if file_exists(f"{CGROUP_ROOT}/cgroup.controllers", context=context):
        return 2
    if file_exists(f"{CGROUP_ROOT}/memory/memory.usage_in_bytes", context=context):
        return 1
    return None


def top_cgroups(context: Context, version: int, limit: int) -> list[tuple[str, int]]:
    """(cgroup path, bytes) pairs sorted by usage, highest first."""
    if version == 2:
        pattern = f"{CGROUP_ROOT}/**/memory.current"
    else:
        pattern = f"{CGROUP_ROOT}/memory/**/memory.usage_in_bytes"

    usage = []
    for path in glob_files(pattern, context=context, recursive=True):
        try:
            value = read_int(path, context=context)
        except (SourceUnavailable, MalformedSample):
            continue
        usage.append((os.path.dirname(path), value))
    usage.sort(key=lambda u: (-u[1], u[0]))
    return usage[:limit]


def render(report: Report, context: Context, settings: Settings) -> None:
    report.header(f"TOP {settings.top_cgroups} CGROUP MEMORY CONSUMERS")
    report.comment("Containers and services with highest memory usage that may trigger local OOM events")

    version = detect_cgroup_version(context)
    if version is None:
        report.not_available("Cgroup memory information", f"no memory controller under {CGROUP_ROOT}")
        return

    report.line(f"Using cgroup v{version}")
    column = "MEMORY.CURRENT" if version == 2 else "MEMORY.USAGE"
    rows = [
        [path, human_size(value)]
        for path, value in top_cgroups(context, version, settings.top_cgroups)
    ]
    report.table([("CGROUP PATH", PATH_WIDTH, "<"), (column, VALUE_WIDTH, ">")], rows)
