"""Top memory-consuming processes and OOM score ranking."""

import os
from dataclasses import dataclass

from memdiag.core.config import Settings
from memdiag.core.context import Context
from memdiag.core.output import NOT_AVAILABLE, Report, human_kib, truncate
from memdiag.core.reading import Reading
from memdiag.errors import CommandError, MalformedSample, SourceUnavailable
from memdiag.lib.filesystem import glob_files, read_file, read_int
from memdiag.lib.process import check_tool, run_command

TITLE = "TOP MEMORY-CONSUMING PROCESSES"

PS_COMMAND_WIDTH = 40
OOM_COMMAND_WIDTH = 50


@dataclass
class ProcessUsage:
    """One row of ``ps aux``; sizes in KiB."""

    pid: int
    rss_kb: int
    vsz_kb: int
    mem_percent: str
    command: str


@dataclass
class OomScore:
    pid: int
    score: int
    adj: str
    command: str


def _kib(value: str) -> int:
    """ps sizes may come back in scientific notation on some locales."""
    try:
        return int(float(value))
    except ValueError:
        raise MalformedSample(f"Invalid size: {value!r}")


def parse_ps_aux(stdout: str) -> list[ProcessUsage]:
    """
    Parse ``ps aux`` output.

    Columns: USER PID %CPU %MEM VSZ RSS TTY STAT START TIME COMMAND
    """
    processes = []
    for line in stdout.strip().split("\n")[1:]:
        parts = line.split(None, 10)
        if len(parts) < 11:
            continue
        try:
            processes.append(ProcessUsage(
                pid=int(parts[1]),
                rss_kb=_kib(parts[5]),
                vsz_kb=_kib(parts[4]),
                mem_percent=parts[3],
                command=parts[10],
            ))
        except (ValueError, MalformedSample):
            continue
    return processes


def read_top_processes(context: Context, limit: int) -> Reading[list[ProcessUsage]]:
    if not check_tool("ps", context=context):
        return Reading.unavailable("ps command not available")
    try:
        stdout = run_command(["ps", "aux", "--sort=-%mem"], context=context)
    except CommandError as e:
        return Reading.unavailable(str(e))
    return Reading.ok(parse_ps_aux(stdout)[:limit])


def process_command(context: Context, pid: int) -> str:
    """Command line of a process, falling back to its comm name."""
    cmdline = read_file(f"/proc/{pid}/cmdline", context=context, default="")
    command = cmdline.replace("\0", " ").strip()
    if command:
        return command
    comm = read_file(f"/proc/{pid}/comm", context=context, default="").strip()
    return comm or "unknown"


def read_oom_scores(context: Context, limit: int) -> list[OomScore]:
    """Processes with the highest OOM score, highest first."""
    scores = []
    for path in glob_files("/proc/[0-9]*/oom_score", context=context):
        pid_dir = os.path.basename(os.path.dirname(path))
        if not pid_dir.isdigit():
            continue
        pid = int(pid_dir)
        try:
            score = read_int(path, context=context)
        except (SourceUnavailable, MalformedSample):
            # Process exited between listing and reading
            continue
        adj = read_file(f"/proc/{pid}/oom_score_adj", context=context, default=NOT_AVAILABLE).strip()
        scores.append(OomScore(
            pid=pid,
            score=score,
            adj=adj,
            command=truncate(process_command(context, pid), OOM_COMMAND_WIDTH),
        ))
    scores.sort(key=lambda s: (-s.score, s.pid))
    return scores[:limit]


def render(report: Report, context: Context, settings: Settings) -> None:
    report.header(TITLE)
    report.comment("These processes are the most likely candidates for the OOM killer")
    report.comment("Processes with high RSS and low shared memory consume more physical RAM")
    report.comment("RSS (Resident Set Size) is the physical RAM a process is currently using.")
    report.comment("VSZ (Virtual Size) is the total virtual memory a process has allocated,")
    report.comment("including memory swapped out or never touched.")
    report.comment("A very high VSZ can indicate a memory leak, even if the RSS is reasonable.")

    top = read_top_processes(context, settings.top_processes)
    if not top.available:
        report.not_available("Process information", top.reason)
    else:
        report.table(
            [("PID", 7, "<"), ("RSS", 9, ">"), ("VSZ", 9, ">"), ("%MEM", 6, "<"), ("COMMAND", 0, "<")],
            [
                [
                    str(p.pid),
                    human_kib(p.rss_kb),
                    human_kib(p.vsz_kb),
                    p.mem_percent,
                    truncate(p.command, PS_COMMAND_WIDTH),
                ]
                for p in top.value
            ],
        )

    report.line()
    report.comment("OOM Score: Higher values (e.g., 1000) are more likely to be killed by the OOM killer")
    report.comment(f"Top {settings.top_oom_scores} processes by OOM score")
    scores = read_oom_scores(context, settings.top_oom_scores)
    if not scores:
        report.not_available("OOM scores", "no readable /proc/<pid>/oom_score")
        return
    report.table(
        [("PID", 8, "<"), ("OOM SCORE", 10, ">"), ("OOM ADJ", 8, "<"), ("COMMAND", 0, "<")],
        [[str(s.pid), str(s.score), s.adj, s.command] for s in scores],
    )
