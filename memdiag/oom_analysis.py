"""
OOM-killer incident analysis over a window of system log lines.

The analyzer is a pure function of the lines it is given and of the
window they were selected with; reading the logs and choosing the
window is done by collect_log_lines().

Recognized kernel messages:

    <proc> invoked oom-killer: gfp_mask=..., order=0, oom_score_adj=0
    Out of memory: Killed process 1234 (java) total-vm:..kB, anon-rss:..kB, ...
    Memory cgroup out of memory: Killed process 1234 (node) ...
    Node 0 Normal free:1234kB boost:0kB min:..kB low:..kB high:..kB ...
    <proc>: page allocation failure: order:4, mode:...
    oom-kill:constraint=CONSTRAINT_MEMCG,...,oom_memcg=/docker/...
"""

import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Iterable

from memdiag.errors import SourceUnavailable
from memdiag.lib.filesystem import file_exists, read_file

if TYPE_CHECKING:
    from memdiag.core.context import Context

DEFAULT_LOG_FILES = [
    "/var/log/kern.log",
    "/var/log/syslog",
    "/var/log/messages",
    "/var/log/dmesg",
]

OOM_MARKERS = (
    "invoked oom-killer",
    "Killed process",
    "Out of memory",
    "page allocation failure",
    "Memory cgroup out of memory",
    "Normal free:",
    "oom-kill:",
    "Task in ",
)

FREQUENT_OOM_THRESHOLD = 3

_KILLED_RE = re.compile(r"Killed process (\d+) \(([^)]*)\)(.*)")
_RSS_RE = re.compile(r"\b(anon|file|shmem)-rss:(\d+)\s*kB")
_FIRST_KB_RE = re.compile(r"(\d+)\s*kB")
_ZONE_RE = re.compile(r"Normal free:\s*(\d+)kB.*?\blow:\s*(\d+)kB")
_MEMCG_RE = re.compile(r"oom-kill:constraint=(\w+).*?oom_memcg=([^,\s]+)")

_SYSLOG_TS_RE = re.compile(r"^([A-Z][a-z]{2})\s+(\d{1,2})\s+(\d{2}:\d{2}:\d{2})")
_ISO_TS_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})[T ](\d{2}:\d{2}:\d{2})")
_DMESG_TS_RE = re.compile(
    r"^\[(?:[A-Z][a-z]{2}\s+)?([A-Z][a-z]{2})\s+(\d{1,2})\s+(\d{2}:\d{2}:\d{2})\s+(\d{4})\]"
)
_UPTIME_TS_RE = re.compile(r"^\[\s*\d+\.\d+\]")

_MONTHS = {
    name: number
    for number, name in enumerate(
        ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
         "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"],
        start=1,
    )
}


class RiskFlag(Enum):
    """High-risk indicators found in the analyzed log window."""

    FRAGMENTATION = "fragmentation"
    CGROUP_LIMIT = "cgroup-limit"
    SWAP_THRASHING = "swap-thrashing"
    BROWSER_PROCESS = "browser-process"
    RUNTIME_PROCESS = "runtime-process"
    CONTAINER_PROCESS = "container-process"


# Case-sensitive substrings of the killed command
PROCESS_CLASSES = {
    RiskFlag.BROWSER_PROCESS: ("chrome", "firefox", "browser"),
    RiskFlag.RUNTIME_PROCESS: ("java", "python", "node", "ruby"),
    RiskFlag.CONTAINER_PROCESS: ("docker", "containerd", "kube"),
}


class Recommendation(Enum):
    FREQUENT_OOM = "frequent OOM events, consider more memory"
    REPEAT_OFFENDER = "same process repeatedly killed, consider OOM-score adjustment"


class AnalysisState(Enum):
    """Outcome of an analysis; INDETERMINATE means no log could be read."""

    INDETERMINATE = "indeterminate"
    NO_INCIDENTS = "no-incidents"
    INCIDENTS = "incidents"


@dataclass(frozen=True)
class LogWindow:
    """Inclusive range of calendar dates a log line must fall in."""

    start: date
    end: date

    @classmethod
    def last_day(cls, today: date) -> "LogWindow":
        """Yesterday and today, the usual proxy for the last 24 hours."""
        return cls(start=today - timedelta(days=1), end=today)

    def dates(self) -> list[date]:
        days = (self.end - self.start).days
        return [self.start + timedelta(days=n) for n in range(days + 1)]

    def year_for(self, month: int, day: int) -> int:
        """Year of a yearless syslog stamp, taken from the matching window date."""
        for d in self.dates():
            if (d.month, d.day) == (month, day):
                return d.year
        return self.end.year

    def contains(self, line: str) -> bool:
        """
        True if the line's timestamp falls in the window.

        Lines without a calendar timestamp (e.g. uptime-stamped dmesg
        output) can't be placed and are kept.
        """
        m = _ISO_TS_RE.match(line)
        if m:
            try:
                stamp = date.fromisoformat(m.group(1))
            except ValueError:
                return False
            return self.start <= stamp <= self.end

        m = _DMESG_TS_RE.match(line)
        if m:
            month = _MONTHS.get(m.group(1))
            if month is None:
                return False
            try:
                stamp = date(int(m.group(4)), month, int(m.group(2)))
            except ValueError:
                return False
            return self.start <= stamp <= self.end

        m = _SYSLOG_TS_RE.match(line)
        if m:
            month = _MONTHS.get(m.group(1))
            day = int(m.group(2))
            return any((d.month, d.day) == (month, day) for d in self.dates())

        return True


@dataclass(frozen=True)
class OomIncident:
    """One process killed by the OOM killer."""

    timestamp: datetime | None
    killed_pid: int
    killed_command: str
    killed_memory_kb: int
    raw_line: str = ""


@dataclass(frozen=True)
class OomAnalysisResult:
    """Aggregate of the OOM activity found in a log window."""

    state: AnalysisState
    incident_count: int = 0
    invocation_times: tuple[str, ...] = ()
    incidents: tuple[OomIncident, ...] = ()
    risk_flags: frozenset[RiskFlag] = field(default_factory=frozenset)
    repeat_offender_count: int = 0
    memory_state: str | None = None
    cgroup_constraint: str | None = None
    recommendations: tuple[Recommendation, ...] = ()

    @property
    def logs_found(self) -> bool:
        return self.state is not AnalysisState.INDETERMINATE

    def kills_by_command(self) -> Counter:
        """Number of kills per command name."""
        return Counter(incident.killed_command for incident in self.incidents)


def parse_log_timestamp(line: str, window: LogWindow | None = None) -> datetime | None:
    """
    Best-effort timestamp of a log line.

    Syslog stamps carry no year; the year is taken from the window, and
    without a window such stamps are left unparsed.
    """
    m = _ISO_TS_RE.match(line)
    if m:
        try:
            return datetime.fromisoformat(f"{m.group(1)}T{m.group(2)}")
        except ValueError:
            return None

    m = _DMESG_TS_RE.match(line)
    if m:
        month = _MONTHS.get(m.group(1))
        if month is None:
            return None
        hour, minute, second = (int(x) for x in m.group(3).split(":"))
        try:
            return datetime(int(m.group(4)), month, int(m.group(2)), hour, minute, second)
        except ValueError:
            return None

    m = _SYSLOG_TS_RE.match(line)
    if m and window is not None:
        month = _MONTHS.get(m.group(1))
        if month is None:
            return None
        day = int(m.group(2))
        hour, minute, second = (int(x) for x in m.group(3).split(":"))
        try:
            return datetime(window.year_for(month, day), month, day, hour, minute, second)
        except ValueError:
            return None

    return None


def parse_killed_process(line: str, window: LogWindow | None = None) -> OomIncident | None:
    """
    Extract an OomIncident from a "Killed process" line.

    Returns None when the line lacks a pid, command, or memory figure.
    """
    m = _KILLED_RE.search(line)
    if not m:
        return None

    pid = int(m.group(1))
    command = m.group(2).strip()
    rest = m.group(3)
    if not command:
        return None

    rss = _RSS_RE.findall(rest)
    if rss:
        memory_kb = sum(int(kb) for _, kb in rss)
    else:
        kb_match = _FIRST_KB_RE.search(rest)
        if not kb_match:
            return None
        memory_kb = int(kb_match.group(1))

    return OomIncident(
        timestamp=parse_log_timestamp(line, window),
        killed_pid=pid,
        killed_command=command,
        killed_memory_kb=memory_kb,
        raw_line=line.strip(),
    )


def _timestamp_text(line: str) -> str:
    """The timestamp prefix of a log line as written, or "unknown time"."""
    for pattern in (_ISO_TS_RE, _DMESG_TS_RE, _SYSLOG_TS_RE, _UPTIME_TS_RE):
        m = pattern.match(line)
        if m:
            return m.group(0)
    return "unknown time"


def _zone_below_low_watermark(line: str) -> bool:
    m = _ZONE_RE.search(line)
    return bool(m) and int(m.group(1)) < int(m.group(2))


def _message_from(line: str, marker: str) -> str:
    return line[line.index(marker):].strip()


def analyze_oom_log(
    lines: Iterable[str],
    logs_found: bool = True,
    window: LogWindow | None = None,
) -> OomAnalysisResult:
    """
    Analyze log lines for OOM-killer activity.

    Args:
        lines: Log lines already restricted to the analysis window
        logs_found: False when no log source could be read at all
        window: Window the lines were selected with; supplies the year
            for syslog timestamps

    Returns:
        OomAnalysisResult. With logs_found=False the state is
        INDETERMINATE; with no killer invocation it is NO_INCIDENTS and
        carries no incidents, flags, or recommendations.
    """
    if not logs_found:
        return OomAnalysisResult(state=AnalysisState.INDETERMINATE)

    incident_count = 0
    invocation_times: list[str] = []
    incidents: list[OomIncident] = []
    flags: set[RiskFlag] = set()
    memory_state = None
    cgroup_constraint = None

    for line in lines:
        if "invoked oom-killer" in line:
            incident_count += 1
            invocation_times.append(_timestamp_text(line))

        if "Killed process" in line:
            incident = parse_killed_process(line, window)
            if incident is not None:
                incidents.append(incident)

        if "page allocation failure" in line:
            flags.add(RiskFlag.FRAGMENTATION)

        if "Memory cgroup out of memory" in line:
            flags.add(RiskFlag.CGROUP_LIMIT)

        if "Normal free:" in line:
            if incident_count and memory_state is None:
                memory_state = _message_from(line, "Normal free:")
            if _zone_below_low_watermark(line):
                flags.add(RiskFlag.SWAP_THRASHING)

        if cgroup_constraint is None:
            if "Task in " in line:
                cgroup_constraint = _message_from(line, "Task in ")
            else:
                m = _MEMCG_RE.search(line)
                if m and m.group(1) != "CONSTRAINT_NONE":
                    cgroup_constraint = f"{m.group(1)} oom_memcg={m.group(2)}"

    if incident_count == 0:
        return OomAnalysisResult(state=AnalysisState.NO_INCIDENTS)

    for flag, needles in PROCESS_CLASSES.items():
        if any(needle in incident.killed_command for incident in incidents for needle in needles):
            flags.add(flag)

    incidents.sort(key=lambda i: (i.timestamp is None, i.timestamp or datetime.min))
    counts = Counter(incident.killed_command for incident in incidents)
    repeat_offender_count = max(counts.values(), default=0)

    recommendations = []
    if incident_count > FREQUENT_OOM_THRESHOLD:
        recommendations.append(Recommendation.FREQUENT_OOM)
    if repeat_offender_count > 1:
        recommendations.append(Recommendation.REPEAT_OFFENDER)

    return OomAnalysisResult(
        state=AnalysisState.INCIDENTS,
        incident_count=incident_count,
        invocation_times=tuple(invocation_times),
        incidents=tuple(incidents),
        risk_flags=frozenset(flags),
        repeat_offender_count=repeat_offender_count,
        memory_state=memory_state,
        cgroup_constraint=cgroup_constraint,
        recommendations=tuple(recommendations),
    )


def collect_log_lines(
    context: "Context",
    paths: list[str],
    window: LogWindow,
) -> tuple[list[str], bool]:
    """
    Gather OOM-related lines inside the window from every readable log.

    All present files are scanned and merged. Repeated lines within one
    file are all kept; a kernel message logged to several files (kern.log
    and syslog on Debian) is kept as often as the file repeating it most.

    Returns:
        (lines, logs_found) where logs_found is False if none of the
        paths could be read
    """
    logs_found = False
    kept: Counter[str] = Counter()
    lines: list[str] = []

    for path in paths:
        if not file_exists(path, context=context):
            continue
        try:
            content = read_file(path, context=context)
        except SourceUnavailable:
            continue
        logs_found = True

        in_file: Counter[str] = Counter()
        for line in content.splitlines():
            if not any(marker in line for marker in OOM_MARKERS):
                continue
            if not window.contains(line):
                continue
            in_file[line] += 1
            if in_file[line] > kept[line]:
                kept[line] += 1
                lines.append(line)

    return lines, logs_found

