"""Memory pressure indicators: PSI, page fault rates, and reclaim counters."""

from memdiag.core.config import Settings
from memdiag.core.context import Context
from memdiag.core.output import NOT_AVAILABLE, Report
from memdiag.core.reading import Reading
from memdiag.errors import SourceUnavailable
from memdiag.lib.filesystem import read_file
from memdiag.lib.procfs import parse_pressure_file, read_vmstat

TITLE = "MEMORY PRESSURE INDICATORS"


def sample_fault_rates(context: Context, interval: float) -> Reading[tuple[int, int]]:
    """
    Minor and major page faults per second.

    Samples pgfault/pgmajfault from /proc/vmstat twice, interval seconds
    apart. pgfault counts both kinds, so minor = pgfault - pgmajfault.
    """
    first = read_vmstat(context)
    if not first.available:
        return Reading.unavailable(first.reason)
    context.sleep(interval)
    second = read_vmstat(context)
    if not second.available:
        return Reading.unavailable(second.reason)

    before, after = first.value, second.value
    if "pgfault" not in after or "pgmajfault" not in after:
        return Reading.unavailable("/proc/vmstat has no page fault counters")

    faults = after["pgfault"] - before.get("pgfault", 0)
    major = after["pgmajfault"] - before.get("pgmajfault", 0)
    seconds = interval if interval > 0 else 1.0
    return Reading.ok((round((faults - major) / seconds), round(major / seconds)))


def allocation_stalls(vmstat: dict[str, int]) -> int | None:
    """Sum of allocstall counters; newer kernels split them per zone."""
    stalls = [value for key, value in vmstat.items() if key.startswith("allocstall")]
    return sum(stalls) if stalls else None


def render_psi(report: Report, context: Context) -> None:
    try:
        content = read_file("/proc/pressure/memory", context=context)
    except SourceUnavailable as e:
        report.not_available("PSI (Pressure Stall Information)", str(e))
        return

    report.comment("PSI (Pressure Stall Information) metrics show time processes spent stalled due to memory")
    for kind, values in parse_pressure_file(content).items():
        averages = " ".join(
            f"{key}={values[key]:.2f}" for key in ("avg10", "avg60", "avg300")
            if isinstance(values.get(key), float)
        )
        report.metric(f"{kind}:", averages, f"total={values.get('total', NOT_AVAILABLE)}us")


def render(report: Report, context: Context, settings: Settings) -> None:
    report.header(TITLE)
    report.comment("These metrics show if the system is under memory pressure before OOM occurs")

    render_psi(report, context)

    rates = sample_fault_rates(context, settings.sample_interval)
    report.line()
    report.comment("Page Faults/sec (high major faults indicate heavy swapping)")
    if rates.available:
        minor, major = rates.value
        report.metric("Minor Faults:", str(minor), "Resolved without disk I/O, low impact")
        report.metric("Major Faults:", str(major), "Require disk I/O, high impact, can lead to OOM")
    else:
        report.not_available("Page fault rates", rates.reason)

    vmstat = read_vmstat(context)
    report.line()
    report.comment("VM Statistics related to OOM")
    if not vmstat.available:
        report.not_available("/proc/vmstat", vmstat.reason)
        return

    report.comment("High allocstall/kswapd values indicate severe memory pressure")
    counters = vmstat.value
    stalls = allocation_stalls(counters)
    oom_kills = counters.get("oom_kill", 0)
    report.metric("Page major faults:", str(counters.get("pgmajfault", NOT_AVAILABLE)), "Since boot")
    report.metric(
        "Allocation stalls:", NOT_AVAILABLE if stalls is None else str(stalls),
        "Times memory reclaim was triggered",
    )
    report.metric("OOM kills:", str(oom_kills), "Processes killed by OOM killer")

    if oom_kills > 0:
        report.alert(f"OOM killer has been active {oom_kills} times since boot!")
