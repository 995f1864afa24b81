"""System memory overview from /proc/meminfo."""

from memdiag.core.config import Settings
from memdiag.core.context import Context
from memdiag.core.output import Report, human_size
from memdiag.lib.procfs import meminfo_bytes, read_meminfo

TITLE = "SYSTEM MEMORY OVERVIEW"


def render(report: Report, context: Context, settings: Settings) -> None:
    report.header(TITLE)
    report.comment("System memory is the primary resource monitored by the OOM killer.")
    report.comment("High usage percentages (>90%) indicate imminent OOM risk.")

    reading = read_meminfo(context)
    if not reading.available:
        report.not_available("Memory information", reading.reason)
        return
    meminfo = reading.value

    total = meminfo_bytes(meminfo, "MemTotal")
    available = meminfo_bytes(meminfo, "MemAvailable")
    used = total - available
    used_pct = used * 100 / total

    report.metric("Total Memory:", human_size(total))
    report.metric("Used Memory:", human_size(used), f"({report.percent(used_pct)})")
    report.metric("Available Memory:", human_size(available))

    report.line()
    report.comment("Memory breakdown - helps identify what's consuming memory")
    report.metric(
        "Buffers:", human_size(meminfo_bytes(meminfo, "Buffers")),
        "File system metadata, device I/O cache",
    )
    report.metric(
        "Cached:", human_size(meminfo_bytes(meminfo, "Cached")),
        "Page cache, can be reclaimed when needed",
    )
    report.metric(
        "Slab:", human_size(meminfo_bytes(meminfo, "Slab")),
        "Kernel data structures",
    )
