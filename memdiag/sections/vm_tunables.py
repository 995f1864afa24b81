"""Virtual memory sysctls that shape OOM behavior."""

from memdiag.core.config import Settings
from memdiag.core.context import Context
from memdiag.core.output import NOT_AVAILABLE, Report, human_size
from memdiag.lib.filesystem import read_file

TITLE = "VIRTUAL MEMORY METRICS"

SYSCTL_DIR = "/proc/sys/vm"


def read_sysctl(context: Context, name: str) -> str:
    """Value of vm.<name>, or N/A when it can't be read."""
    value = read_file(f"{SYSCTL_DIR}/{name}", context=context, default="").strip()
    return value or NOT_AVAILABLE


def render(report: Report, context: Context, settings: Settings) -> None:
    report.header(TITLE)
    report.comment("VM tuning parameters affect OOM behavior and memory management")

    report.line()
    report.comment("VM Overcommit setting")
    report.comment("0=Heuristic overcommit, 1=Always allow, 2=Strict, limited by overcommit_ratio")
    overcommit = read_sysctl(context, "overcommit_memory")
    report.metric("vm.overcommit_memory:", overcommit, "How the kernel handles memory allocation requests")
    if overcommit == "2":
        ratio = read_sysctl(context, "overcommit_ratio")
        report.metric("vm.overcommit_ratio:", f"{ratio}%", "Percentage of RAM to allow for overcommit")

    report.line()
    report.comment("OOM Killer adjustment")
    report.comment("Controls how aggressively the OOM killer selects processes to kill")
    report.metric(
        "vm.oom_kill_allocating_task:", read_sysctl(context, "oom_kill_allocating_task"),
        "1=Kill requestor, 0=Select based on score",
    )

    report.line()
    report.comment("Swappiness - lower values reduce swap usage")
    report.metric(
        "vm.swappiness:", read_sysctl(context, "swappiness"),
        "0-100, lower=less swapping, higher=more aggressive swap",
    )

    report.line()
    report.comment("Min Free KB - memory reserved for critical allocations")
    min_free_kb = read_sysctl(context, "min_free_kbytes")
    if min_free_kb.isdigit():
        report.metric("vm.min_free_kbytes:", f"{min_free_kb} KB", f"({human_size(int(min_free_kb) * 1024)})")
    else:
        report.metric("vm.min_free_kbytes:", NOT_AVAILABLE)
