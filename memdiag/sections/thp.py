"""Transparent huge page settings."""

from memdiag.core.config import Settings
from memdiag.core.context import Context
from memdiag.core.output import Report
from memdiag.errors import SourceUnavailable
from memdiag.lib.filesystem import read_file

TITLE = "TRANSPARENT HUGE PAGES"

THP_DIR = "/sys/kernel/mm/transparent_hugepage"


def selected_mode(content: str) -> str:
    """The bracketed choice in 'always [madvise] never', or the raw text."""
    for word in content.split():
        if word.startswith("[") and word.endswith("]"):
            return word[1:-1]
    return content.strip()


def render(report: Report, context: Context, settings: Settings) -> None:
    report.header(TITLE)
    report.comment("THP can increase memory usage but improve performance")
    report.comment("If enabled, memory usage may be higher than expected")

    try:
        enabled = read_file(f"{THP_DIR}/enabled", context=context).strip()
    except SourceUnavailable as e:
        report.not_available("Transparent Huge Pages information", str(e))
        return

    report.metric("THP Status:", selected_mode(enabled), f"For all memory allocations ({enabled})")

    defrag = read_file(f"{THP_DIR}/defrag", context=context, default="").strip()
    if defrag:
        report.metric("THP Defrag:", selected_mode(defrag), f"Compaction on fault ({defrag})")
