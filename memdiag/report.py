"""Report passes and the watch loop."""

from datetime import datetime
from typing import Callable

from memdiag.core.config import Settings
from memdiag.core.context import Context
from memdiag.core.logging import RunLogger
from memdiag.core.output import MAGENTA, Report
from memdiag.errors import MalformedSample, SourceUnavailable
from memdiag.sections import SECTIONS

CLEAR_SCREEN = "\033[2J\033[H"

RISK_FACTORS = [
    "High memory usage (>90%)",
    "High swap usage with active swapping",
    "High memory pressure indicators",
    "High OOM scores for critical processes",
    "Memory fragmentation with low availability of higher order pages",
    "Constrained cgroup limits",
    "Memory overcommit issues or too-small min_free_kbytes",
]


def render_summary(report: Report) -> None:
    report.line()
    report.banner("MEMORY USAGE SUMMARY")
    report.comment("OOM risks increase with:")
    for number, factor in enumerate(RISK_FACTORS, 1):
        report.comment(f"{number}. {factor}")


def run_pass(
    context: Context,
    settings: Settings,
    logger: RunLogger | None = None,
    now: datetime | None = None,
) -> Report:
    """
    Build one full report.

    Every section runs even if an earlier one fails; a source error that
    escapes a section is shown as "not available" for that section.

    Args:
        context: Execution context
        settings: Report settings
        logger: Run log for pass events and unavailable sources
        now: Timestamp printed under the banner (default: current time)

    Returns:
        The filled report
    """
    if logger is None:
        logger = RunLogger()
    if now is None:
        now = datetime.now()

    report = Report(color=settings.color)
    report.banner("COMPREHENSIVE MEMORY USAGE MONITOR")
    report.line(report.paint("Press Ctrl+C to exit", MAGENTA))
    report.line(f"Date: {now:%a %b %d %H:%M:%S %Y}")

    logger.info("Report pass started", sections=len(SECTIONS))
    for section in SECTIONS:
        seen = len(report.unavailable)
        report.line()
        try:
            section.render(report, context, settings)
        except (SourceUnavailable, MalformedSample) as e:
            report.not_available(section.TITLE, str(e))
        for entry in report.unavailable[seen:]:
            what, _, reason = entry.partition(": ")
            logger.warning(f"{what} not available", section=section.TITLE, reason=reason or None)

    render_summary(report)
    logger.info(
        "Report pass finished",
        unavailable=len(report.unavailable),
        warnings=len(report.warnings),
    )
    return report


def watch(
    context: Context,
    settings: Settings,
    interval: float,
    logger: RunLogger | None = None,
    emit: Callable[[str], None] = print,
    passes: int | None = None,
) -> None:
    """
    Print a fresh report every interval seconds.

    Runs until interrupted, or for ``passes`` iterations when given.
    """
    count = 0
    while passes is None or count < passes:
        emit(CLEAR_SCREEN + run_pass(context, settings, logger).render())
        count += 1
        if passes is not None and count >= passes:
            break
        context.sleep(interval)
