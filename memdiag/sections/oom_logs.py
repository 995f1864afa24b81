"""OOM crash analysis of the last day of system logs."""

from memdiag.core.config import Settings
from memdiag.core.context import Context
from memdiag.core.output import RED, YELLOW, Report
from memdiag.oom_analysis import (
    AnalysisState,
    LogWindow,
    OomAnalysisResult,
    Recommendation,
    RiskFlag,
    analyze_oom_log,
    collect_log_lines,
)

TITLE = "OOM CRASH ANALYSIS (LAST 24 HOURS)"

MAX_KILLED_ROWS = 10

RISK_MESSAGES = {
    RiskFlag.FRAGMENTATION: (
        "critical", "Memory Fragmentation detected", "Monitor higher-order memory pages",
    ),
    RiskFlag.CGROUP_LIMIT: (
        "critical", "Container/Service memory limits exceeded", "Check cgroup memory limits",
    ),
    RiskFlag.SWAP_THRASHING: (
        "critical", "Swap thrashing detected", "Monitor swap activity",
    ),
    RiskFlag.BROWSER_PROCESS: (
        "warning", "Browser processes killed", "Consider limiting browser tabs/instances",
    ),
    RiskFlag.RUNTIME_PROCESS: (
        "warning", "Application runtimes killed", "Check for memory leaks in applications",
    ),
    RiskFlag.CONTAINER_PROCESS: (
        "warning", "Container processes killed", "Adjust container memory limits",
    ),
}


def analyze(context: Context, settings: Settings) -> OomAnalysisResult:
    """Read the configured logs and analyze the last day of OOM activity."""
    window = LogWindow.last_day(context.today())
    lines, logs_found = collect_log_lines(context, settings.log_files, window)
    return analyze_oom_log(lines, logs_found=logs_found, window=window)


def render_result(report: Report, result: OomAnalysisResult, log_files: list[str]) -> None:
    if result.state is AnalysisState.INDETERMINATE:
        report.not_available("System logs", f"none readable of {', '.join(log_files)}")
        report.notice("No system logs found to analyze; OOM history is indeterminate.")
        return

    if result.state is AnalysisState.NO_INCIDENTS:
        report.ok("No OOM killer events detected in the last 24 hours.")
        return

    report.alert(f"Found {result.incident_count} OOM killer events in the last 24 hours.")
    report.line()
    report.comment("Summary of OOM events:")
    report.line(f"OOM Events occurred at: {', '.join(result.invocation_times)}")

    report.line()
    report.comment("Processes killed by the OOM killer:")
    if result.incidents:
        rows = []
        for command, count in result.kills_by_command().most_common(MAX_KILLED_ROWS):
            kills = [i for i in result.incidents if i.killed_command == command]
            last = kills[-1]
            rows.append([
                str(count),
                str(last.killed_pid),
                command,
                f"{max(k.killed_memory_kb for k in kills)} KiB",
            ])
        report.table(
            [("COUNT", 6, ">"), ("LAST PID", 8, "<"), ("COMMAND", 30, "<"), ("MAX RSS", 0, "<")],
            rows,
        )
    else:
        report.line("No killed-process details could be extracted.")

    if result.memory_state or result.cgroup_constraint:
        report.line()
        report.comment("Memory conditions during OOM events:")
        if result.memory_state:
            report.line(f"Memory state: {result.memory_state}")
        if result.cgroup_constraint:
            report.line(f"Cgroup constraint: {result.cgroup_constraint}")

    report.line()
    report.comment("High-risk indicators to monitor:")
    for flag, (severity, text, detail) in RISK_MESSAGES.items():
        if flag not in result.risk_flags:
            continue
        if severity == "critical":
            report.critical(text, detail)
        else:
            report.warning(text, detail)

    report.line()
    report.comment("Recommendations:")
    if Recommendation.FREQUENT_OOM in result.recommendations:
        frequent = report.paint(f"Frequent OOM events ({result.incident_count} in 24h)", RED)
        report.line(f"- {frequent} - Consider increasing total system memory")
    if Recommendation.REPEAT_OFFENDER in result.recommendations:
        repeated = report.paint("Same process killed multiple times", YELLOW)
        report.line(f"- {repeated} - Increase OOM score adjustment to avoid critical services")
    report.line("- Monitor process with high anonymous memory usage (RSS)")
    report.line("- Check for memory leaks in long-running processes")
    report.line("- Verify swap configuration is appropriate")


def render(report: Report, context: Context, settings: Settings) -> None:
    report.header(TITLE)
    report.comment("Analysis of recent OOM killer events to identify recurring issues")
    render_result(report, analyze(context, settings), settings.log_files)
