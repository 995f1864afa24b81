"""Swap usage, swap activity, and swap sizing recommendations."""

from memdiag.core.config import Settings
from memdiag.core.context import Context
from memdiag.core.output import Report, human_size
from memdiag.core.reading import Reading
from memdiag.errors import CommandError
from memdiag.lib.process import check_tool, run_command
from memdiag.lib.procfs import (
    available_disk_bytes,
    inactive_swap_partitions,
    parse_vmstat_sample,
    read_meminfo,
    supports_hibernation,
)
from memdiag.swap_sizing import MemoryProfile, SwapRecommendation, SwapVerdict, recommend_swap

TITLE = "SWAP USAGE"


def read_swap_activity(context: Context) -> Reading[tuple[str, str]]:
    """Pages swapped in and out per second over a one second vmstat sample."""
    if not check_tool("vmstat", context=context):
        return Reading.unavailable("vmstat not installed")
    try:
        sample = parse_vmstat_sample(run_command(["vmstat", "1", "2"], context=context))
    except CommandError as e:
        return Reading.unavailable(str(e))
    if "si" not in sample or "so" not in sample:
        return Reading.unavailable("unexpected vmstat output")
    return Reading.ok((sample["si"], sample["so"]))


def build_profile(context: Context) -> Reading[MemoryProfile]:
    reading = read_meminfo(context)
    if not reading.available:
        return Reading.unavailable(reading.reason)
    return Reading.ok(MemoryProfile.from_meminfo(reading.value, supports_hibernation(context)))


def render_current_swap(report: Report, context: Context, profile: MemoryProfile) -> None:
    if profile.swap_total_bytes == 0:
        report.alert("No swap configured. System more vulnerable to OOM when memory pressure is high.")
        return

    swap_pct = profile.swap_used_bytes * 100 / profile.swap_total_bytes
    report.metric("Current Swap:", human_size(profile.swap_total_bytes), "Total configured swap space")
    report.metric("Used Swap:", human_size(profile.swap_used_bytes), f"({report.percent(swap_pct)})")
    report.metric("Free Swap:", human_size(profile.swap_free_bytes))

    activity = read_swap_activity(context)
    report.line()
    report.comment("Current swapping activity (pages/sec)")
    if not activity.available:
        report.not_available("Swap activity", activity.reason)
        return
    swap_in, swap_out = activity.value
    report.metric("Swap In:", swap_in, "Higher values indicate memory pressure")
    report.metric("Swap Out:", swap_out, "Higher values indicate memory pressure")


def render_recommendation(report: Report, profile: MemoryProfile, recommendation: SwapRecommendation) -> None:
    report.metric(
        "Recommended:", human_size(recommendation.recommended_bytes),
        f"Based on {profile.total_gib:.1f} GiB RAM",
    )
    if profile.supports_hibernation:
        report.metric(
            "Hibernation:", human_size(recommendation.hibernation_bytes),
            "Additional swap needed for hibernation",
        )

    verdict = recommendation.verdict
    if verdict is SwapVerdict.ADEQUATE:
        report.ok("Current swap space meets or exceeds recommendations")
        return

    report.metric(
        "Additional:", human_size(recommendation.additional_needed_bytes),
        "No swap configured, all of it is needed" if recommendation.no_swap else "More swap recommended",
    )
    if verdict is SwapVerdict.GROW_SWAP:
        report.ok("Sufficient disk space available to create additional swap")
        report.comment("To create a swap file:")
        for command in recommendation.swap_file_commands():
            report.line(command)
    else:
        report.alert("✗ Insufficient disk space to create recommended swap")


def render(report: Report, context: Context, settings: Settings) -> None:
    report.header(TITLE)
    report.comment("High swap usage with frequent swapping indicates memory pressure.")
    report.comment("If system is heavily swapping, OOM can occur due to thrashing.")

    profile_reading = build_profile(context)
    if not profile_reading.available:
        report.not_available("Swap information", profile_reading.reason)
        return
    profile = profile_reading.value

    render_current_swap(report, context, profile)

    report.line()
    report.comment("Potential Swap Analysis")

    partitions = inactive_swap_partitions(context)
    inactive_bytes = 0
    if partitions.available and partitions.value:
        devices = " ".join(device for device, _ in partitions.value)
        report.notice(f"Inactive swap partitions found: {devices}")
        inactive_bytes = sum(size for _, size in partitions.value)
        if inactive_bytes > 0:
            report.metric("Inactive Swap:", human_size(inactive_bytes), "Could be enabled with 'swapon'")
    elif not partitions.available:
        report.unavailable.append(f"Swap partitions: {partitions.reason}")

    disk = available_disk_bytes(context)
    if disk.available:
        report.metric("Disk Space:", human_size(disk.value), "Available for potential swap files")
    else:
        report.not_available("Disk space", disk.reason)

    recommendation = recommend_swap(profile, inactive_bytes, disk.value_or(0))
    render_recommendation(report, profile, recommendation)
