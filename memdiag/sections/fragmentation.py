"""Buddy allocator free block counts per order."""

from typing import Any

from memdiag.core.config import Settings
from memdiag.core.context import Context
from memdiag.core.output import Report
from memdiag.errors import SourceUnavailable
from memdiag.lib.filesystem import read_file
from memdiag.lib.procfs import parse_buddyinfo

TITLE = "MEMORY FRAGMENTATION"

ORDER_LABELS = ["4KB", "8KB", "16KB", "32KB", "64KB", "128KB", "256KB", "512KB", "1MB", "2MB", "4MB"]

# Order 9 = 2MB with 4KB pages, the size of a huge page
HUGEPAGE_ORDER = 9


def starved_zones(zones: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Normal zones with no free blocks at hugepage order or above."""
    starved = []
    for zone in zones:
        if zone["zone"] != "Normal" or len(zone["counts"]) <= HUGEPAGE_ORDER:
            continue
        if sum(zone["counts"][HUGEPAGE_ORDER:]) == 0:
            starved.append(zone)
    return starved


def render(report: Report, context: Context, settings: Settings) -> None:
    report.header(TITLE)
    report.comment("Fragmentation can cause allocation failures even when free memory exists")
    report.comment("This is particularly important for large contiguous allocations")

    try:
        zones = parse_buddyinfo(read_file("/proc/buddyinfo", context=context))
    except SourceUnavailable as e:
        report.not_available("Memory fragmentation information", str(e))
        return
    if not zones:
        report.not_available("Memory fragmentation information", "no zones in /proc/buddyinfo")
        return

    report.line("Buddy Allocator Information (free blocks by order):")
    report.comment("Higher values in larger orders (right columns) mean less fragmentation")
    report.comment("Order 0: 4KB, each next order doubles (1: 8KB, 2: 16KB, etc.)")

    orders = max(len(zone["counts"]) for zone in zones)
    labels = ORDER_LABELS[:orders] + [f"o{n}" for n in range(len(ORDER_LABELS), orders)]
    report.line("\t".join(["Node", "Zone"] + labels))
    for zone in zones:
        report.line("\t".join([str(zone["node"]), zone["zone"]] + [str(c) for c in zone["counts"]]))

    for zone in starved_zones(zones):
        report.warning(
            f"Node {zone['node']} Normal zone has no free blocks of 2MB or larger",
            "huge page and large contiguous allocations may fail",
        )
