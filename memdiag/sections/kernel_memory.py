"""Kernel slab memory and the largest SLUB caches."""

import os

from memdiag.core.config import Settings
from memdiag.core.context import Context
from memdiag.core.output import Report, human_size
from memdiag.errors import MalformedSample, SourceUnavailable
from memdiag.lib.filesystem import glob_files, read_int
from memdiag.lib.procfs import meminfo_bytes, read_meminfo

TITLE = "KERNEL MEMORY DETAILS"


def largest_slab_caches(context: Context, limit: int) -> list[tuple[str, int]]:
    """SLUB caches with the largest object size, as (name, bytes)."""
    caches = []
    for path in glob_files("/sys/kernel/slab/*/object_size", context=context):
        try:
            size = read_int(path, context=context)
        except (SourceUnavailable, MalformedSample):
            continue
        caches.append((os.path.basename(os.path.dirname(path)), size))
    caches.sort(key=lambda c: (-c[1], c[0]))
    return caches[:limit]


def render(report: Report, context: Context, settings: Settings) -> None:
    report.header(TITLE)
    report.comment("Kernel memory leaks or excessive usage can trigger OOM even with free userspace memory")

    reading = read_meminfo(context)
    if reading.available:
        meminfo = reading.value
        sreclaimable = meminfo_bytes(meminfo, "SReclaimable")
        sunreclaim = meminfo_bytes(meminfo, "SUnreclaim")

        report.comment("High SReclaimable vs SUnreclaim ratio is healthy")
        report.metric("SReclaimable:", human_size(sreclaimable), "Kernel memory that can be reclaimed")
        report.metric("SUnreclaim:", human_size(sunreclaim), "Kernel memory that cannot be reclaimed")
        report.metric(
            "KernelStack:", human_size(meminfo_bytes(meminfo, "KernelStack")),
            "Memory used by kernel stacks",
        )
        report.metric("Slab:", human_size(meminfo_bytes(meminfo, "Slab")), "Total kernel slab memory usage")
        if sunreclaim > 0:
            report.metric("Reclaimable/Unreclaimable:", f"{sreclaimable / sunreclaim:.2f}x", "Higher is better")
    else:
        report.not_available("Kernel memory information", reading.reason)

    caches = largest_slab_caches(context, settings.top_slabs)
    if caches:
        report.line()
        report.comment(f"Top {len(caches)} kernel SLUB allocators by object size")
        for name, size in caches:
            report.metric(f"{name}:", human_size(size), "Object size")
