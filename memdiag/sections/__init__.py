"""Report sections, in the order a pass prints them."""

from memdiag.sections import (
    cgroups,
    fragmentation,
    gpu,
    kernel_memory,
    mmap_files,
    oom_logs,
    pressure,
    processes,
    swap,
    system_memory,
    thp,
    vm_tunables,
)

SECTIONS = [
    oom_logs,
    system_memory,
    swap,
    pressure,
    kernel_memory,
    processes,
    gpu,
    cgroups,
    fragmentation,
    vm_tunables,
    thp,
    mmap_files,
]

__all__ = ["SECTIONS"]
