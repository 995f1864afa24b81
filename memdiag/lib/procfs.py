"""Parsers and readers for kernel pseudo-files and memory-related commands."""

from typing import TYPE_CHECKING, Any

from memdiag.core.reading import Reading
from memdiag.errors import CommandError, SourceUnavailable
from memdiag.lib.filesystem import read_file
from memdiag.lib.process import check_tool, run_command

if TYPE_CHECKING:
    from memdiag.core.context import Context


def parse_meminfo(content: str) -> dict[str, int]:
    """Parse /proc/meminfo content into a dictionary of kB values."""
    meminfo = {}
    for line in content.strip().split("\n"):
        if ":" in line:
            key, value = line.split(":", 1)
            # Extract numeric value (remove 'kB' suffix)
            parts = value.strip().split()
            if parts:
                try:
                    meminfo[key.strip()] = int(parts[0])
                except ValueError:
                    continue
    return meminfo


def meminfo_bytes(meminfo: dict[str, int], key: str) -> int:
    """Value of a meminfo field in bytes, 0 when absent."""
    return meminfo.get(key, 0) * 1024


def parse_vmstat(content: str) -> dict[str, int]:
    """Parse /proc/vmstat content into a dictionary."""
    vmstat = {}
    for line in content.strip().split("\n"):
        parts = line.strip().split(None, 1)
        if len(parts) >= 2:
            try:
                vmstat[parts[0]] = int(parts[1])
            except ValueError:
                continue
    return vmstat


def parse_vmstat_sample(stdout: str) -> dict[str, str]:
    """
    Map the column headers of ``vmstat`` output to the last sample row.

    The first row of ``vmstat 1 2`` reports averages since boot, so the
    last row is the one-second sample.
    """
    lines = [line for line in stdout.strip().split("\n") if line.strip()]
    if len(lines) < 3:
        return {}
    headers = lines[1].split()
    values = lines[-1].split()
    return dict(zip(headers, values))


def parse_pressure_line(line: str) -> tuple[str, dict] | None:
    """
    Parse a single PSI line into a dictionary.

    Example line: some avg10=0.00 avg60=0.00 avg300=0.00 total=0
    Returns: ('some', {'avg10': 0.0, 'avg60': 0.0, 'avg300': 0.0, 'total': 0})
    """
    parts = line.strip().split()
    if len(parts) < 2:
        return None

    metric_type = parts[0]  # 'some' or 'full'
    values: dict[str, Any] = {}

    for part in parts[1:]:
        if "=" in part:
            key, val = part.split("=", 1)
            try:
                if key == "total":
                    values[key] = int(val)
                else:
                    values[key] = float(val)
            except ValueError:
                values[key] = val

    return metric_type, values


def parse_pressure_file(content: str) -> dict:
    """Parse a PSI pressure file content."""
    result = {}
    for line in content.strip().split("\n"):
        parsed = parse_pressure_line(line)
        if parsed:
            metric_type, values = parsed
            result[metric_type] = values
    return result


def parse_buddyinfo(content: str) -> list[dict[str, Any]]:
    """
    Parse /proc/buddyinfo into per-zone free block counts.

    Format: Node <N>, zone <name> <count0> <count1> ... <count10>
    Each count is the number of free blocks of 2^order pages.
    """
    zones: list[dict[str, Any]] = []

    for line in content.strip().split("\n"):
        parts = line.split()
        if len(parts) < 4 or parts[0] != "Node":
            continue

        try:
            node_id = int(parts[1].rstrip(","))
            zone_idx = parts.index("zone") + 1 if "zone" in parts else 3
            zone_name = parts[zone_idx]
            counts = [int(p) for p in parts[zone_idx + 1:]]
        except (ValueError, IndexError):
            continue

        zones.append({
            "node": node_id,
            "zone": zone_name,
            "counts": counts,
        })

    return zones


def read_meminfo(context: "Context") -> Reading[dict[str, int]]:
    """Read and parse /proc/meminfo."""
    try:
        meminfo = parse_meminfo(read_file("/proc/meminfo", context=context))
    except SourceUnavailable as e:
        return Reading.unavailable(str(e))
    if not meminfo.get("MemTotal"):
        return Reading.unavailable("/proc/meminfo has no MemTotal")
    return Reading.ok(meminfo)


def read_vmstat(context: "Context") -> Reading[dict[str, int]]:
    """Read and parse /proc/vmstat."""
    try:
        return Reading.ok(parse_vmstat(read_file("/proc/vmstat", context=context)))
    except SourceUnavailable as e:
        return Reading.unavailable(str(e))


def supports_hibernation(context: "Context") -> bool:
    """True if the kernel advertises suspend-to-disk in /sys/power/state."""
    content = read_file("/sys/power/state", context=context, default="")
    return "disk" in content.split()


def inactive_swap_partitions(context: "Context") -> Reading[list[tuple[str, int]]]:
    """
    Swap-formatted block devices that are not currently active.

    Returns a list of (device, size_bytes). Devices whose size can't be
    queried are listed with a size of 0.
    """
    if not check_tool("swapon", context=context) or not check_tool("blkid", context=context):
        return Reading.unavailable("swapon/blkid not available")

    try:
        active_out = run_command(["swapon", "--show=NAME", "--noheadings"], context=context)
        all_out = run_command(["blkid", "-t", "TYPE=swap", "-o", "device"], context=context)
    except CommandError as e:
        return Reading.unavailable(str(e))

    active = {line.strip() for line in active_out.split("\n") if line.strip()}
    devices = [line.strip() for line in all_out.split("\n") if line.strip()]

    inactive = []
    for device in devices:
        if device in active:
            continue
        try:
            size = int(run_command(["blockdev", "--getsize64", device], context=context).strip())
        except (CommandError, ValueError):
            size = 0
        inactive.append((device, size))

    return Reading.ok(inactive)


def available_disk_bytes(context: "Context", path: str = "/") -> Reading[int]:
    """Free space on the filesystem holding path, less a 10% safety reserve."""
    try:
        free = context.disk_free(path)
    except OSError as e:
        return Reading.unavailable(f"Cannot stat {path}: {e.strerror or e}")
    return Reading.ok(free * 9 // 10)
