"""GPU memory usage from nvidia-smi or rocm-smi."""

import re
from dataclasses import dataclass

from memdiag.core.config import Settings
from memdiag.core.context import Context
from memdiag.core.output import Report, human_size
from memdiag.core.reading import Reading
from memdiag.errors import CommandError
from memdiag.lib.process import check_tool, run_command

TITLE = "GPU MEMORY USAGE"

MIB = 1024 * 1024

UNSUPPORTED_VALUES = ("[Not Supported]", "[N/A]", "N/A", "")

_NUMBER_RE = re.compile(r"\d+(?:\.\d+)?")


@dataclass
class GpuMemory:
    index: str
    name: str
    total_bytes: int
    used_bytes: int
    free_bytes: int


def _mib_to_bytes(value: str) -> int | None:
    value = value.strip()
    if value in UNSUPPORTED_VALUES:
        return None
    m = _NUMBER_RE.search(value)
    if not m:
        return None
    return int(float(m.group(0)) * MIB)


def parse_nvidia_smi(stdout: str) -> list[GpuMemory]:
    """
    Parse ``nvidia-smi --query-gpu=index,name,memory.total,memory.used,memory.free
    --format=csv,noheader,nounits`` output (MiB values).
    """
    gpus = []
    for line in stdout.strip().split("\n"):
        values = [v.strip() for v in line.split(",")]
        if len(values) < 5:
            continue
        total, used, free = (_mib_to_bytes(v) for v in values[2:5])
        if total is None or used is None:
            continue
        gpus.append(GpuMemory(
            index=values[0],
            name=values[1],
            total_bytes=total,
            used_bytes=used,
            free_bytes=free if free is not None else total - used,
        ))
    return gpus


def parse_rocm_smi(stdout: str) -> list[GpuMemory]:
    """
    Parse ``rocm-smi --showmeminfo vram --csv`` output.

    rocm-smi reports VRAM in bytes: device,VRAM Total Memory (B),VRAM Total Used Memory (B)
    """
    gpus = []
    lines = [line for line in stdout.strip().split("\n") if line.strip() and "=" not in line]
    if not lines:
        return gpus
    headers = [h.strip().lower() for h in lines[0].split(",")]
    total_idx = next((i for i, h in enumerate(headers) if "total" in h and "used" not in h), None)
    used_idx = next((i for i, h in enumerate(headers) if "used" in h), None)
    if total_idx is None or used_idx is None:
        return gpus

    for line in lines[1:]:
        values = [v.strip() for v in line.split(",")]
        if len(values) <= max(total_idx, used_idx):
            continue
        try:
            total = int(float(values[total_idx]))
            used = int(float(values[used_idx]))
        except ValueError:
            continue
        gpus.append(GpuMemory(
            index=values[0],
            name=values[0],
            total_bytes=total,
            used_bytes=used,
            free_bytes=total - used,
        ))
    return gpus


def read_gpus(context: Context) -> tuple[str, Reading[list[GpuMemory]]]:
    """GPU vendor label and memory readings from whichever tool is installed."""
    if check_tool("nvidia-smi", context=context):
        cmd = [
            "nvidia-smi",
            "--query-gpu=index,name,memory.total,memory.used,memory.free",
            "--format=csv,noheader,nounits",
        ]
        vendor, parser = "NVIDIA", parse_nvidia_smi
    elif check_tool("rocm-smi", context=context):
        cmd = ["rocm-smi", "--showmeminfo", "vram", "--csv"]
        vendor, parser = "AMD", parse_rocm_smi
    else:
        return "", Reading.unavailable("No supported GPU tools found (nvidia-smi or rocm-smi)")

    try:
        return vendor, Reading.ok(parser(run_command(cmd, context=context, check=True)))
    except CommandError as e:
        return vendor, Reading.unavailable(str(e))


def render(report: Report, context: Context, settings: Settings) -> None:
    report.header(TITLE)
    report.comment("GPU memory issues can indirectly cause system OOM in some scenarios")
    report.comment("Some frameworks may allocate excessive system RAM when GPU memory is exhausted")

    vendor, reading = read_gpus(context)
    if not reading.available:
        report.not_available("GPU memory information", reading.reason)
        return

    report.line(f"{vendor} GPU Memory Usage:")
    if not reading.value:
        report.line("No GPUs reported")
        return
    for gpu in reading.value:
        label = f"GPU {gpu.index}: {gpu.name}" if gpu.name != gpu.index else f"GPU {gpu.index}:"
        report.line(label)
        report.metric("  Total memory:", human_size(gpu.total_bytes))
        report.metric("  Used memory:", human_size(gpu.used_bytes))
        report.metric("  Free memory:", human_size(gpu.free_bytes))
        report.line()
