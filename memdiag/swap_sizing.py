"""
Swap sizing recommendations.

Recommends a swap size from the amount of installed RAM and whether the
system can hibernate, then compares it with configured and inactive swap
and with the free space on the root filesystem. Nothing here touches the
disk: the result only describes what an operator could do.

RAM tiers (inclusive upper bounds):

    <= 2 GiB    2 x RAM
    <= 8 GiB    1.5 x RAM
    <= 64 GiB   1 x RAM
    >  64 GiB   16 GiB
"""

from dataclasses import dataclass
from enum import Enum

GIB = 1024 ** 3
MIB = 1024 ** 2

LARGE_SYSTEM_SWAP_BYTES = 16 * GIB


@dataclass(frozen=True)
class MemoryProfile:
    """Physical memory facts needed for sizing decisions, in bytes."""

    total_bytes: int
    free_bytes: int
    available_bytes: int
    swap_total_bytes: int
    swap_free_bytes: int
    supports_hibernation: bool = False

    @classmethod
    def from_meminfo(cls, meminfo: dict[str, int], supports_hibernation: bool = False) -> "MemoryProfile":
        """Build a profile from parsed /proc/meminfo (kB values)."""
        return cls(
            total_bytes=meminfo.get("MemTotal", 0) * 1024,
            free_bytes=meminfo.get("MemFree", 0) * 1024,
            available_bytes=meminfo.get("MemAvailable", 0) * 1024,
            swap_total_bytes=meminfo.get("SwapTotal", 0) * 1024,
            swap_free_bytes=meminfo.get("SwapFree", 0) * 1024,
            supports_hibernation=supports_hibernation,
        )

    @property
    def used_bytes(self) -> int:
        return self.total_bytes - self.available_bytes

    @property
    def swap_used_bytes(self) -> int:
        return self.swap_total_bytes - self.swap_free_bytes

    @property
    def total_gib(self) -> float:
        return self.total_bytes / GIB


class SwapVerdict(Enum):
    """What the operator should take away from a recommendation."""

    GROW_SWAP = "sufficient disk space to grow swap"
    INSUFFICIENT_DISK = "insufficient disk space for recommended swap"
    ADEQUATE = "current swap provisioning adequate"


@dataclass(frozen=True)
class SwapRecommendation:
    """Recommended swap compared with what the system has or could enable."""

    recommended_bytes: int
    hibernation_bytes: int
    inactive_swap_bytes: int
    available_disk_bytes: int
    swap_total_bytes: int
    additional_needed_bytes: int

    @property
    def no_swap(self) -> bool:
        """True when no swap is configured at all."""
        return self.swap_total_bytes == 0

    @property
    def verdict(self) -> SwapVerdict:
        if self.additional_needed_bytes <= 0:
            return SwapVerdict.ADEQUATE
        if self.available_disk_bytes >= self.additional_needed_bytes:
            return SwapVerdict.GROW_SWAP
        return SwapVerdict.INSUFFICIENT_DISK

    def swap_file_commands(self, path: str = "/swapfile") -> list[str]:
        """Shell commands an operator could run to add the missing swap as a file."""
        if self.additional_needed_bytes <= 0:
            return []
        size_mb = self.additional_needed_bytes // MIB
        return [
            f"sudo fallocate -l {size_mb}M {path}",
            f"sudo chmod 600 {path}",
            f"sudo mkswap {path}",
            f"sudo swapon {path}",
            "# Add to /etc/fstab for persistence:",
            f"{path} none swap sw 0 0",
        ]


def recommended_swap_bytes(total_bytes: int) -> int:
    """Swap size recommended for a system with total_bytes of RAM."""
    ram_gib = total_bytes / GIB
    if ram_gib <= 2:
        return total_bytes * 2
    if ram_gib <= 8:
        return total_bytes * 3 // 2
    if ram_gib <= 64:
        return total_bytes
    return LARGE_SYSTEM_SWAP_BYTES


def hibernation_swap_bytes(profile: MemoryProfile) -> int:
    """Extra swap needed to store a full memory image for hibernation."""
    return profile.total_bytes if profile.supports_hibernation else 0


def recommend_swap(
    profile: MemoryProfile,
    inactive_swap_bytes: int = 0,
    available_disk_bytes: int = 0,
) -> SwapRecommendation:
    """
    Compute the swap recommendation for a memory profile.

    Args:
        profile: Current memory and swap configuration
        inactive_swap_bytes: Size of swap partitions present but not enabled
        available_disk_bytes: Usable free space on the root filesystem

    Returns:
        SwapRecommendation; additional_needed_bytes may be negative when
        current and inactive swap already exceed the target
    """
    recommended = recommended_swap_bytes(profile.total_bytes)
    hibernation = hibernation_swap_bytes(profile)
    additional = (recommended + hibernation) - (profile.swap_total_bytes + inactive_swap_bytes)

    return SwapRecommendation(
        recommended_bytes=recommended,
        hibernation_bytes=hibernation,
        inactive_swap_bytes=inactive_swap_bytes,
        available_disk_bytes=available_disk_bytes,
        swap_total_bytes=profile.swap_total_bytes,
        additional_needed_bytes=additional,
    )
