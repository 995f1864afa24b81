"""Tests for the swap usage and recommendation section."""

from memdiag.core.config import Settings
from memdiag.core.output import Report
from memdiag.sections import swap
from memdiag.swap_sizing import GIB
from tests.conftest import MockContext, load_fixture

SWAPON = ("swapon", "--show=NAME", "--noheadings")
BLKID = ("blkid", "-t", "TYPE=swap", "-o", "device")


def render(context: MockContext) -> Report:
    report = Report(color=False)
    swap.render(report, context, Settings())
    return report


class TestReadSwapActivity:
    """Tests for read_swap_activity."""

    def test_reads_last_sample(self):
        """si/so come from the one-second sample."""
        context = MockContext(
            tools_available=["vmstat"],
            command_outputs={("vmstat", "1", "2"): load_fixture("commands", "vmstat_1_2.txt")},
        )
        assert swap.read_swap_activity(context).value == ("12", "48")

    def test_vmstat_missing(self):
        """Without vmstat the reading is unavailable."""
        assert not swap.read_swap_activity(MockContext()).available


class TestSwapSection:
    """Tests for swap.render."""

    def test_grow_swap(self):
        """A 16 GiB host with 4 GiB swap and ample disk is told to grow swap."""
        context = MockContext(
            tools_available=["vmstat"],
            command_outputs={("vmstat", "1", "2"): load_fixture("commands", "vmstat_1_2.txt")},
            file_contents={"/proc/meminfo": load_fixture("proc", "meminfo_16g.txt")},
            disk_free_bytes=100 * GIB,
        )
        report = render(context)
        text = report.render()

        assert "Current Swap:  4.0 GiB" in text
        assert "Used Swap:  1.0 GiB (25.0%)" in text
        assert "Swap In:       12" in text
        assert "Swap Out:       48" in text
        assert "Disk Space: 90.0 GiB" in text
        assert "Recommended: 16.0 GiB Based on 16.0 GiB RAM" in text
        assert "Hibernation:" not in text
        assert "Additional: 12.0 GiB More swap recommended" in text
        assert "✓ Sufficient disk space available to create additional swap" in text
        assert "sudo fallocate -l 12288M /swapfile" in text
        assert "/swapfile none swap sw 0 0" in text
        assert any(entry.startswith("Swap partitions: ") for entry in report.unavailable)

    def test_no_swap_insufficient_disk(self):
        """No swap and little disk gives the insufficient-disk verdict."""
        context = MockContext(
            file_contents={"/proc/meminfo": load_fixture("proc", "meminfo_noswap.txt")},
            disk_free_bytes=1 * GIB,
        )
        text = render(context).render()

        assert "No swap configured. System more vulnerable to OOM when memory pressure is high." in text
        assert "Swap In" not in text
        assert "Recommended:  6.0 GiB Based on 4.0 GiB RAM" in text
        assert "Additional:  6.0 GiB No swap configured, all of it is needed" in text
        assert "✗ Insufficient disk space to create recommended swap" in text
        assert "fallocate" not in text

    def test_hibernation_and_inactive_partition(self):
        """Hibernation adds RAM-sized swap; inactive partitions count toward it."""
        context = MockContext(
            tools_available=["swapon", "blkid"],
            command_outputs={
                SWAPON: "/dev/nvme0n1p3\n",
                BLKID: "/dev/nvme0n1p3\n/dev/sdb2\n",
                ("blockdev", "--getsize64", "/dev/sdb2"): str(8 * GIB),
            },
            file_contents={
                "/proc/meminfo": load_fixture("proc", "meminfo_16g.txt"),
                "/sys/power/state": "freeze mem disk\n",
            },
            disk_free_bytes=10 * GIB,
        )
        text = render(context).render()

        assert "Inactive swap partitions found: /dev/sdb2" in text
        assert "Inactive Swap:  8.0 GiB" in text
        assert "Hibernation: 16.0 GiB" in text
        assert "Additional: 20.0 GiB" in text
        assert "Insufficient disk space" in text

    def test_adequate(self):
        """Enough swap gives the adequate message."""
        meminfo = load_fixture("proc", "meminfo_16g.txt").replace(
            "SwapTotal:       4194304 kB", "SwapTotal:      16777216 kB"
        )
        context = MockContext(file_contents={"/proc/meminfo": meminfo}, disk_free_bytes=GIB)
        text = render(context).render()
        assert "✓ Current swap space meets or exceeds recommendations" in text
        assert "Additional:" not in text

    def test_disk_unavailable(self):
        """A failing disk query is reported, and the verdict assumes no disk."""
        context = MockContext(
            file_contents={"/proc/meminfo": load_fixture("proc", "meminfo_noswap.txt")},
            disk_free_bytes=OSError(5, "Input/output error"),
        )
        text = render(context).render()
        assert "Disk space not available" in text
        assert "Insufficient disk space" in text

    def test_missing_meminfo(self):
        """Without meminfo, swap information is not available."""
        report = render(MockContext())
        assert "Swap information not available" in report.render()
