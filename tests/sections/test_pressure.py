"""Tests for the memory pressure section."""

from memdiag.core.config import Settings
from memdiag.core.output import Report
from memdiag.sections import pressure
from tests.conftest import MockContext, load_fixture


class AdvancingContext(MockContext):
    """Context whose /proc/vmstat moves forward when the sampler sleeps."""

    def sleep(self, seconds: float) -> None:
        super().sleep(seconds)
        self.file_contents["/proc/vmstat"] = load_fixture("proc", "vmstat_later.txt")


def advancing_context(**files: str) -> AdvancingContext:
    contents = {"/proc/vmstat": load_fixture("proc", "vmstat.txt")}
    contents.update(files)
    return AdvancingContext(file_contents=contents)


class TestSampleFaultRates:
    """Tests for sample_fault_rates."""

    def test_rates_from_two_samples(self):
        """Minor faults exclude major ones; both are per second."""
        context = advancing_context()
        assert pressure.sample_fault_rates(context, 1.0).value == (3900, 100)
        assert context.sleeps == [1.0]

    def test_rates_scale_with_interval(self):
        """Deltas are divided by the sampling interval."""
        assert pressure.sample_fault_rates(advancing_context(), 2.0).value == (1950, 50)

    def test_missing_vmstat(self):
        """Without /proc/vmstat no rates are available."""
        context = MockContext()
        assert not pressure.sample_fault_rates(context, 1.0).available
        assert context.sleeps == []

    def test_missing_counters(self):
        """A vmstat without fault counters is unavailable."""
        context = MockContext(file_contents={"/proc/vmstat": "nr_free_pages 1\n"})
        assert not pressure.sample_fault_rates(context, 0.5).available


class TestAllocationStalls:
    """Tests for allocation_stalls."""

    def test_sums_per_zone_counters(self):
        """Per-zone allocstall counters are summed."""
        assert pressure.allocation_stalls({"allocstall_normal": 4, "allocstall_movable": 1, "pgfault": 9}) == 5

    def test_single_counter(self):
        """Older kernels have one allocstall counter."""
        assert pressure.allocation_stalls({"allocstall": 7}) == 7

    def test_absent(self):
        """Without counters the value is unknown."""
        assert pressure.allocation_stalls({"pgfault": 1}) is None


class TestPressureSection:
    """Tests for pressure.render."""

    def test_full_section(self):
        """PSI, fault rates and since-boot counters are shown."""
        context = advancing_context(**{"/proc/pressure/memory": load_fixture("proc", "pressure_memory.txt")})
        report = Report(color=False)
        pressure.render(report, context, Settings())
        text = report.render()

        assert "===== MEMORY PRESSURE INDICATORS =====" in text
        assert "some: avg10=1.50 avg60=0.75 avg300=0.20 total=123456us" in text
        assert "full: avg10=0.30 avg60=0.10 avg300=0.05 total=45678us" in text
        assert "Minor Faults:     3900" in text
        assert "Major Faults:      100" in text
        assert "Page major faults:     2600" in text
        assert "Allocation stalls:       20" in text
        assert "OOM kills:        2" in text
        assert "OOM killer has been active 2 times since boot!" in text

    def test_uses_configured_interval(self):
        """The sampling interval comes from settings."""
        context = advancing_context()
        pressure.render(Report(color=False), context, Settings(sample_interval=0.25))
        assert context.sleeps == [0.25]

    def test_psi_unavailable(self):
        """Kernels without PSI get an explicit marker."""
        report = Report(color=False)
        pressure.render(report, advancing_context(), Settings())
        assert "PSI (Pressure Stall Information) not available" in report.render()

    def test_quiet_system(self):
        """No OOM kills since boot means no alert."""
        context = MockContext(file_contents={"/proc/vmstat": load_fixture("proc", "vmstat.txt")})
        report = Report(color=False)
        pressure.render(report, context, Settings())
        text = report.render()
        assert "Minor Faults:        0" in text
        assert "OOM kills:        0" in text
        assert "OOM killer has been active" not in text
