"""Tests for process helpers."""

import subprocess

import pytest

from memdiag.errors import CommandError
from memdiag.lib.process import check_tool, run_command
from tests.conftest import MockContext


class TestRunCommand:
    """Tests for run_command."""

    def test_returns_stdout(self):
        """stdout of the command is returned."""
        context = MockContext(command_outputs={("swapon", "--show=NAME", "--noheadings"): "/dev/sda2\n"})
        assert run_command(["swapon", "--show=NAME", "--noheadings"], context=context) == "/dev/sda2\n"
        assert context.commands_run == [["swapon", "--show=NAME", "--noheadings"]]

    def test_missing_binary(self):
        """A command that can't be started raises CommandError."""
        with pytest.raises(CommandError, match="lsof"):
            run_command(["lsof", "-a", "-d", "mem"], context=MockContext())

    def test_non_zero_exit_with_check(self):
        """A failing command with check=True raises CommandError with the exit code."""
        context = MockContext(command_outputs={
            ("nvidia-smi", "-L"): subprocess.CompletedProcess(["nvidia-smi", "-L"], 9, "", "NVML error"),
        })
        with pytest.raises(CommandError, match="exit code 9"):
            run_command(["nvidia-smi", "-L"], context=context, check=True)

    def test_non_zero_exit_without_check(self):
        """Without check, output of a failing command is still returned."""
        context = MockContext(command_outputs={
            ("blkid", "-t", "TYPE=swap", "-o", "device"): subprocess.CompletedProcess([], 2, "", ""),
        })
        assert run_command(["blkid", "-t", "TYPE=swap", "-o", "device"], context=context) == ""

    def test_timeout(self):
        """A timed out command raises CommandError."""
        context = MockContext(command_outputs={
            ("vmstat", "1", "2"): subprocess.TimeoutExpired(["vmstat", "1", "2"], 60),
        })
        with pytest.raises(CommandError, match="timed out"):
            run_command(["vmstat", "1", "2"], context=context)

    def test_undecodable_output(self):
        """Output that can't be decoded raises CommandError."""
        context = MockContext(command_outputs={
            ("lsof", "-a", "-d", "mem"): UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte"),
        })
        with pytest.raises(CommandError, match="not valid text: lsof"):
            run_command(["lsof", "-a", "-d", "mem"], context=context)


class TestCheckTool:
    """Tests for check_tool."""

    def test_available(self):
        """Tools in the mocked list are found."""
        assert check_tool("ps", context=MockContext(tools_available=["ps"])) is True

    def test_missing(self):
        """Missing tools return False."""
        assert check_tool("rocm-smi", context=MockContext()) is False

    def test_required_missing(self):
        """required=True raises for a missing tool."""
        with pytest.raises(CommandError, match="Required tool not found: lsof"):
            check_tool("lsof", context=MockContext(), required=True)
