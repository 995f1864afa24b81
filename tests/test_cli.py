"""Tests for the command-line interface."""

import json
from datetime import date

import pytest

from memdiag import __version__, cli
from memdiag.core import config
from tests.conftest import MockContext


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep user and project config files out of the tests."""
    monkeypatch.setattr(config, "user_config_path", lambda: tmp_path / "no-user-config.yaml")
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def fake_watch(monkeypatch):
    """Replace the watch loop and record how it was started."""
    calls = []

    def _watch(context, settings, interval, logger=None):
        calls.append((interval, settings))
        raise KeyboardInterrupt

    monkeypatch.setattr(cli, "watch", _watch)
    return calls


class TestParser:
    """Tests for argument parsing."""

    def test_defaults(self):
        """No flags means a single pass."""
        args = cli.create_parser().parse_args([])
        assert args.watch is None
        assert args.config is None
        assert args.no_color is False
        assert args.log_dir is None

    def test_watch_interval(self):
        """-w takes an optional interval."""
        parser = cli.create_parser()
        assert parser.parse_args(["-w"]).watch == 0.0
        assert parser.parse_args(["--watch", "2"]).watch == 2.0

    @pytest.mark.parametrize("value", ["0", "abc"])
    def test_invalid_interval(self, value):
        """Non-positive or non-numeric intervals are usage errors."""
        with pytest.raises(SystemExit) as exc:
            cli.create_parser().parse_args(["-w", value])
        assert exc.value.code == 2

    def test_version(self, capsys):
        """--version prints the version."""
        with pytest.raises(SystemExit) as exc:
            cli.main(["--version"])
        assert exc.value.code == 0
        assert f"memdiag {__version__}" in capsys.readouterr().out


class TestMain:
    """Tests for main."""

    def test_single_pass(self, capsys):
        """Without -w, one report is printed with a watch hint."""
        result = cli.main([], context=MockContext())
        out = capsys.readouterr().out
        assert result == 0
        assert "=== COMPREHENSIVE MEMORY USAGE MONITOR ===" in out
        assert "=== MEMORY USAGE SUMMARY ===" in out
        assert "Run with -w or --watch to continuously monitor" in out

    def test_no_color_when_not_a_tty(self, capsys):
        """Captured output is not a terminal, so no ANSI codes are written."""
        cli.main([], context=MockContext())
        assert "\033[" not in capsys.readouterr().out

    def test_log_dir(self, tmp_path, capsys):
        """--log-dir writes a dated JSONL run log."""
        log_dir = tmp_path / "logs"
        cli.main(["--log-dir", str(log_dir)], context=MockContext())
        log_file = log_dir / date.today().isoformat() / "memdiag.jsonl"
        messages = [json.loads(line)["message"] for line in log_file.read_text().strip().split("\n")]
        assert "Report pass started" in messages
        assert "Report pass finished" in messages

    def test_no_log_without_log_dir(self, tmp_path, capsys):
        """Without a log dir nothing is written."""
        cli.main([], context=MockContext())
        assert list(tmp_path.iterdir()) == []

    def test_config_file(self, tmp_path, capsys):
        """--config settings reach the report."""
        cfg = tmp_path / "memdiag.yaml"
        cfg.write_text("top_cgroups: 3\n")
        cli.main(["--config", str(cfg)], context=MockContext())
        assert "===== TOP 3 CGROUP MEMORY CONSUMERS =====" in capsys.readouterr().out

    def test_watch_default_interval(self, fake_watch):
        """-w without a value uses the configured interval; Ctrl+C exits 0."""
        assert cli.main(["-w"], context=MockContext()) == 0
        assert fake_watch[0][0] == 5.0

    def test_watch_explicit_interval(self, fake_watch):
        """An explicit interval wins over config."""
        assert cli.main(["--watch", "2"], context=MockContext()) == 0
        assert fake_watch[0][0] == 2.0

    def test_watch_interval_from_config(self, tmp_path, fake_watch):
        """watch_interval from config is used by a bare -w."""
        (tmp_path / ".memdiag.yaml").write_text("watch_interval: 7\n")
        cli.main(["-w"], context=MockContext())
        assert fake_watch[0][0] == 7.0

    def test_watch_interrupt_is_logged(self, tmp_path, fake_watch):
        """An interrupted watch logs its start and the interrupt."""
        log_dir = tmp_path / "logs"
        cli.main(["-w", "--log-dir", str(log_dir)], context=MockContext())
        log_file = log_dir / date.today().isoformat() / "memdiag.jsonl"
        messages = [json.loads(line)["message"] for line in log_file.read_text().strip().split("\n")]
        assert messages == ["Watch mode started", "Interrupted"]
