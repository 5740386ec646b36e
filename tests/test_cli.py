"""Tests for the click command."""
from __future__ import annotations

import importlib.metadata
from pathlib import Path

import click
import pytest
from click.testing import CliRunner, Result

from logtint.cli import main
from logtint.lifecycle import Lifecycle


def _out(result: Result) -> str:
    return click.unstyle(result.stdout)


@pytest.fixture()
def runner(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> CliRunner:
    """CliRunner with colour files and plugin discovery isolated from the host."""
    monkeypatch.setenv("LOGTINT_SYSCONFDIR", str(tmp_path / "etc"))
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.delenv("FORCE_COLOR", raising=False)
    monkeypatch.setattr(importlib.metadata, "entry_points", lambda **kw: [])
    return CliRunner()


class TestMain:
    def test_passes_plain_text_through(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["--no-service-lookup"], input="hello world\nsecond line\n")
        assert result.exit_code == 0
        assert _out(result) == "hello world\nsecond line\n"

    def test_single_plugin(self, runner: CliRunner) -> None:
        line = "Aug  1 10:00:00 webserver sshd[1234]: Accepted publickey for admin"
        result = runner.invoke(main, ["-p", "syslog", "--no-service-lookup"], input=line + "\n")
        assert result.exit_code == 0
        assert _out(result) == line + "\n"

    def test_convert_date(self, runner: CliRunner) -> None:
        line = "0.000      0 127.0.0.1 TCP_DENIED/403 3800 CONNECT example.com:443 - HIER_NONE/- text/html"
        result = runner.invoke(main, ["-C", "-p", "squid"], input=line + "\n")
        assert result.exit_code == 0
        assert _out(result).startswith("Jan  1 00:00:00.000 ")

    def test_no_word_color(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["--no-word-color"], input='error at 10.0.0.1 "quoted"\n')
        assert result.exit_code == 0
        assert _out(result) == 'error at 10.0.0.1 "quoted"\n'

    def test_empty_input(self, runner: CliRunner) -> None:
        result = runner.invoke(main, [], input="")
        assert result.exit_code == 0
        assert result.stdout == ""

    def test_missing_rcfile_is_not_fatal(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(main, ["-F", str(tmp_path / "absent.rc")], input="x\n")
        assert result.exit_code == 0
        assert _out(result) == "x\n"


class TestOptions:
    def test_list_plugins(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["--list-plugins"])
        assert result.exit_code == 0
        assert _out(result).split() == ["httpd", "squid", "syslog"]

    def test_list_plugins_includes_plugin_dir(self, runner: CliRunner, tmp_path: Path) -> None:
        plugin_dir = tmp_path / "plugins"
        plugin_dir.mkdir()
        (plugin_dir / "mine.py").write_text("name = 'mine'\n", encoding="utf-8")
        result = runner.invoke(main, ["-l", "--plugin-dir", str(plugin_dir)])
        assert _out(result).split() == ["httpd", "squid", "syslog", "mine"]

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in _out(result)

    def test_help(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["-h"])
        assert result.exit_code == 0
        assert "--convert-date" in _out(result)

    def test_unknown_option_is_usage_error(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["--bogus"])
        assert result.exit_code == 2

    def test_bad_log_level(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["--log-level", "LOUD"])
        assert result.exit_code == 2

    def test_invalid_env_is_usage_error(self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOGTINT_SCROLL", "sideways")
        result = runner.invoke(main, [], input="")
        assert result.exit_code == 2

    def test_interrupt_before_handlers_exits_zero(
        self, runner: CliRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def interrupted_start(self) -> None:
            raise KeyboardInterrupt

        monkeypatch.setattr(Lifecycle, "start", interrupted_start)
        result = runner.invoke(main, [], input="never shown\n")
        assert result.exit_code == 0
        assert result.stdout == ""
