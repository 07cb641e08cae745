"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- Item listings and settings dumps in each format
- Global instance management
"""

from __future__ import annotations

import json

import pytest

from todolist_daemon import output as output_module
from todolist_daemon.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture(autouse=True)
def _reset_global_output():
    """Ensure the global output instance is reset between tests."""
    reset_output()
    yield
    reset_output()


@pytest.fixture()
def non_tty(monkeypatch):
    monkeypatch.setattr("todolist_daemon.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    monkeypatch.setattr("todolist_daemon.output._is_tty", lambda: True)


# ------------------------------------------------------------------ #
# Format resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.RICH

    def test_auto_resolves_to_plain_when_no_color(self, tty):
        mgr = OutputManager(format=OutputFormat.AUTO, no_color=True)
        assert mgr.format == OutputFormat.PLAIN

    def test_explicit_json_stays_json(self, tty):
        assert OutputManager(format=OutputFormat.JSON).format == OutputFormat.JSON


class TestColorDisabling:
    def test_no_color_env(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# Stream discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    def test_print_data_goes_to_stdout(self, capfd, non_tty):
        OutputManager(no_color=True).print_data("Buy milk")
        captured = capfd.readouterr()
        assert captured.out == "Buy milk\n"
        assert captured.err == ""

    @pytest.mark.parametrize("method", ["info", "success", "warning", "error"])
    def test_diagnostics_go_to_stderr(self, capfd, non_tty, method):
        getattr(OutputManager(no_color=True), method)("Total item count: 2")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "Total item count: 2" in captured.err

    def test_prefixes_in_no_color(self, capfd, non_tty):
        mgr = OutputManager(no_color=True, verbose=True)
        mgr.warning("w")
        mgr.error("e")
        mgr.debug("d")
        err = capfd.readouterr().err
        assert "Warning: w" in err
        assert "Error: e" in err
        assert "[debug] d" in err

    def test_rich_stderr_escapes_markup(self, capfd, non_tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        OutputManager().info("title [bold]x[/bold]")
        assert "[bold]x[/bold]" in capfd.readouterr().err


class TestQuietVerbose:
    def test_quiet_suppresses_info_and_success(self, capfd, non_tty):
        mgr = OutputManager(no_color=True, quiet=True)
        mgr.info("progress")
        mgr.success("done")
        assert capfd.readouterr().err == ""

    def test_quiet_keeps_warnings_errors_and_data(self, capfd, non_tty):
        mgr = OutputManager(no_color=True, quiet=True)
        mgr.warning("Canceling attempt")
        mgr.error("boom")
        mgr.print_data("A")
        captured = capfd.readouterr()
        assert "Canceling attempt" in captured.err
        assert "boom" in captured.err
        assert captured.out == "A\n"

    def test_debug_hidden_by_default(self, capfd, non_tty):
        OutputManager(no_color=True).debug("hidden")
        assert capfd.readouterr().err == ""


# ------------------------------------------------------------------ #
# Structured data
# ------------------------------------------------------------------ #


class TestPrintItems:
    def test_json_is_one_compact_object(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON, no_color=True).print_items(["Buy milk", "Walk dog"], 3)
        out = capfd.readouterr().out
        assert out.count("\n") == 1
        assert json.loads(out) == {"cycle": 3, "items": ["Buy milk", "Walk dog"], "count": 2}

    def test_json_without_cycle(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON, no_color=True).print_items([])
        assert json.loads(capfd.readouterr().out) == {"items": [], "count": 0}

    def test_plain_prints_one_title_per_line(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).print_items(["a", "b"], 1)
        captured = capfd.readouterr()
        assert captured.out == "a\nb\n"
        assert captured.err == ""


class TestPrintRecord:
    DATA = {"credentials": {"tenant": "contoso"}, "grant_type": "password"}

    def test_json(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON, no_color=True).print_record(self.DATA)
        assert json.loads(capfd.readouterr().out) == self.DATA

    def test_plain_flattens_nested_keys(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).print_record(self.DATA)
        lines = capfd.readouterr().out.strip().split("\n")
        assert lines == ["credentials.tenant\tcontoso", "grant_type\tpassword"]

    def test_rich_renders_table(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH, no_color=True).print_record(self.DATA)
        out = capfd.readouterr().out
        assert "credentials.tenant" in out
        assert "contoso" in out
        assert "\t" not in out


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    def test_get_output_creates_default(self):
        assert isinstance(get_output(), OutputManager)
        assert get_output() is get_output()

    def test_set_and_reset(self):
        mgr = OutputManager(no_color=True)
        set_output(mgr)
        assert get_output() is mgr
        reset_output()
        assert output_module._output is None

    def test_convenience_functions_delegate(self, capfd, non_tty):
        set_output(OutputManager(no_color=True))
        output_module.info("hello")
        output_module.print_data("world")
        captured = capfd.readouterr()
        assert "hello" in captured.err
        assert captured.out == "world\n"
