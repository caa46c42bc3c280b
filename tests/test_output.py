"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet and verbose modes
- print_table in all three modes
- Global instance management
"""

from __future__ import annotations

import json

import pytest

from gatewayspec import output as output_module
from gatewayspec.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("gatewayspec.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("gatewayspec.output._is_tty", lambda: True)


class TestFormatResolution:

    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager().format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager().format == OutputFormat.RICH

    def test_no_color_flag_forces_plain(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        assert OutputManager(no_color=True).format == OutputFormat.PLAIN

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


class TestStreamDiscipline:
    """Data goes to stdout, diagnostics to stderr."""

    def test_print_data_goes_to_stdout(self, capfd, non_tty):
        OutputManager(no_color=True).print_data("openapi: 3.0.3\n")
        captured = capfd.readouterr()
        assert captured.out == "openapi: 3.0.3\n"
        assert captured.err == ""

    def test_print_data_adds_missing_newline(self, capfd, non_tty):
        OutputManager(no_color=True).print_data("{}")
        assert capfd.readouterr().out == "{}\n"

    def test_info_goes_to_stderr(self, capfd, non_tty):
        OutputManager(no_color=True).info("3 operations bound")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "3 operations bound" in captured.err

    def test_error_prefix(self, capfd, non_tty):
        OutputManager(no_color=True).error("boom")
        assert capfd.readouterr().err == "Error: boom\n"

    def test_warning_prefix(self, capfd, non_tty):
        OutputManager(no_color=True).warning("careful")
        assert capfd.readouterr().err == "Warning: careful\n"


class TestQuietAndVerbose:

    def test_quiet_suppresses_info_and_success(self, capfd, non_tty):
        out = OutputManager(no_color=True, quiet=True)
        out.info("info")
        out.success("done")
        assert capfd.readouterr().err == ""

    def test_quiet_keeps_errors_and_data(self, capfd, non_tty):
        out = OutputManager(no_color=True, quiet=True)
        out.error("bad")
        out.print_data("data")
        captured = capfd.readouterr()
        assert "bad" in captured.err
        assert captured.out == "data\n"

    def test_debug_hidden_by_default(self, capfd, non_tty):
        OutputManager(no_color=True).debug("details")
        assert capfd.readouterr().err == ""

    def test_debug_shown_with_verbose(self, capfd, non_tty):
        OutputManager(no_color=True, verbose=True).debug("details")
        assert capfd.readouterr().err == "[debug] details\n"


class TestPrintTable:

    HEADERS = ["Method", "Path"]
    ROWS = [["GET", "/widgets"], ["POST", "/widgets"]]

    def test_table_json_mode(self, capfd, non_tty):
        OutputManager(format=OutputFormat.JSON).print_table(self.HEADERS, self.ROWS)
        records = json.loads(capfd.readouterr().out)
        assert records == [
            {"Method": "GET", "Path": "/widgets"},
            {"Method": "POST", "Path": "/widgets"},
        ]

    def test_table_plain_mode(self, capfd, non_tty):
        OutputManager(format=OutputFormat.PLAIN).print_table(self.HEADERS, self.ROWS)
        lines = capfd.readouterr().out.splitlines()
        assert lines == ["Method\tPath", "GET\t/widgets", "POST\t/widgets"]

    def test_table_rich_mode(self, capfd, non_tty):
        OutputManager(format=OutputFormat.RICH).print_table(
            self.HEADERS, self.ROWS, title="Routes"
        )
        out = capfd.readouterr().out
        assert "Routes" in out
        assert "/widgets" in out


class TestGlobalInstance:

    def test_lazy_default(self):
        reset_output()
        assert isinstance(get_output(), OutputManager)

    def test_set_and_reset(self):
        manager = OutputManager(format=OutputFormat.PLAIN)
        set_output(manager)
        assert get_output() is manager
        reset_output()
        assert get_output() is not manager

    def test_convenience_functions_delegate(self, capfd, non_tty):
        set_output(OutputManager(no_color=True))
        output_module.print_data("x")
        output_module.info("y")
        captured = capfd.readouterr()
        assert captured.out == "x\n"
        assert "y" in captured.err
