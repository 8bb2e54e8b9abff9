"""Tests for the stderr diagnostics manager.

Covers:
- NO_COLOR / TERM=dumb colour disabling
- Verbose mode debug output
- Global instance management
"""

from __future__ import annotations

import pytest

from restbase.output import (
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


@pytest.fixture(autouse=True)
def _reset_global_output():
    """Ensure the global output instance is reset between tests."""
    reset_output()
    yield
    reset_output()


class TestColorDetection:
    def test_no_color_env(self, monkeypatch) -> None:
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_dumb_terminal(self, monkeypatch) -> None:
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_color_enabled(self, monkeypatch) -> None:
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


class TestMessages:
    def test_debug_hidden_unless_verbose(self, capsys) -> None:
        OutputManager(no_color=True).debug("GET https://api.example.com/")
        assert capsys.readouterr().err == ""

    def test_debug_shown_when_verbose(self, capsys) -> None:
        OutputManager(no_color=True, verbose=True).debug("GET https://api.example.com/")
        assert capsys.readouterr().err == "[debug] GET https://api.example.com/\n"

    def test_nothing_on_stdout(self, capsys) -> None:
        manager = OutputManager(no_color=True, verbose=True)
        manager.debug("c")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == "[debug] c\n"


class TestGlobalInstance:
    def test_lazily_created(self) -> None:
        first = get_output()
        assert isinstance(first, OutputManager)
        assert get_output() is first

    def test_set_and_reset(self) -> None:
        custom = OutputManager(verbose=True)
        set_output(custom)
        assert get_output() is custom
        reset_output()
        assert get_output() is not custom
