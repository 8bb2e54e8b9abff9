"""Diagnostic output on stderr with Rich support.

restbase never writes to stdout.  Request and response trace lines go
through an :class:`OutputManager`, which only prints ``debug`` messages in
verbose mode and respects ``NO_COLOR`` / ``TERM=dumb``.  The pipeline
reaches the manager through :func:`get_output`; applications install their
own with :func:`set_output`::

    from restbase.output import OutputManager, set_output

    set_output(OutputManager(verbose=True))
"""

from __future__ import annotations

import os
import sys
from typing import Optional

from rich.console import Console


class OutputManager:
    """Routes diagnostics to a Rich :class:`~rich.console.Console` on stderr.

    Args:
        no_color: Disable all colour and Rich markup.
        verbose: Enable debug-level messages (request/response tracing).
    """

    def __init__(
        self,
        no_color: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._verbose = verbose
        self._stderr = Console(
            file=sys.stderr,
            no_color=self._no_color,
            stderr=True,
        )

    def debug(self, message: str) -> None:
        """Print a debug message. Only shown in verbose mode.

        Args:
            message: The debug text (prefixed with ``[debug]`` on output).
        """
        if self._verbose:
            if self._no_color:
                print(f"[debug] {message}", file=sys.stderr, flush=True)
            else:
                self._stderr.print(f"[debug] {message}", style="dim", markup=False)


def _should_disable_color() -> bool:
    """Return True when NO_COLOR is set (any value) or TERM=dumb."""
    if os.environ.get("NO_COLOR") is not None:
        return True
    if os.environ.get("TERM") == "dumb":
        return True
    return False


# ------------------------------------------------------------------ #
# Global output instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the global :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    """Install *output* as the global :class:`OutputManager`."""
    global _output
    _output = output


def reset_output() -> None:
    """Reset the global :class:`OutputManager` to ``None``.

    Primarily useful in test suites to ensure a clean state between tests.
    """
    global _output
    _output = None
