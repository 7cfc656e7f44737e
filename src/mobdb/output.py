"""Diagnostic output on stderr.

mobdb is a library: its return values are the data, so everything it prints
is a diagnostic and goes to **stderr** (cache hits, expiry notices, clear
counts, rate-limit advisories).  Rich formatting is used unless colour is
disabled by ``NO_COLOR``, ``TERM=dumb`` or ``no_color=True``.

Library code reaches the shared :class:`OutputManager` through
:func:`get_output`; tests and applications swap it with :func:`set_output`.
"""

from __future__ import annotations

import os
import sys
from typing import Optional

from rich.console import Console
from rich.markup import escape


class OutputManager:
    """Route diagnostic messages to stderr.

    Args:
        no_color: Disable all colour and Rich markup.
        quiet: Suppress informational, success and suggestion messages.
            Warnings are always shown.
        verbose: Enable debug-level messages.
    """

    def __init__(
        self,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._stderr = Console(
            file=sys.stderr,
            no_color=self._no_color,
            stderr=True,
        )

    def info(self, message: str) -> None:
        """Print an informational message. Suppressed by ``quiet``."""
        if not self._quiet:
            self._emit(message, "{}")

    def success(self, message: str) -> None:
        """Print a green success message. Suppressed by ``quiet``."""
        if not self._quiet:
            self._emit(message, "[green]{}[/green]")

    def warning(self, message: str) -> None:
        """Print a yellow warning. NOT suppressed by ``quiet``."""
        if self._no_color:
            self._plain(f"Warning: {message}")
        else:
            self._stderr.print(f"[yellow]Warning:[/yellow] {escape(message)}")

    def suggest(self, message: str) -> None:
        """Print a dimmed next-step suggestion. Suppressed by ``quiet``."""
        if not self._quiet:
            self._emit(f"→ {message}", "[dim]{}[/dim]")

    def debug(self, message: str) -> None:
        """Print a debug message. Only shown when ``verbose`` is active."""
        if self._verbose:
            self._emit(f"[debug] {message}", "[dim]{}[/dim]")

    def _emit(self, message: str, markup: str) -> None:
        if self._no_color:
            self._plain(message)
        else:
            self._stderr.print(markup.format(escape(message)))

    def _plain(self, message: str) -> None:
        print(message, file=sys.stderr, flush=True)


def _should_disable_color() -> bool:
    """``NO_COLOR`` (any value, even empty) or ``TERM=dumb`` turn colour off."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Global output instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the global :class:`OutputManager`, creating a default one lazily.

    The default honours the ``quiet`` process option.
    """
    global _output
    if _output is None:
        from mobdb.config import get_options

        _output = OutputManager(quiet=get_options().quiet)
    return _output


def set_output(output: OutputManager) -> None:
    """Install *output* as the global :class:`OutputManager`."""
    global _output
    _output = output


def reset_output() -> None:
    """Drop the global manager; the next :func:`get_output` builds a fresh one."""
    global _output
    _output = None


