"""
Console progress output.

Colorized, human-readable status lines. Every line is also forwarded to the
logging system so --log-to-file captures the whole run.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

import typer

from .domain.enums import Outcome
from .utils import CONSOLE_LOGGER

logger = logging.getLogger(CONSOLE_LOGGER)


class ConsoleReporter:
    """Status lines for success, skip and failure of each unit of work."""

    def __init__(self, color: Optional[bool] = None, quiet: bool = False):
        self.color = color
        self.quiet = quiet

    def _emit(self, message: str, fg: Optional[str] = None, bold: bool = False,
              level: int = logging.INFO, err: bool = False) -> None:
        logger.log(level, message.strip())
        if self.quiet:
            return
        typer.secho(message, fg=fg, bold=bold, err=err, color=self.color)

    def heading(self, message: str, width: int = 60) -> None:
        self._emit(f"\n{'=' * width}", bold=True)
        self._emit(message, bold=True)
        self._emit("=" * width, bold=True)

    def title(self, message: str) -> None:
        self._emit(f"\n{message}\n", bold=True)

    def action(self, message: str) -> None:
        self._emit(message, fg=typer.colors.BLUE)

    def success(self, message: str) -> None:
        self._emit(message, fg=typer.colors.GREEN)

    def skip(self, message: str) -> None:
        self._emit(message, fg=typer.colors.YELLOW)

    def notice(self, message: str) -> None:
        self._emit(message, fg=typer.colors.YELLOW, level=logging.WARNING)

    def detail(self, message: str) -> None:
        self._emit(message, fg=typer.colors.CYAN)

    def failure(self, message: str) -> None:
        self._emit(message, fg=typer.colors.RED, level=logging.ERROR)

    def fatal(self, message: str) -> None:
        self._emit(message, fg=typer.colors.RED, bold=True, level=logging.ERROR, err=True)


@dataclass
class RunSummary:
    """Aggregate outcome of a download or convert run."""
    done: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    failed_outputs: list[str] = field(default_factory=list)

    def record(self, name: str, outcome: Outcome) -> None:
        if outcome is Outcome.DONE:
            self.done.append(name)
        elif outcome is Outcome.SKIPPED:
            self.skipped.append(name)
        else:
            self.failed.append(name)

    @property
    def failure_count(self) -> int:
        return len(self.failed) + len(self.failed_outputs)

    def describe(self) -> str:
        parts = [f"{len(self.done)} layer(s) processed"]
        if self.skipped:
            parts.append(f"{len(self.skipped)} skipped")
        parts.append(f"{self.failure_count} failure(s)")
        return ", ".join(parts)
