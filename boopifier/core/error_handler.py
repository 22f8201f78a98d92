"""Diagnostics on stderr, formatted with Rich.

Hook hosts may read a handler's stdout, so every diagnostic goes to a
separate stderr console.

Usage:
    from boopifier.core.error_handler import DiagnosticsReporter

    reporter = DiagnosticsReporter()
    try:
        results = pipeline.run(sys.stdin.buffer)
    except BoopifierError as e:
        reporter.display_error(e)
"""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from boopifier.core.errors import (
    BoopifierError,
    ConfigNotFound,
    ConfigParseError,
    ParseError,
)
from boopifier.core.types import DispatchResult, DispatchStatus

COLORS = {
    "error": "#FF4444",
    "warning": "#FFB800",
    "info": "#00D26A",
    "muted": "#666666",
}

_STATUS_STYLES = {
    DispatchStatus.SUCCESS: COLORS["info"],
    DispatchStatus.ERROR: COLORS["error"],
    DispatchStatus.TIMEOUT: COLORS["warning"],
}


def error_context(error: BaseException) -> str:
    """Describe which stage an error came from."""
    if isinstance(error, ParseError):
        return "Event Parsing"
    if isinstance(error, ConfigNotFound):
        return "Config Discovery"
    if isinstance(error, ConfigParseError):
        return "Config Loading"
    if isinstance(error, BoopifierError):
        return "Dispatch"
    return "Boopifier"


class DiagnosticsReporter:
    """Renders fatal errors and handler results to stderr."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True)

    def display_error(self, error: BaseException, context: str | None = None) -> None:
        """Display a formatted error panel.

        Args:
            error: The exception that stopped the invocation.
            context: Stage description; derived from the error type if omitted.
        """
        context = context or error_context(error)
        content = Text()
        content.append(f"{type(error).__name__}\n", style=f"bold {COLORS['error']}")
        content.append(str(error), style=COLORS["muted"])

        searched = getattr(error, "searched", None)
        if isinstance(error, ConfigNotFound) and searched:
            content.append("\n\nSearched:\n", style=COLORS["muted"])
            for path in searched:
                content.append(f"  {path}\n", style="dim")

        self.console.print(
            Panel(
                content,
                title=f"[{COLORS['error']}]{context} Failed[/{COLORS['error']}]",
                border_style=COLORS["error"],
                padding=(0, 2),
            )
        )

    def display_results(
        self, results: Sequence[DispatchResult], show_all: bool = False
    ) -> None:
        """Print a table of handler outcomes.

        Only failures are listed unless ``show_all`` is set; nothing is
        printed when there is nothing to show.
        """
        rows = [r for r in results if show_all or not r.ok]
        if not rows:
            return

        table = Table(title="Handler results", title_justify="left")
        table.add_column("Handler")
        table.add_column("Type", style=COLORS["muted"])
        table.add_column("Status")
        table.add_column("Time", justify="right")
        table.add_column("Reason", overflow="fold")
        for result in rows:
            style = _STATUS_STYLES[result.status]
            table.add_row(
                result.handler_name,
                result.handler_type,
                Text(result.status.value, style=style),
                f"{result.elapsed:.2f}s",
                result.reason or "",
            )
        self.console.print(table)

    @staticmethod
    def format_error_message(error: BaseException, context: str = "Error") -> str:
        """Format an error as plain text for logs."""
        return f"[{context}] {type(error).__name__}: {error}"
