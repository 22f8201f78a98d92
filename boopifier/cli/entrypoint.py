"""Boopifier CLI entrypoint.

Hook hosts run ``boopifier`` with the event JSON on stdin:

    echo '{"hook_event_name": "Notification", "message": "hi"}' | boopifier
"""

from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
import sys

from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from boopifier import __version__
from boopifier.core.dispatch import EXIT_FAILURE, EXIT_SUCCESS, aggregate_exit_code
from boopifier.core.error_handler import DiagnosticsReporter, error_context
from boopifier.core.errors import BoopifierError
from boopifier.core.event import read_event
from boopifier.core.pipeline import Pipeline
from boopifier.core.responses import build_response
from boopifier.core.settings import BoopifierSettings
from boopifier.handlers.registry import HandlerRegistry, default_registry

logger = logging.getLogger(__name__)


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="boopifier",
        description="Universal notification handler for coding-agent hook events",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  echo '{"hook_event_name": "Stop"}' | boopifier
  boopifier --config ./boopifier.json < event.json
  boopifier --list-handlers
        """,
    )
    parser.add_argument(
        "-c", "--config", default=None, help="Path to the config file (skips discovery)"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Global dispatch deadline in seconds",
    )
    parser.add_argument(
        "--list-handlers",
        action="store_true",
        help="List the available handler types and exit",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = parser.parse_args(argv)
    if args.timeout is not None and args.timeout <= 0:
        parser.error("--timeout must be positive")
    return args


def configure_logging(level: str, console: Console) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
        force=True,
    )


def print_handler_types(registry: HandlerRegistry, console: Console) -> None:
    table = Table(title="Handler types", title_justify="left")
    table.add_column("Type", style="bold")
    table.add_column("Description")
    for adapter in registry:
        table.add_row(adapter.type_name, adapter.description)
    console.print(table)


def main(argv: list[str] | None = None, registry: HandlerRegistry | None = None) -> int:
    args = parse_arguments(argv)
    err_console = Console(stderr=True)
    reporter = DiagnosticsReporter(err_console)

    try:
        settings = BoopifierSettings()
    except ValidationError as e:
        reporter.display_error(e, context="Settings")
        return EXIT_FAILURE

    level = "DEBUG" if args.verbose else settings.log_level
    try:
        configure_logging(level, err_console)
    except ValueError:
        configure_logging("WARNING", err_console)
        logger.warning(f"Unknown log level {level!r}, using WARNING")

    if registry is None:
        registry = default_registry()
    if args.list_handlers:
        print_handler_types(registry, Console())
        return EXIT_SUCCESS

    pipeline = Pipeline(registry, settings=settings, cwd=Path.cwd(), environ=os.environ)
    try:
        event = read_event(sys.stdin.buffer)
        results = pipeline.run_event(event, config_path=args.config, timeout=args.timeout)
    except BoopifierError as e:
        logger.debug(DiagnosticsReporter.format_error_message(e, error_context(e)))
        reporter.display_error(e)
        return EXIT_FAILURE

    reporter.display_results(results, show_all=args.verbose)
    response = build_response(event, results)
    if response is not None:
        sys.stdout.write(response.to_json() + "\n")
        sys.stdout.flush()
    return aggregate_exit_code(results)


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
