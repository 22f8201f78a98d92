"""Error taxonomy for boopifier.

Fatal errors (``ParseError``, ``ConfigNotFound``, ``ConfigParseError``) stop
the invocation before anything is dispatched. ``HandlerAdapterError`` and
``HandlerTimeoutError`` are per-handler and only ever recorded in results.
"""

from __future__ import annotations

from pathlib import Path


class BoopifierError(Exception):
    """Base class for all boopifier errors."""


class ParseError(BoopifierError):
    """Raised when stdin is empty, malformed, or not a JSON object."""


class ConfigNotFound(BoopifierError):
    """Raised when no configuration file can be located."""

    def __init__(self, message: str, searched: list[Path] | None = None) -> None:
        self.searched = searched or []
        super().__init__(message)


class ConfigParseError(BoopifierError):
    """Raised when a configuration file is malformed or structurally invalid."""

    def __init__(self, path: Path | None, message: str) -> None:
        self.path = path
        where = f"{path}: " if path else ""
        super().__init__(f"{where}{message}")


class HandlerAdapterError(BoopifierError):
    """Raised by an adapter when its side effect fails."""

    def __init__(self, handler_type: str, message: str) -> None:
        self.handler_type = handler_type
        super().__init__(f"{handler_type} handler failed: {message}")


class HandlerTimeoutError(BoopifierError, TimeoutError):
    """Raised when a handler exceeds its deadline."""

    def __init__(self, handler_name: str, timeout: float) -> None:
        self.handler_name = handler_name
        self.timeout = timeout
        super().__init__(f"Handler '{handler_name}' timed out after {timeout:g}s")
