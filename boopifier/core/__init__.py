"""Core event pipeline: ingestion, config resolution, matching, templating, dispatch."""

from __future__ import annotations

from boopifier.core.errors import (
    BoopifierError,
    ConfigNotFound,
    ConfigParseError,
    HandlerAdapterError,
    HandlerTimeoutError,
    ParseError,
)
from boopifier.core.event import Event, EventSource, normalize_event, parse_event
from boopifier.core.types import (
    BoopifierConfig,
    DispatchResult,
    DispatchStatus,
    HandlerConfig,
    Override,
    ResolvedConfig,
)

__all__ = [
    "BoopifierConfig",
    "BoopifierError",
    "ConfigNotFound",
    "ConfigParseError",
    "DispatchResult",
    "DispatchStatus",
    "Event",
    "EventSource",
    "HandlerAdapterError",
    "HandlerConfig",
    "HandlerTimeoutError",
    "Override",
    "ParseError",
    "ResolvedConfig",
    "normalize_event",
    "parse_event",
]
