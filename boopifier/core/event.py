"""Event ingestion and source normalization.

Hook hosts write one JSON object to stdin per invocation. Claude Code events
already carry ``hook_event_name``; OpenCode events identify themselves with a
dotted name (``tool.execute.before``) in one of a few fields and are rewritten
so that match rules written against canonical names work for both.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
import json
import logging
from types import MappingProxyType
from typing import Any, BinaryIO

from pydantic import BaseModel, ConfigDict, field_validator

from boopifier.core.errors import ParseError

logger = logging.getLogger(__name__)

HOOK_EVENT_NAME = "hook_event_name"
UNKNOWN_EVENT_NAME = "Unknown"

# Fields inspected, in order, for an OpenCode event name
OPENCODE_NAME_FIELDS = ("type", "event", "hook")

OPENCODE_EVENT_MAP: dict[str, str] = {
    "tool.execute.before": "PreToolUse",
    "tool.execute.after": "PostToolUse",
    "session.idle": "Stop",
    "session.completed": "Stop",
    "session.created": "SessionStart",
    "session.deleted": "SessionEnd",
    "session.compacted": "PreCompact",
    "session.compacting": "PreCompact",
    "file.edited": "FileEdited",
    "session.error": "SessionError",
}


def freeze(value: Any) -> Any:
    """Return a read-only deep copy of a JSON value.

    Objects become ``MappingProxyType`` views and arrays become tuples.
    """
    if isinstance(value, Mapping):
        return MappingProxyType({key: freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(item) for item in value)
    return value


def thaw(value: Any) -> Any:
    """Inverse of :func:`freeze`: plain, mutable ``dict``/``list`` values."""
    if isinstance(value, Mapping):
        return {key: thaw(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [thaw(item) for item in value]
    return value


class EventSource(StrEnum):
    """Hook ecosystem an event originated from."""

    CLAUDE = "claude"
    OPENCODE = "opencode"
    UNKNOWN = "unknown"


class Event(BaseModel):
    """A canonical hook event.

    ``data`` always contains ``hook_event_name`` once built by
    :func:`normalize_event`. The payload is deep-frozen on construction, so
    every concurrent handler sees the same unmodifiable data. Use
    :meth:`to_dict` for a private mutable copy.
    """

    model_config = ConfigDict(frozen=True)

    data: Mapping[str, Any]
    source: EventSource = EventSource.CLAUDE
    unclassified: bool = False

    @field_validator("data", mode="after")
    @classmethod
    def freeze_data(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return freeze(value)

    @property
    def name(self) -> str:
        return str(self.data.get(HOOK_EVENT_NAME, UNKNOWN_EVENT_NAME))

    def resolve(self, path: str) -> Any:
        """Look up a field, walking nested objects for dotted paths.

        Raises:
            KeyError: If any segment of the path is missing.
        """
        if path in self.data:
            return self.data[path]

        current: Any = self.data
        for part in path.split("."):
            if isinstance(current, Mapping) and part in current:
                current = current[part]
            elif isinstance(current, tuple) and part.isdigit() and int(part) < len(current):
                current = current[int(part)]
            else:
                raise KeyError(path)
        return current

    def get(self, path: str, default: Any = None) -> Any:
        try:
            return self.resolve(path)
        except KeyError:
            return default

    def to_dict(self) -> dict[str, Any]:
        return thaw(self.data)


def parse_event(raw: bytes | str) -> dict[str, Any]:
    """Parse raw stdin content into a JSON object.

    Raises:
        ParseError: If the input is empty, not valid JSON, or not an object.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"Event input is not valid UTF-8: {e}") from e

    if not raw.strip():
        raise ParseError("No event received on stdin")

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ParseError(f"Failed to parse event JSON: {e}") from e

    if not isinstance(data, dict):
        raise ParseError(
            f"Event must be a JSON object, got {type(data).__name__}"
        )
    return data


def detect_opencode_event(data: dict[str, Any]) -> str | None:
    """Return the dotted OpenCode event name carried by ``data``, if any."""
    for field in OPENCODE_NAME_FIELDS:
        value = data.get(field)
        if isinstance(value, str) and "." in value:
            return value
    return None


def normalize_event(data: dict[str, Any]) -> Event:
    """Rewrite a parsed payload into a canonical :class:`Event`.

    Never raises: names that cannot be classified are passed through and the
    event is flagged ``unclassified``.
    """
    payload = dict(data)

    if HOOK_EVENT_NAME in payload:
        if not isinstance(payload[HOOK_EVENT_NAME], str):
            payload[HOOK_EVENT_NAME] = json.dumps(payload[HOOK_EVENT_NAME])
        return Event(data=payload, source=EventSource.CLAUDE)

    opencode_name = detect_opencode_event(payload)
    if opencode_name is None:
        logger.debug("Event has no identifying field, treating as Unknown")
        payload[HOOK_EVENT_NAME] = UNKNOWN_EVENT_NAME
        return Event(data=payload, source=EventSource.UNKNOWN, unclassified=True)

    mapped = OPENCODE_EVENT_MAP.get(opencode_name)
    if mapped is None:
        logger.info(f"Unrecognized OpenCode event '{opencode_name}', passing through")
        payload[HOOK_EVENT_NAME] = opencode_name
        return Event(data=payload, source=EventSource.OPENCODE, unclassified=True)

    payload[HOOK_EVENT_NAME] = mapped
    return Event(data=payload, source=EventSource.OPENCODE)


def read_event(stream: BinaryIO) -> Event:
    """Read, parse and normalize one event from a binary stream."""
    return normalize_event(parse_event(stream.read()))


def value_to_str(value: Any) -> str:
    """Render a JSON value as text for matching and templating."""
    if isinstance(value, str):
        return value
    if value is None:
        return ""
    return json.dumps(thaw(value), separators=(",", ":"), ensure_ascii=False)
