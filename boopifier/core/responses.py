"""JSON responses written back to the hook host on stdout.

Each canonical hook type knows its own response shape. Every hook boopifier
serves is a passive observer: it never blocks, denies or rewrites anything,
so the response is an empty object whatever the handlers reported.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
import logging

from pydantic import BaseModel, ConfigDict, Field

from boopifier.core.event import Event
from boopifier.core.types import DispatchResult

logger = logging.getLogger(__name__)


class HookResponse(BaseModel):
    """Hook output understood by Claude Code and OpenCode.

    Unset fields are omitted, so a default instance serializes to ``{}``.
    """

    model_config = ConfigDict(populate_by_name=True)

    continue_: bool | None = Field(default=None, alias="continue")
    suppress_output: bool | None = Field(default=None, alias="suppressOutput")
    system_message: str | None = Field(default=None, alias="systemMessage")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


ResponseBuilder = Callable[[Sequence[DispatchResult]], HookResponse]


def passive_response(results: Sequence[DispatchResult]) -> HookResponse:
    return HookResponse()


RESPONSE_BUILDERS: dict[str, ResponseBuilder] = {
    "Stop": passive_response,
    "SubagentStop": passive_response,
    "Notification": passive_response,
    "PreToolUse": passive_response,
    "PostToolUse": passive_response,
    "PermissionRequest": passive_response,
    "UserPromptSubmit": passive_response,
    "SessionStart": passive_response,
    "SessionEnd": passive_response,
    "PreCompact": passive_response,
    "FileEdited": passive_response,
    "SessionError": passive_response,
}


def build_response(event: Event, results: Sequence[DispatchResult]) -> HookResponse | None:
    """Return the response for ``event``'s hook type, or ``None`` if it has none."""
    builder = RESPONSE_BUILDERS.get(event.name)
    if builder is None:
        logger.debug(f"No hook response defined for {event.name} events")
        return None
    return builder(results)
