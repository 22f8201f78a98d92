"""Signal messages through signal-cli."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from pydantic import BaseModel, Field, field_validator

from boopifier.core.event import Event
from boopifier.handlers.base import HandlerAdapter, find_executable, run_command


class SignalConfig(BaseModel):
    account: str = Field(min_length=1)
    recipients: list[str] = Field(min_length=1)
    message: str = Field(min_length=1)
    signal_cli: str = "signal-cli"

    @field_validator("recipients", mode="before")
    @classmethod
    def split_single_recipient(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value


class SignalHandler(HandlerAdapter):
    type_name: ClassVar[str] = "signal"
    description: ClassVar[str] = "Signal message via signal-cli"

    def build_command(self, cfg: SignalConfig, executable: str) -> list[str]:
        return [executable, "-a", cfg.account, "send", "-m", cfg.message, *cfg.recipients]

    async def handle(self, config: Mapping[str, Any], event: Event) -> None:
        cfg = self.parse_config(SignalConfig, config)
        executable = find_executable(self.type_name, [cfg.signal_cli])
        await run_command(self.type_name, self.build_command(cfg, executable))
