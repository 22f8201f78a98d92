"""Desktop notifications via notify-send (Linux) or osascript (macOS)."""

from __future__ import annotations

from collections.abc import Mapping
import sys
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, Field

from boopifier.core.event import Event
from boopifier.handlers.base import HandlerAdapter, find_executable, run_command


class DesktopConfig(BaseModel):
    title: str = "Boopifier"
    message: str = ""
    urgency: Literal["low", "normal", "critical"] = "normal"
    icon: str | None = None
    app_name: str = "boopifier"
    expire_ms: int | None = Field(default=None, ge=0)
    sound: str | None = Field(
        default=None, description="macOS notification sound name"
    )


def _applescript_quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


class DesktopHandler(HandlerAdapter):
    type_name: ClassVar[str] = "desktop"
    description: ClassVar[str] = "Desktop notification (notify-send / osascript)"

    def __init__(self, platform: str | None = None) -> None:
        self.platform = platform or sys.platform

    def build_command(self, cfg: DesktopConfig, executable: str) -> list[str]:
        if self.platform == "darwin":
            script = (
                f"display notification {_applescript_quote(cfg.message)} "
                f"with title {_applescript_quote(cfg.title)}"
            )
            if cfg.sound:
                script += f" sound name {_applescript_quote(cfg.sound)}"
            return [executable, "-e", script]

        argv = [executable, "--app-name", cfg.app_name, "--urgency", cfg.urgency]
        if cfg.icon:
            argv += ["--icon", cfg.icon]
        if cfg.expire_ms is not None:
            argv += ["--expire-time", str(cfg.expire_ms)]
        argv += [cfg.title, cfg.message]
        return argv

    async def handle(self, config: Mapping[str, Any], event: Event) -> None:
        cfg = self.parse_config(DesktopConfig, config)
        candidates = ["osascript"] if self.platform == "darwin" else ["notify-send"]
        executable = find_executable(self.type_name, candidates)
        await run_command(self.type_name, self.build_command(cfg, executable))
