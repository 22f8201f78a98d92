"""Audio playback through whichever command-line player is installed."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
import sys
from typing import Any, ClassVar

from pydantic import BaseModel

from boopifier.core.errors import HandlerAdapterError
from boopifier.core.event import Event
from boopifier.handlers.base import HandlerAdapter, find_executable, run_command

DARWIN_PLAYERS = ("afplay",)
LINUX_PLAYERS = ("paplay", "pw-play", "aplay", "ffplay")


class SoundConfig(BaseModel):
    file: str
    player: str | None = None


class SoundHandler(HandlerAdapter):
    type_name: ClassVar[str] = "sound"
    description: ClassVar[str] = "Play an audio file"

    def __init__(self, platform: str | None = None) -> None:
        self.platform = platform or sys.platform

    def player_candidates(self, cfg: SoundConfig) -> tuple[str, ...]:
        if cfg.player:
            return (cfg.player,)
        return DARWIN_PLAYERS if self.platform == "darwin" else LINUX_PLAYERS

    async def handle(self, config: Mapping[str, Any], event: Event) -> None:
        cfg = self.parse_config(SoundConfig, config)
        path = Path(cfg.file).expanduser()
        if not path.is_file():
            raise HandlerAdapterError(self.type_name, f"sound file not found: {path}")

        player = find_executable(self.type_name, self.player_candidates(cfg))
        argv = [player, str(path)]
        if Path(player).name == "ffplay":
            argv = [player, "-nodisp", "-autoexit", "-loglevel", "quiet", str(path)]
        await run_command(self.type_name, argv)
