"""Mapping of handler type names to adapters."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from boopifier.handlers.base import HandlerAdapter
from boopifier.handlers.desktop import DesktopHandler
from boopifier.handlers.signal_cli import SignalHandler
from boopifier.handlers.smtp import EmailHandler
from boopifier.handlers.sound import SoundHandler
from boopifier.handlers.webhook import WebhookHandler


class HandlerRegistry:
    """Type-name to adapter lookup used by the dispatcher."""

    def __init__(self, adapters: Iterable[HandlerAdapter] = ()) -> None:
        self._adapters: dict[str, HandlerAdapter] = {}
        for adapter in adapters:
            self.register(adapter)

    def register(self, adapter: HandlerAdapter, *, replace: bool = False) -> None:
        if adapter.type_name in self._adapters and not replace:
            raise ValueError(f"Handler type '{adapter.type_name}' is already registered")
        self._adapters[adapter.type_name] = adapter

    def get(self, type_name: str) -> HandlerAdapter | None:
        return self._adapters.get(type_name)

    def types(self) -> list[str]:
        return sorted(self._adapters)

    def __contains__(self, type_name: object) -> bool:
        return type_name in self._adapters

    def __iter__(self) -> Iterator[HandlerAdapter]:
        return iter(self._adapters[name] for name in self.types())


def default_registry() -> HandlerRegistry:
    """Build a registry holding every built-in adapter."""
    return HandlerRegistry(
        [
            DesktopHandler(),
            EmailHandler(),
            SignalHandler(),
            SoundHandler(),
            WebhookHandler(),
        ]
    )
