"""One invocation: read event, resolve config, match, template, dispatch."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine, Mapping, Sequence
import logging
import os
from pathlib import Path
from typing import Any, BinaryIO, TypeVar

from boopifier.core.config import ConfigResolver
from boopifier.core.dispatch import Dispatcher, PreparedHandler
from boopifier.core.event import Event, read_event
from boopifier.core.matching import HandlerMatcher
from boopifier.core.secrets import build_secret_store
from boopifier.core.settings import BoopifierSettings
from boopifier.core.templating import TemplateEngine
from boopifier.core.types import DispatchResult, HandlerConfig, ResolvedConfig
from boopifier.handlers.registry import HandlerRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")


def run_until_complete(coro: Coroutine[Any, Any, T]) -> T:
    """Run ``coro`` on a fresh event loop without awaiting leftover tasks.

    Unlike ``asyncio.run``, closing the loop here never waits on tasks that
    ignored cancellation, so a misbehaving backend cannot hold up exit.
    """
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        try:
            loop.run_until_complete(loop.shutdown_asyncgens())
        finally:
            loop.close()


class Pipeline:
    """Wires the stages together for a single hook event.

    Args:
        registry: Adapters available to dispatch.
        settings: Process settings (timeouts, concurrency).
        cwd: Working directory for config discovery and overrides.
        environ: Environment used for project hints, ``env.`` and secrets.
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        settings: BoopifierSettings | None = None,
        cwd: str | Path | None = None,
        environ: Mapping[str, str] | None = None,
        home: Path | None = None,
    ) -> None:
        self.registry = registry
        self.settings = settings or BoopifierSettings()
        self.cwd = Path(cwd) if cwd is not None else Path.cwd()
        self.environ = dict(os.environ if environ is None else environ)
        self.resolver = ConfigResolver(
            self.cwd,
            project_root_hints=self.settings.project_root_hints(self.environ),
            home=home,
            environ=self.environ,
        )

    def resolve_config(
        self, event: Event, config_path: str | Path | None = None
    ) -> ResolvedConfig:
        return self.resolver.resolve(event.source, config_path or self.settings.config)

    def effective_timeout(self, resolved: ResolvedConfig, timeout: float | None = None) -> float:
        if timeout is not None:
            return timeout
        if resolved.timeout is not None:
            return resolved.timeout
        return self.settings.timeout

    def prepare(
        self, handlers: Sequence[HandlerConfig], event: Event, resolved: ResolvedConfig
    ) -> list[PreparedHandler]:
        """Match handlers against the event and render their configs."""
        selected = HandlerMatcher().select(handlers, event)
        secrets = build_secret_store(self.environ, resolved.secrets_file)
        engine = TemplateEngine(event, self.environ, secrets)
        return [PreparedHandler(handler, engine.render(handler.config)) for handler in selected]

    async def dispatch(
        self, event: Event, resolved: ResolvedConfig, timeout: float | None = None
    ) -> list[DispatchResult]:
        prepared = self.prepare(resolved.handlers, event, resolved)
        dispatcher = Dispatcher(
            self.registry,
            timeout=self.effective_timeout(resolved, timeout),
            max_concurrency=resolved.max_concurrency or self.settings.max_concurrency,
        )
        return await dispatcher.dispatch(prepared, event)

    def run(
        self,
        stream: BinaryIO,
        config_path: str | Path | None = None,
        timeout: float | None = None,
    ) -> list[DispatchResult]:
        """Process one event from ``stream``.

        Raises:
            ParseError: If the event cannot be read.
            ConfigNotFound: If no configuration is available.
            ConfigParseError: If the configuration is invalid.
        """
        return self.run_event(read_event(stream), config_path, timeout)

    def run_event(
        self,
        event: Event,
        config_path: str | Path | None = None,
        timeout: float | None = None,
    ) -> list[DispatchResult]:
        """Resolve config for an already-read event and dispatch it."""
        logger.debug(f"Received {event.name} event from {event.source}")
        resolved = self.resolve_config(event, config_path)
        logger.debug(
            f"Loaded {len(resolved.handlers)} handler(s) from {resolved.source_path}"
        )
        return run_until_complete(self.dispatch(event, resolved, timeout))
