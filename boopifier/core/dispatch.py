"""Concurrent handler dispatch.

Each matched handler runs as its own asyncio task. A failure in one task is
recorded on that handler's result only; a single deadline bounds the whole
fan-out, and anything still running when it passes is cancelled and
reported as a timeout.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass
import logging
import time
from typing import TYPE_CHECKING, Any

from boopifier.core.errors import HandlerAdapterError, HandlerTimeoutError
from boopifier.core.event import Event
from boopifier.core.settings import DEFAULT_MAX_CONCURRENCY, DEFAULT_TIMEOUT
from boopifier.core.types import DispatchResult, DispatchStatus, HandlerConfig

if TYPE_CHECKING:
    from boopifier.handlers.registry import HandlerRegistry

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
# Exit code 2 is a blocking signal to hook hosts, so every failure maps to 1
EXIT_FAILURE = 1

# Final slice of the deadline left for cancelled handlers to release resources
CANCEL_GRACE_PERIOD = 0.25


@dataclass(frozen=True)
class PreparedHandler:
    """A matched handler with its config already templated."""

    handler: HandlerConfig
    config: dict[str, Any]


class Dispatcher:
    """Runs prepared handlers concurrently under one deadline.

    Args:
        registry: Adapter lookup by handler type.
        timeout: Global deadline in seconds for the whole fan-out.
        max_concurrency: Upper bound on handlers running at once.
        grace_period: How long before the deadline stragglers are cancelled,
            capped at half the timeout.
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        timeout: float = DEFAULT_TIMEOUT,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        grace_period: float = CANCEL_GRACE_PERIOD,
    ) -> None:
        self.registry = registry
        self.timeout = timeout
        self.max_concurrency = max_concurrency
        self.grace_period = grace_period

    def _result(
        self,
        handler: HandlerConfig,
        status: DispatchStatus,
        start: float,
        reason: str | None = None,
    ) -> DispatchResult:
        return DispatchResult(
            handler_name=handler.name,
            handler_type=handler.type,
            status=status,
            reason=reason,
            elapsed=time.perf_counter() - start,
        )

    async def _invoke(self, prepared: PreparedHandler, event: Event) -> None:
        handler = prepared.handler
        adapter = self.registry.get(handler.type)
        if adapter is None:
            raise HandlerAdapterError(handler.type, "unknown handler type")

        call = adapter.handle(prepared.config, event)
        if handler.timeout is None or handler.timeout >= self.timeout:
            await call
            return
        try:
            await asyncio.wait_for(call, handler.timeout)
        except TimeoutError:
            raise HandlerTimeoutError(handler.name, handler.timeout) from None

    async def run_handler(
        self,
        prepared: PreparedHandler,
        event: Event,
        semaphore: asyncio.Semaphore,
    ) -> DispatchResult:
        """Run one handler, converting every failure into a result."""
        handler = prepared.handler
        start = time.perf_counter()
        try:
            async with semaphore:
                await self._invoke(prepared, event)
        except HandlerTimeoutError as e:
            logger.warning(str(e))
            return self._result(handler, DispatchStatus.TIMEOUT, start, str(e))
        except HandlerAdapterError as e:
            logger.warning(f"Handler '{handler.name}': {e}")
            return self._result(handler, DispatchStatus.ERROR, start, str(e))
        except Exception as e:
            logger.error(
                f"Handler '{handler.name}' raised unexpectedly: {type(e).__name__}: {e}"
            )
            return self._result(
                handler, DispatchStatus.ERROR, start, f"{type(e).__name__}: {e}"
            )

        logger.debug(f"Handler '{handler.name}' succeeded")
        return self._result(handler, DispatchStatus.SUCCESS, start)

    async def dispatch(
        self, prepared: Sequence[PreparedHandler], event: Event
    ) -> list[DispatchResult]:
        """Dispatch every handler and return results in declaration order."""
        if not prepared:
            return []

        loop = asyncio.get_running_loop()
        start = time.perf_counter()
        deadline = loop.time() + self.timeout
        # The cancellation grace is carved out of the deadline, never added to it
        grace = min(self.grace_period, self.timeout / 2)
        semaphore = asyncio.Semaphore(min(len(prepared), self.max_concurrency))
        tasks = [
            asyncio.create_task(
                self.run_handler(item, event, semaphore),
                name=f"boopifier:{item.handler.name}",
            )
            for item in prepared
        ]

        _, pending = await asyncio.wait(tasks, timeout=self.timeout - grace)
        if pending:
            logger.warning(
                f"{len(pending)} handler(s) still running near the {self.timeout:g}s "
                "deadline, cancelling"
            )
            for task in pending:
                task.cancel()
            await asyncio.wait(pending, timeout=max(deadline - loop.time(), 0))

        results: list[DispatchResult] = []
        for item, task in zip(prepared, tasks):
            finished = task.done() and not task.cancelled()
            if finished and task.exception() is None:
                results.append(task.result())
                continue
            reason = str(HandlerTimeoutError(item.handler.name, self.timeout))
            if finished:
                reason = f"{type(task.exception()).__name__}: {task.exception()}"
                status = DispatchStatus.ERROR
            else:
                status = DispatchStatus.TIMEOUT
            results.append(self._result(item.handler, status, start, reason))
        return results


def aggregate_exit_code(results: Sequence[DispatchResult]) -> int:
    """Zero only when every dispatched handler succeeded."""
    if all(result.ok for result in results):
        return EXIT_SUCCESS
    return EXIT_FAILURE
