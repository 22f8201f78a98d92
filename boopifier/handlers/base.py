"""Handler adapter contract and shared helpers for adapters.

An adapter performs one side effect for a matched handler. It receives the
handler's already-templated ``config`` mapping plus the canonical event and
either returns normally (success) or raises ``HandlerAdapterError``.
Adapters must stay cancellable: the dispatcher cancels any call still running
at the invocation deadline.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import asyncio
from collections.abc import Callable, Mapping, Sequence
import logging
import shutil
import threading
from typing import Any, ClassVar, TypeVar

from pydantic import BaseModel, ValidationError

from boopifier.core.errors import HandlerAdapterError
from boopifier.core.event import Event

logger = logging.getLogger(__name__)

T = TypeVar("T")
C = TypeVar("C", bound=BaseModel)


class HandlerAdapter(ABC):
    """Base class for notification backends."""

    type_name: ClassVar[str]
    description: ClassVar[str] = ""

    @abstractmethod
    async def handle(self, config: Mapping[str, Any], event: Event) -> None:
        """Perform the side effect.

        Raises:
            HandlerAdapterError: If the backend fails.
        """

    def parse_config(self, model: type[C], config: Mapping[str, Any]) -> C:
        """Validate ``config`` against the adapter's pydantic model."""
        try:
            return model.model_validate(dict(config))
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
                for err in e.errors()
            )
            raise HandlerAdapterError(self.type_name, f"invalid config: {problems}") from e


def find_executable(type_name: str, candidates: Sequence[str]) -> str:
    """Return the first executable in ``candidates`` found on PATH."""
    for name in candidates:
        path = shutil.which(name)
        if path:
            return path
    raise HandlerAdapterError(
        type_name, f"none of {', '.join(candidates)} found on PATH"
    )


async def run_command(type_name: str, argv: Sequence[str], stdin: bytes | None = None) -> str:
    """Run an external command, killing it if the caller is cancelled.

    Returns:
        The command's decoded stdout.

    Raises:
        HandlerAdapterError: If the command cannot start or exits non-zero.
    """
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise HandlerAdapterError(type_name, f"failed to start {argv[0]}: {e}") from e

    try:
        stdout_bytes, stderr_bytes = await process.communicate(input=stdin)
    except asyncio.CancelledError:
        if process.returncode is None:
            process.kill()
        raise

    if process.returncode != 0:
        stderr = stderr_bytes.decode("utf-8", errors="replace").strip()
        raise HandlerAdapterError(
            type_name,
            stderr or f"{argv[0]} exited with code {process.returncode}",
        )
    return stdout_bytes.decode("utf-8", errors="replace").strip()


async def run_blocking(func: Callable[..., T], *args: Any) -> T:
    """Run a blocking call on a daemon thread and await its result.

    Daemon threads never keep the process alive, so a call abandoned at the
    deadline cannot delay exit.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[T] = loop.create_future()

    def _deliver(setter: Callable[[Any], None], value: Any) -> None:
        if not future.done():
            setter(value)

    def _worker() -> None:
        try:
            result = func(*args)
        except Exception as e:
            outcome: tuple[Callable[[Any], None], Any] = (future.set_exception, e)
        else:
            outcome = (future.set_result, result)
        try:
            loop.call_soon_threadsafe(_deliver, *outcome)
        except RuntimeError:
            logger.debug(f"Event loop closed before {func.__name__} finished")

    threading.Thread(target=_worker, name=f"boopifier-{func.__name__}", daemon=True).start()
    return await future
