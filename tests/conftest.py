from __future__ import annotations

from collections.abc import Callable
import json
from pathlib import Path
from typing import Any

import pytest

from boopifier.handlers.registry import HandlerRegistry
from tests.mock.handlers import (
    CrashingHandler,
    FailingHandler,
    RecordingHandler,
    SleepingHandler,
    StubbornHandler,
)

_ISOLATED_ENV_VARS = (
    "BOOPIFIER_PROJECT_DIR",
    "BOOPIFIER_CONFIG",
    "BOOPIFIER_TIMEOUT",
    "BOOPIFIER_MAX_CONCURRENCY",
    "BOOPIFIER_LOG_LEVEL",
    "CLAUDE_PROJECT_DIR",
    "OPENCODE_PROJECT_DIR",
    "XDG_CONFIG_HOME",
)


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep the developer's real config and env vars out of every test."""
    for name in _ISOLATED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))


@pytest.fixture
def home(tmp_path: Path) -> Path:
    return tmp_path / "home"


@pytest.fixture
def write_config() -> Callable[[Path, dict[str, Any]], Path]:
    def _write(path: Path, data: dict[str, Any]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def recorder() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def sleeper() -> SleepingHandler:
    return SleepingHandler()


@pytest.fixture
def registry(recorder: RecordingHandler, sleeper: SleepingHandler) -> HandlerRegistry:
    return HandlerRegistry(
        [recorder, sleeper, FailingHandler(), CrashingHandler(), StubbornHandler()]
    )
