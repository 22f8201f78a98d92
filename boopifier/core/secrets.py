"""Secret providers for the ``secret.`` template namespace.

Lookups are read-only and cached for the lifetime of a :class:`SecretStore`,
which is built once per invocation.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import json
import logging
from pathlib import Path
from typing import Any, Protocol

from boopifier.core.event import value_to_str
from boopifier.core.settings import SECRET_ENV_PREFIX

logger = logging.getLogger(__name__)


class SecretProvider(Protocol):
    def get_secret(self, name: str) -> str | None: ...


class EnvSecretProvider:
    """Reads secrets from ``BOOPIFIER_SECRET_<NAME>`` environment variables."""

    def __init__(self, environ: Mapping[str, str], prefix: str = SECRET_ENV_PREFIX) -> None:
        self._environ = environ
        self._prefix = prefix

    def get_secret(self, name: str) -> str | None:
        key = self._prefix + name.upper().replace("-", "_").replace(".", "_")
        return self._environ.get(key)


class FileSecretProvider:
    """Reads secrets from a JSON object file, loaded lazily on first use."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._data: dict[str, Any] | None = None

    def _load(self) -> dict[str, Any]:
        if self._data is None:
            self._data = {}
            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
            except FileNotFoundError:
                logger.warning(f"Secrets file not found: {self.path}")
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Could not read secrets file {self.path}: {e}")
            else:
                if isinstance(data, dict):
                    self._data = data
                else:
                    logger.warning(f"Secrets file {self.path} is not a JSON object")
        return self._data

    def get_secret(self, name: str) -> str | None:
        data = self._load()
        if name not in data:
            return None
        return value_to_str(data[name])


class SecretStore:
    """Queries providers in order and memoizes the answers."""

    def __init__(self, providers: Sequence[SecretProvider]) -> None:
        self._providers = list(providers)
        self._cache: dict[str, str | None] = {}

    def get(self, name: str) -> str | None:
        if name not in self._cache:
            value = None
            for provider in self._providers:
                value = provider.get_secret(name)
                if value is not None:
                    break
            if value is None:
                logger.debug(f"Secret '{name}' is not defined")
            self._cache[name] = value
        return self._cache[name]


def build_secret_store(
    environ: Mapping[str, str], secrets_file: Path | None = None
) -> SecretStore:
    providers: list[SecretProvider] = []
    if secrets_file is not None:
        providers.append(FileSecretProvider(secrets_file))
    providers.append(EnvSecretProvider(environ))
    return SecretStore(providers)
