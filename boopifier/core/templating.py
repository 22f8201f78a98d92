"""Template substitution for handler configuration.

Every string inside a handler's ``config`` tree may contain ``{{name}}``
placeholders. Names resolve against, in order of namespace:

    {{env.HOME}}        process environment
    {{secret.token}}    secret providers
    {{message}}         event field
    {{tool_input.path}} nested event field

Unresolved placeholders render as an empty string.
"""

from __future__ import annotations

from collections.abc import Mapping
import logging
import re
from typing import Any

from boopifier.core.event import Event, value_to_str
from boopifier.core.secrets import SecretStore

logger = logging.getLogger(__name__)

PLACEHOLDER_RE = re.compile(r"\{\{\s*([A-Za-z_][\w-]*(?:\.[\w-]+)*)\s*\}\}")

ENV_NAMESPACE = "env."
SECRET_NAMESPACE = "secret."


class TemplateEngine:
    """Renders handler config trees against an event.

    Args:
        event: The canonical event supplying field values.
        environ: Mapping backing the ``env.`` namespace.
        secrets: Store backing the ``secret.`` namespace.
    """

    def __init__(
        self,
        event: Event,
        environ: Mapping[str, str] | None = None,
        secrets: SecretStore | None = None,
    ) -> None:
        self.event = event
        self.environ = environ or {}
        self.secrets = secrets

    def lookup(self, name: str) -> str | None:
        if name.startswith(ENV_NAMESPACE):
            return self.environ.get(name[len(ENV_NAMESPACE):])
        if name.startswith(SECRET_NAMESPACE):
            if self.secrets is None:
                return None
            return self.secrets.get(name[len(SECRET_NAMESPACE):])
        try:
            return value_to_str(self.event.resolve(name))
        except KeyError:
            return None

    def _replace(self, match: re.Match[str]) -> str:
        name = match.group(1)
        value = self.lookup(name)
        if value is None:
            logger.debug(f"Template placeholder '{name}' is unresolved")
            return ""
        return value

    def render_string(self, template: str) -> str:
        if "{{" not in template:
            return template
        return PLACEHOLDER_RE.sub(self._replace, template)

    def render(self, value: Any) -> Any:
        """Recursively render a JSON value; non-string leaves pass through."""
        if isinstance(value, str):
            return self.render_string(value)
        if isinstance(value, dict):
            return {key: self.render(item) for key, item in value.items()}
        if isinstance(value, list):
            return [self.render(item) for item in value]
        return value
