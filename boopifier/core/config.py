"""Configuration discovery, loading and path-pattern overrides.

The resolver walks a fixed list of candidate files, project-level before
global and ecosystem-specific before shared, and loads the first one that
exists. Overrides are only ever taken from that selected file.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import json
import logging
import os
from pathlib import Path
import re

from pydantic import ValidationError

from boopifier.core.errors import ConfigNotFound, ConfigParseError
from boopifier.core.event import EventSource
from boopifier.core.types import BoopifierConfig, HandlerConfig, Override, ResolvedConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "boopifier.json"
SHARED_PROJECT_DIR = ".boopifier"
SHARED_CONFIG_FILENAME = "config.json"

_PROJECT_ECOSYSTEM_DIRS = {
    EventSource.CLAUDE: ".claude",
    EventSource.OPENCODE: ".opencode",
    EventSource.UNKNOWN: ".claude",
}


def _normalize_path(path: str) -> str:
    normalized = os.path.normpath(path)
    # normpath keeps a leading "//" on POSIX
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    return normalized


def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate a path glob into a compiled regex.

    ``*`` and ``?`` never cross a ``/``; ``**`` spans any number of
    segments. A trailing ``/**`` also matches the directory itself.
    """
    out: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        c = pattern[i]
        if c == "*":
            j = i
            while j < n and pattern[j] == "*":
                j += 1
            if j - i == 1:
                out.append("[^/]*")
            else:
                at_start = i == 0 or pattern[i - 1] == "/"
                at_end = j == n or pattern[j] == "/"
                if at_start and j < n and at_end:
                    out.append("(?:.*/)?")
                    j += 1
                elif at_start and j == n and out:
                    out.pop()
                    out.append("(?:/.*)?")
                else:
                    out.append(".*")
            i = j
            continue
        if c == "?":
            out.append("[^/]")
        else:
            out.append(re.escape(c))
        i += 1
    return re.compile("".join(out))


def path_matches(pattern: str, path: str, home: Path | None = None) -> bool:
    """Check whether ``path`` matches the glob ``pattern``."""
    if pattern == "~" or pattern.startswith("~/"):
        base = str(home) if home is not None else os.path.expanduser("~")
        pattern = base + pattern[1:]
    elif pattern.startswith("~") and home is None:
        pattern = os.path.expanduser(pattern)
    if pattern != "/" and pattern.endswith("/") and not pattern.endswith("**/"):
        pattern = pattern.rstrip("/")
    return glob_to_regex(pattern).fullmatch(_normalize_path(path)) is not None


def select_override(
    overrides: Sequence[Override], cwd: str, home: Path | None = None
) -> Override | None:
    """Return the last override whose pattern matches ``cwd``."""
    selected: Override | None = None
    for override in overrides:
        if path_matches(override.path_pattern, cwd, home):
            selected = override
    return selected


def apply_overrides(
    config: BoopifierConfig, cwd: str, home: Path | None = None
) -> tuple[list[HandlerConfig], str | None]:
    """Pick the effective handler list for ``cwd``.

    A matching override replaces the base list outright; lists are never merged.
    """
    override = select_override(config.overrides, cwd, home)
    if override is None:
        return list(config.handlers), None
    logger.debug(
        f"Override '{override.path_pattern}' matched {cwd}, "
        f"using {len(override.handlers)} handler(s)"
    )
    return list(override.handlers), override.path_pattern


def _format_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "<root>"
        problems.append(f"{location}: {item['msg']}")
    return "; ".join(problems)


def load_config_file(path: Path) -> BoopifierConfig:
    """Load and validate one configuration file.

    Raises:
        ConfigParseError: If the file cannot be read, is not JSON, or does
            not have the expected structure.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigParseError(path, f"cannot read config: {e}") from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigParseError(path, f"invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigParseError(path, "config must be a JSON object")

    try:
        return BoopifierConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigParseError(path, _format_validation_error(e)) from e


class ConfigResolver:
    """Locates and resolves the configuration for one invocation.

    Args:
        cwd: Working directory used for override matching and as the
            fallback project root.
        project_root_hints: Candidate project roots, highest priority first.
        home: Home directory (defaults to the user's home).
        xdg_config_home: Base for global shared config (defaults to
            ``$XDG_CONFIG_HOME`` or ``~/.config``).
    """

    def __init__(
        self,
        cwd: str | Path,
        project_root_hints: Sequence[str] = (),
        home: Path | None = None,
        xdg_config_home: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        env = os.environ if environ is None else environ
        self.cwd = _normalize_path(os.path.abspath(str(cwd)))
        self.project_root_hints = list(project_root_hints)
        self.home = home if home is not None else Path.home()
        if xdg_config_home is None:
            xdg = env.get("XDG_CONFIG_HOME")
            xdg_config_home = Path(xdg) if xdg else self.home / ".config"
        self.xdg_config_home = xdg_config_home

    @property
    def project_root(self) -> Path:
        for hint in self.project_root_hints:
            candidate = Path(hint).expanduser()
            if candidate.is_dir():
                return candidate
            logger.debug(f"Ignoring project root hint {hint}: not a directory")
        return Path(self.cwd)

    def candidate_paths(self, source: EventSource) -> list[Path]:
        """Return the search list for ``source`` in priority order."""
        root = self.project_root
        eco_dir = _PROJECT_ECOSYSTEM_DIRS[source]
        if source == EventSource.OPENCODE:
            global_eco = self.xdg_config_home / "opencode" / CONFIG_FILENAME
        else:
            global_eco = self.home / ".claude" / CONFIG_FILENAME
        return [
            root / eco_dir / CONFIG_FILENAME,
            root / SHARED_PROJECT_DIR / SHARED_CONFIG_FILENAME,
            global_eco,
            self.xdg_config_home / "boopifier" / SHARED_CONFIG_FILENAME,
        ]

    def locate(self, source: EventSource, explicit_path: str | Path | None = None) -> Path:
        """Find the config file to use.

        Raises:
            ConfigNotFound: If an explicit path is missing or nothing in the
                search list exists.
        """
        if explicit_path is not None:
            path = Path(explicit_path).expanduser()
            if not path.is_file():
                raise ConfigNotFound(f"Config file not found: {path}", [path])
            return path

        candidates = self.candidate_paths(source)
        for candidate in candidates:
            if candidate.is_file():
                logger.debug(f"Using config {candidate}")
                return candidate

        searched = ", ".join(str(c) for c in candidates)
        raise ConfigNotFound(f"No config file found (searched: {searched})", candidates)

    def resolve(
        self, source: EventSource, explicit_path: str | Path | None = None
    ) -> ResolvedConfig:
        """Locate, load and apply overrides, producing the effective config."""
        path = self.locate(source, explicit_path)
        config = load_config_file(path)
        handlers, pattern = apply_overrides(config, self.cwd, self.home)

        secrets_file: Path | None = None
        if config.secrets_file:
            secrets_file = Path(config.secrets_file).expanduser()
            if not secrets_file.is_absolute():
                secrets_file = path.parent / secrets_file

        return ResolvedConfig(
            source_path=path,
            handlers=handlers,
            override_pattern=pattern,
            timeout=config.timeout,
            max_concurrency=config.max_concurrency,
            secrets_file=secrets_file,
        )
