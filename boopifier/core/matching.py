"""Handler matching.

Rule trees from the config file are compiled into a small tagged union and
then evaluated against the canonical event:

    null                                   -> always matches
    {"hook_event_name": "Stop"}            -> LiteralRule
    {"tool_name": "Ba.*", "match_type": "regex"}
                                           -> RegexRule
    {"any": [rule, rule]}                  -> AnyRule (OR)
    {"a": "x", "b": "y"}                   -> AllRule (AND over fields)

Anything that does not fit compiles to ``InvalidRule`` and never matches.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import logging
import re
from typing import Any

from boopifier.core.event import Event, value_to_str
from boopifier.core.types import HandlerConfig

logger = logging.getLogger(__name__)

ANY_KEY = "any"
ALL_KEY = "all"
MATCH_TYPE_KEY = "match_type"
MATCH_TYPE_EXACT = "exact"
MATCH_TYPE_REGEX = "regex"

_SCALARS = (str, int, float, bool)


@dataclass(frozen=True)
class LiteralRule:
    field: str
    value: str


@dataclass(frozen=True)
class RegexRule:
    field: str
    pattern: re.Pattern[str]


@dataclass(frozen=True)
class AnyRule:
    rules: tuple[MatchRule, ...]


@dataclass(frozen=True)
class AllRule:
    rules: tuple[MatchRule, ...]


@dataclass(frozen=True)
class InvalidRule:
    reason: str


MatchRule = LiteralRule | RegexRule | AnyRule | AllRule | InvalidRule

MATCH_ALL = AllRule(())


def _compile_list(raw: Any, key: str) -> tuple[MatchRule, ...] | InvalidRule:
    if not isinstance(raw, list):
        return InvalidRule(f"'{key}' must be a list of rules")
    return tuple(compile_rule(item) for item in raw)


def _compile_field(field: str, value: Any, match_type: str) -> MatchRule:
    if value is not None and not isinstance(value, _SCALARS):
        return InvalidRule(f"field '{field}' must compare against a scalar")

    if match_type == MATCH_TYPE_REGEX:
        if not isinstance(value, str):
            return InvalidRule(f"regex for field '{field}' must be a string")
        try:
            return RegexRule(field, re.compile(value))
        except re.error as e:
            return InvalidRule(f"invalid regex for field '{field}': {e}")

    return LiteralRule(field, value_to_str(value))


def compile_rule(raw: Any) -> MatchRule:
    """Compile a raw JSON rule into a :data:`MatchRule`."""
    if raw is None:
        return MATCH_ALL
    if not isinstance(raw, dict):
        return InvalidRule(f"unsupported rule shape: {type(raw).__name__}")

    match_type = raw.get(MATCH_TYPE_KEY, MATCH_TYPE_EXACT)
    if match_type not in (MATCH_TYPE_EXACT, MATCH_TYPE_REGEX):
        return InvalidRule(f"unknown match_type: {match_type!r}")

    parts: list[MatchRule] = []
    for key, value in raw.items():
        if key == MATCH_TYPE_KEY:
            continue
        if key in (ANY_KEY, ALL_KEY):
            children = _compile_list(value, key)
            if isinstance(children, InvalidRule):
                parts.append(children)
            elif key == ANY_KEY:
                parts.append(AnyRule(children))
            else:
                parts.append(AllRule(children))
        else:
            parts.append(_compile_field(key, value, match_type))

    if len(parts) == 1:
        return parts[0]
    return AllRule(tuple(parts))


def evaluate(rule: MatchRule, event: Event) -> bool:
    """Evaluate a compiled rule. Missing fields make a rule false."""
    match rule:
        case LiteralRule(field=field, value=expected):
            try:
                actual = event.resolve(field)
            except KeyError:
                return False
            return value_to_str(actual) == expected
        case RegexRule(field=field, pattern=pattern):
            try:
                actual = event.resolve(field)
            except KeyError:
                return False
            return pattern.fullmatch(value_to_str(actual)) is not None
        case AnyRule(rules=rules):
            return any(evaluate(child, event) for child in rules)
        case AllRule(rules=rules):
            return all(evaluate(child, event) for child in rules)
        case InvalidRule():
            return False
    return False


def invalid_reasons(rule: MatchRule) -> list[str]:
    """Collect the reasons of every ``InvalidRule`` in a tree."""
    match rule:
        case InvalidRule(reason=reason):
            return [reason]
        case AnyRule(rules=rules) | AllRule(rules=rules):
            return [reason for child in rules for reason in invalid_reasons(child)]
    return []


class HandlerMatcher:
    """Selects the handlers whose rules hold for an event.

    Compiled rules are cached per handler name for the matcher's lifetime.
    """

    def __init__(self) -> None:
        self._rule_cache: dict[str, MatchRule] = {}

    def _get_rule(self, handler: HandlerConfig) -> MatchRule:
        if handler.name not in self._rule_cache:
            rule = compile_rule(handler.match_rules)
            for reason in invalid_reasons(rule):
                logger.warning(f"Handler '{handler.name}' has an invalid match rule: {reason}")
            self._rule_cache[handler.name] = rule
        return self._rule_cache[handler.name]

    def matches(self, handler: HandlerConfig, event: Event) -> bool:
        try:
            return evaluate(self._get_rule(handler), event)
        except Exception as e:
            logger.warning(f"Match evaluation failed for handler '{handler.name}': {e}")
            return False

    def select(
        self, handlers: Sequence[HandlerConfig], event: Event
    ) -> list[HandlerConfig]:
        """Return matching handlers in declaration order."""
        selected = [h for h in handlers if self.matches(h, event)]
        logger.debug(
            f"{len(selected)}/{len(handlers)} handler(s) matched {event.name}"
        )
        return selected
