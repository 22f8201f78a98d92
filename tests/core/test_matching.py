"""Tests for match rule compilation and handler selection."""

from __future__ import annotations

import re
from typing import Any

import pytest

from boopifier.core.event import normalize_event
from boopifier.core.matching import (
    MATCH_ALL,
    AllRule,
    AnyRule,
    HandlerMatcher,
    InvalidRule,
    LiteralRule,
    RegexRule,
    compile_rule,
    evaluate,
    invalid_reasons,
)
from boopifier.core.types import HandlerConfig

NOTIFICATION = normalize_event(
    {
        "hook_event_name": "Notification",
        "message": "hi",
        "tool": {"name": "Bash"},
        "count": 3,
        "ok": True,
    }
)


def _matches(rule: Any, event: Any = NOTIFICATION) -> bool:
    return evaluate(compile_rule(rule), event)


class TestCompileRule:
    def test_null_is_match_all(self) -> None:
        assert compile_rule(None) == MATCH_ALL

    def test_single_field_is_literal(self) -> None:
        assert compile_rule({"hook_event_name": "Stop"}) == LiteralRule("hook_event_name", "Stop")

    def test_sibling_fields_are_all(self) -> None:
        rule = compile_rule({"a": "1", "b": "2"})
        assert rule == AllRule((LiteralRule("a", "1"), LiteralRule("b", "2")))

    def test_regex_match_type(self) -> None:
        rule = compile_rule({"tool_name": "Ba.*", "match_type": "regex"})
        assert isinstance(rule, RegexRule)
        assert rule.pattern == re.compile("Ba.*")

    def test_any_compiles_children(self) -> None:
        rule = compile_rule({"any": [{"a": "1"}, None]})
        assert rule == AnyRule((LiteralRule("a", "1"), MATCH_ALL))

    def test_scalar_values_are_stringified(self) -> None:
        assert compile_rule({"count": 3}) == LiteralRule("count", "3")
        assert compile_rule({"ok": True}) == LiteralRule("ok", "true")

    @pytest.mark.parametrize(
        "raw",
        [
            42,
            "Notification",
            ["hook_event_name"],
            {"any": "not-a-list"},
            {"all": {"a": "b"}},
            {"hook_event_name": ["Stop"]},
            {"hook_event_name": {"nested": "x"}},
            {"hook_event_name": "Stop", "match_type": "glob"},
            {"hook_event_name": "(", "match_type": "regex"},
            {"count": 3, "match_type": "regex"},
        ],
    )
    def test_malformed_shapes_fail_closed(self, raw: Any) -> None:
        rule = compile_rule(raw)
        assert invalid_reasons(rule)
        assert evaluate(rule, NOTIFICATION) is False


class TestEvaluate:
    def test_null_matches_every_event(self) -> None:
        assert _matches(None)
        assert _matches(None, normalize_event({}))

    def test_empty_object_matches(self) -> None:
        assert _matches({})

    def test_literal_equality(self) -> None:
        assert _matches({"hook_event_name": "Notification"})
        assert not _matches({"hook_event_name": "Stop"})

    def test_literal_is_case_sensitive(self) -> None:
        assert not _matches({"hook_event_name": "notification"})

    def test_missing_field_is_false(self) -> None:
        assert not _matches({"tool_name": "Bash"})

    def test_nested_field(self) -> None:
        assert _matches({"tool.name": "Bash"})
        assert not _matches({"tool.name": "Read"})

    def test_non_string_event_values(self) -> None:
        assert _matches({"count": 3})
        assert _matches({"count": "3"})
        assert _matches({"ok": True})
        assert not _matches({"ok": False})

    def test_implicit_and(self) -> None:
        assert _matches({"hook_event_name": "Notification", "message": "hi"})
        assert not _matches({"hook_event_name": "Notification", "message": "bye"})

    def test_regex_full_match(self) -> None:
        assert _matches({"message": "h.", "match_type": "regex"})
        assert not _matches({"message": "h", "match_type": "regex"})
        assert _matches({"hook_event_name": "Notif.*|Stop", "match_type": "regex"})

    def test_regex_applies_to_all_sibling_fields(self) -> None:
        rule = {"hook_event_name": "Not.*", "tool.name": "B.*", "match_type": "regex"}
        assert _matches(rule)

    def test_any_or(self) -> None:
        assert _matches({"any": [{"hook_event_name": "Stop"}, {"message": "hi"}]})
        assert not _matches({"any": [{"hook_event_name": "Stop"}, {"message": "bye"}]})

    def test_empty_any_never_matches(self) -> None:
        assert not _matches({"any": []})

    def test_any_with_malformed_branch_still_matches(self) -> None:
        rule = {"any": [{"hook_event_name": "Notification"}, 42]}
        assert _matches(rule)

    def test_any_with_only_malformed_branch(self) -> None:
        assert not _matches({"any": [42, {"message": ["x"]}]})

    def test_any_combined_with_sibling_field(self) -> None:
        rule = {"message": "hi", "any": [{"hook_event_name": "Stop"}, {"count": 3}]}
        assert _matches(rule)
        rule = {"message": "bye", "any": [{"hook_event_name": "Notification"}]}
        assert not _matches(rule)

    def test_explicit_all(self) -> None:
        assert _matches({"all": [{"message": "hi"}, {"count": 3}]})
        assert not _matches({"all": [{"message": "hi"}, {"count": 4}]})

    def test_nested_any_inside_all(self) -> None:
        rule = {
            "all": [
                {"hook_event_name": "Notification"},
                {"any": [{"tool.name": "Read"}, {"tool.name": "B.*", "match_type": "regex"}]},
            ]
        }
        assert _matches(rule)


class TestHandlerMatcher:
    def _handler(self, name: str, rules: Any) -> HandlerConfig:
        return HandlerConfig(name=name, type="record", match_rules=rules)

    def test_preserves_declaration_order(self) -> None:
        handlers = [
            self._handler("c", None),
            self._handler("skip", {"hook_event_name": "Stop"}),
            self._handler("a", {"hook_event_name": "Notification"}),
            self._handler("b", {"message": "hi"}),
        ]
        selected = HandlerMatcher().select(handlers, NOTIFICATION)
        assert [h.name for h in selected] == ["c", "a", "b"]

    def test_malformed_handler_does_not_block_others(self) -> None:
        handlers = [
            self._handler("broken", "not a rule"),
            self._handler("good", {"hook_event_name": "Notification"}),
        ]
        selected = HandlerMatcher().select(handlers, NOTIFICATION)
        assert [h.name for h in selected] == ["good"]

    def test_evaluation_error_is_non_match(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def explode(rule: Any, event: Any) -> bool:
            raise RecursionError("too deep")

        monkeypatch.setattr("boopifier.core.matching.evaluate", explode)
        matcher = HandlerMatcher()
        assert matcher.matches(self._handler("x", None), NOTIFICATION) is False

    def test_compiled_rules_are_cached(self) -> None:
        matcher = HandlerMatcher()
        handler = self._handler("x", {"hook_event_name": "Notification"})
        matcher.matches(handler, NOTIFICATION)
        first = matcher._rule_cache["x"]
        matcher.matches(handler, NOTIFICATION)
        assert matcher._rule_cache["x"] is first

    def test_invalid_rule_reason_collected(self) -> None:
        rule = compile_rule({"any": [{"a": "("}, {"b": "x", "match_type": "nope"}]})
        assert isinstance(rule, AnyRule)
        assert invalid_reasons(rule) == ["unknown match_type: 'nope'"]
        assert invalid_reasons(InvalidRule("r")) == ["r"]
