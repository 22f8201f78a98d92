"""Tests for template substitution."""

from __future__ import annotations

import json
from pathlib import Path

from boopifier.core.event import normalize_event
from boopifier.core.secrets import SecretStore, build_secret_store
from boopifier.core.templating import TemplateEngine

EVENT = normalize_event(
    {
        "hook_event_name": "Notification",
        "message": "hi",
        "tool_input": {"file_path": "/src/app.py", "lines": [1, 2]},
        "count": 7,
        "empty": None,
    }
)


def _engine(environ: dict[str, str] | None = None, secrets: SecretStore | None = None) -> TemplateEngine:
    return TemplateEngine(EVENT, environ or {}, secrets)


class TestRenderString:
    def test_event_field(self) -> None:
        assert _engine().render_string("msg: {{message}}") == "msg: hi"

    def test_whitespace_inside_braces(self) -> None:
        assert _engine().render_string("{{ message }}!") == "hi!"

    def test_nested_field(self) -> None:
        assert _engine().render_string("{{tool_input.file_path}}") == "/src/app.py"

    def test_multiple_placeholders(self) -> None:
        rendered = _engine().render_string("{{hook_event_name}}: {{message}} ({{count}})")
        assert rendered == "Notification: hi (7)"

    def test_non_string_values_are_stringified(self) -> None:
        assert _engine().render_string("{{tool_input.lines}}") == "[1,2]"
        assert _engine().render_string("[{{empty}}]") == "[]"

    def test_unresolved_placeholder_is_empty(self) -> None:
        assert _engine().render_string("a{{missing}}b{{tool_input.nope}}c") == "abc"

    def test_env_namespace(self) -> None:
        engine = _engine(environ={"USER": "dev"})
        assert engine.render_string("by {{env.USER}}") == "by dev"
        assert engine.render_string("{{env.MISSING}}") == ""

    def test_secret_namespace(self) -> None:
        secrets = build_secret_store({"BOOPIFIER_SECRET_TOKEN": "s3cret"})
        engine = _engine(secrets=secrets)
        assert engine.render_string("Bearer {{secret.token}}") == "Bearer s3cret"

    def test_secret_without_store_is_empty(self) -> None:
        assert _engine().render_string("{{secret.token}}") == ""

    def test_text_without_placeholders_is_unchanged(self) -> None:
        text = "plain {text} with { braces }"
        assert _engine().render_string(text) == text

    def test_malformed_placeholder_left_alone(self) -> None:
        assert _engine().render_string("{{ not valid! }}") == "{{ not valid! }}"


class TestRender:
    def test_walks_nested_structures(self) -> None:
        config = {
            "title": "{{hook_event_name}}",
            "headers": {"X-Msg": "{{message}}"},
            "lines": ["{{count}}", 5, True, None],
        }
        assert _engine().render(config) == {
            "title": "Notification",
            "headers": {"X-Msg": "hi"},
            "lines": ["7", 5, True, None],
        }

    def test_keys_are_not_templated(self) -> None:
        assert _engine().render({"{{message}}": "x"}) == {"{{message}}": "x"}

    def test_config_without_placeholders_is_idempotent(self) -> None:
        config = {"url": "https://example.com", "retries": 3, "tags": ["a", {"b": 1.5}]}
        assert _engine().render(config) == config

    def test_does_not_mutate_input(self) -> None:
        config = {"body": "msg: {{message}}"}
        _engine().render(config)
        assert config == {"body": "msg: {{message}}"}


class TestSecretStore:
    def test_file_provider_takes_priority(self, tmp_path: Path) -> None:
        secrets_file = tmp_path / "secrets.json"
        secrets_file.write_text(json.dumps({"token": "from-file", "port": 25}), encoding="utf-8")
        store = build_secret_store({"BOOPIFIER_SECRET_TOKEN": "from-env"}, secrets_file)
        assert store.get("token") == "from-file"
        assert store.get("port") == "25"

    def test_env_fallback(self, tmp_path: Path) -> None:
        secrets_file = tmp_path / "secrets.json"
        secrets_file.write_text("{}", encoding="utf-8")
        store = build_secret_store({"BOOPIFIER_SECRET_SLACK_URL": "https://hook"}, secrets_file)
        assert store.get("slack-url") == "https://hook"

    def test_missing_file_is_tolerated(self, tmp_path: Path) -> None:
        store = build_secret_store({}, tmp_path / "missing.json")
        assert store.get("token") is None

    def test_malformed_file_is_tolerated(self, tmp_path: Path) -> None:
        secrets_file = tmp_path / "secrets.json"
        secrets_file.write_text("[1, 2", encoding="utf-8")
        store = build_secret_store({"BOOPIFIER_SECRET_TOKEN": "env"}, secrets_file)
        assert store.get("token") == "env"

    def test_values_are_cached(self) -> None:
        calls: list[str] = []

        class CountingProvider:
            def get_secret(self, name: str) -> str | None:
                calls.append(name)
                return "v"

        store = SecretStore([CountingProvider()])
        assert store.get("a") == "v"
        assert store.get("a") == "v"
        assert calls == ["a"]
