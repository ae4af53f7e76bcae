"""Tests for configuration loading, defaults and rule selection."""

import json
import logging
from pathlib import Path

from sdklint.config import (
    RULE_IDS,
    get_default_config,
    get_enabled_rules,
    load_config,
)
from sdklint.rules.upload_length import UploadWithoutLengthRule


def _write(tmp_path, data) -> Path:
    path = tmp_path / "sdklint.json"
    path.write_text(data if isinstance(data, str) else json.dumps(data), encoding="utf-8")
    return path


def test_default_config_enables_every_rule():
    rules = get_enabled_rules()
    assert [r.id for r in rules] == list(RULE_IDS)
    assert len(RULE_IDS) == 7


def test_enabled_rules_are_fresh_instances():
    config = get_default_config()
    first = get_enabled_rules(config)
    second = get_enabled_rules(config)
    assert all(a is not b for a, b in zip(first, second))


def test_rule_entry_is_merged_over_defaults(tmp_path, caplog):
    path = _write(tmp_path, {"rules": {"upload-without-length": {"methods_to_check": ["put"]}}})
    with caplog.at_level(logging.INFO):
        config = load_config(path)
    definition = config.rule_definition("upload-without-length")
    assert definition.method_names == frozenset({"put"})
    assert definition.target_type_markers == frozenset({"long"})
    assert definition.message_template.startswith("Azure Storage upload API")
    assert "Loaded configuration" in caplog.text


def test_field_names_are_accepted(tmp_path):
    path = _write(tmp_path, {"rules": {"discouraged-client": {"target_type_markers": ["LegacyClient"]}}})
    config = load_config(path)
    assert config.rule_definition("discouraged-client").target_type_markers == frozenset({"LegacyClient"})


def test_skip_rule_disables_rule(tmp_path):
    path = _write(tmp_path, {"rules": {"discouraged-client": {"skip_rule": True}}})
    rules = get_enabled_rules(load_config(path))
    assert "discouraged-client" not in [r.id for r in rules]
    assert len(rules) == 6


def test_empty_required_list_disables_rule(tmp_path):
    path = _write(tmp_path, {"rules": {"stop-then-start": {"methods_to_check": []}}})
    rules = get_enabled_rules(load_config(path))
    assert "stop-then-start" not in [r.id for r in rules]


def test_invalid_rule_entry_disables_only_that_rule(tmp_path, caplog):
    path = _write(
        tmp_path,
        {"rules": {"upload-without-length": {"methods_to_check": 42}, "discouraged-client": "nope"}},
    )
    with caplog.at_level(logging.ERROR):
        config = load_config(path)
    ids = [r.id for r in get_enabled_rules(config)]
    assert "upload-without-length" not in ids
    assert "discouraged-client" not in ids
    assert "stop-then-start" in ids
    assert "Invalid configuration for rule upload-without-length" in caplog.text


def test_malformed_file_disables_all_rules(tmp_path, caplog):
    path = _write(tmp_path, "{not json")
    with caplog.at_level(logging.ERROR):
        config = load_config(path)
    assert get_enabled_rules(config) == []
    assert "all rules disabled" in caplog.text


def test_missing_file_disables_all_rules(tmp_path):
    assert get_enabled_rules(load_config(tmp_path / "absent.json")) == []


def test_non_object_file_disables_all_rules(tmp_path):
    assert get_enabled_rules(load_config(_write(tmp_path, [1, 2]))) == []


def test_legacy_check_names(tmp_path):
    path = _write(
        tmp_path,
        {"rules": {"StorageUploadWithoutLengthCheck": {"methods_to_check": ["put"]}}},
    )
    config = load_config(path)
    assert config.rule_definition("upload-without-length").method_names == frozenset({"put"})


def test_unknown_rule_is_ignored(tmp_path, caplog):
    path = _write(tmp_path, {"rules": {"no-such-rule": {}}})
    with caplog.at_level(logging.WARNING):
        config = load_config(path)
    assert len(get_enabled_rules(config)) == 7
    assert "unknown rule no-such-rule" in caplog.text


def test_namespace_and_types(tmp_path, caplog):
    path = _write(
        tmp_path,
        {
            "namespace": "com.acme.",
            "types": {
                "com.acme.sdk.Client": {"interfaces": ["java.lang.AutoCloseable"]},
                "com.acme.sdk.Broken": {"kind": "struct"},
            },
        },
    )
    with caplog.at_level(logging.WARNING):
        config = load_config(path)
    assert config.namespace == "com.acme."
    assert config.type_stubs["com.acme.sdk.Client"].interfaces == ("java.lang.AutoCloseable",)
    assert "com.acme.sdk.Broken" not in config.type_stubs
    assert "Invalid type entry com.acme.sdk.Broken" in caplog.text
    assert all(r.namespace == "com.acme." for r in config.create_rules())


def test_select_restricts_rules(caplog):
    config = get_default_config()
    with caplog.at_level(logging.WARNING):
        config.select(["upload-without-length", "bogus"])
    rules = get_enabled_rules(config)
    assert len(rules) == 1
    assert isinstance(rules[0], UploadWithoutLengthRule)
    assert "bogus" in caplog.text


def test_select_nothing_keeps_all_rules():
    config = get_default_config()
    config.select(None)
    assert len(get_enabled_rules(config)) == 7
