"""Tests for CI rules validation script."""

import json
from pathlib import Path

from ci.validate_rules import validate
from copylab.refiner.rules import RuleStore


def _valid_data():
    """Return a minimal valid rules file."""
    return [
        {"pattern": "click here", "replacement": "get started", "context": ["cta"], "priority": 2},
        {"pattern": r"\bsubmit\b", "replacement": "Send"},
    ]


class TestValidate:
    def test_valid_data_passes(self):
        assert validate(_valid_data()) == []

    def test_wrapped_rules_pass(self):
        assert validate({"rules": _valid_data()}) == []

    def test_missing_top_level_key(self):
        errors = validate({"items": _valid_data()})
        assert any("Missing top-level key: rules" in e for e in errors)

    def test_not_a_list(self):
        errors = validate("rules")
        assert any("must be a list" in e for e in errors)

    def test_empty_rules(self):
        errors = validate([])
        assert any("rules is empty" in e for e in errors)

    def test_rule_not_an_object(self):
        errors = validate(["click here"])
        assert any("Rule 0 is not an object" in e for e in errors)

    def test_missing_required_field(self):
        data = _valid_data()
        del data[1]["replacement"]
        errors = validate(data)
        assert any("Rule 1 missing fields" in e for e in errors)

    def test_unknown_field(self):
        data = _valid_data()
        data[0]["weight"] = 3
        errors = validate(data)
        assert any("unknown fields: ['weight']" in e for e in errors)

    def test_pattern_must_compile(self):
        data = _valid_data()
        data[0]["pattern"] = "(unclosed"
        errors = validate(data)
        assert any("does not compile" in e for e in errors)

    def test_duplicate_pattern(self):
        data = _valid_data()
        data.append({"pattern": "Click Here", "replacement": "x"})
        errors = validate(data)
        assert any("duplicates pattern" in e for e in errors)

    def test_context_must_be_string_list(self):
        data = _valid_data()
        data[0]["context"] = "cta"
        errors = validate(data)
        assert any("context must be a list of strings" in e for e in errors)

    def test_empty_context(self):
        data = _valid_data()
        data[0]["context"] = []
        errors = validate(data)
        assert any("context is empty" in e for e in errors)

    def test_priority_must_be_integer(self):
        data = _valid_data()
        data[0]["priority"] = 1.5
        errors = validate(data)
        assert any("priority must be an integer" in e for e in errors)

    def test_bool_priority_rejected(self):
        data = _valid_data()
        data[0]["priority"] = True
        errors = validate(data)
        assert any("priority must be an integer" in e for e in errors)

    def test_shipped_rules_file_is_valid_and_loadable(self):
        path = Path(__file__).resolve().parent.parent / "config" / "copy-rules.json"
        assert validate(json.loads(path.read_text())) == []
        store = RuleStore()
        store.load_rules_from_file(path)
        assert store.rules[0].pattern == "click here"
