"""CI validation: verify a copy rules file is well formed before it ships.

This script is the final gate in CI. It reads the rules JSON and asserts
structural invariants. If anything is wrong, it exits non-zero and fails
the build.

Usage:
    python ci/validate_rules.py
    python ci/validate_rules.py --rules config/copy-rules.json
"""

import argparse
import json
import re
import sys
from pathlib import Path

REQUIRED_RULE_KEYS = {"pattern", "replacement"}
OPTIONAL_RULE_KEYS = {"context", "priority"}


def validate(data) -> list[str]:
    """Return a list of validation errors (empty = pass)."""
    errors = []

    if isinstance(data, dict):
        if "rules" not in data:
            return ["Missing top-level key: rules"]
        data = data["rules"]

    if not isinstance(data, list):
        return [f"Rules must be a list, got {type(data).__name__}"]
    if not data:
        errors.append("rules is empty, nothing to apply")

    seen_patterns = set()
    for i, rule in enumerate(data):
        label = f"Rule {i}"
        if not isinstance(rule, dict):
            errors.append(f"{label} is not an object")
            continue

        missing = REQUIRED_RULE_KEYS - set(rule.keys())
        if missing:
            errors.append(f"{label} missing fields: {sorted(missing)}")
            continue

        unknown = set(rule.keys()) - REQUIRED_RULE_KEYS - OPTIONAL_RULE_KEYS
        if unknown:
            errors.append(f"{label} has unknown fields: {sorted(unknown)}")

        pattern = rule["pattern"]
        if not isinstance(pattern, str) or not pattern:
            errors.append(f"{label} pattern must be a non-empty string")
        else:
            try:
                re.compile(pattern, re.IGNORECASE)
            except re.error as exc:
                errors.append(f"{label} pattern {pattern!r} does not compile: {exc}")
            if pattern.lower() in seen_patterns:
                errors.append(f"{label} duplicates pattern {pattern!r}")
            seen_patterns.add(pattern.lower())

        if not isinstance(rule["replacement"], str):
            errors.append(f"{label} replacement must be a string")

        context = rule.get("context")
        if context is not None:
            if not isinstance(context, list) or not all(isinstance(c, str) for c in context):
                errors.append(f"{label} context must be a list of strings")
            elif not context:
                errors.append(f"{label} context is empty; omit it to apply everywhere")

        priority = rule.get("priority")
        if priority is not None and (isinstance(priority, bool) or not isinstance(priority, int)):
            errors.append(f"{label} priority must be an integer, got {priority!r}")

    return errors


def main() -> None:
    parser = argparse.ArgumentParser(description="Validate a copy rules file")
    parser.add_argument(
        "--rules",
        default="config/copy-rules.json",
        help="Path to the rules JSON",
    )
    opts = parser.parse_args()

    path = Path(opts.rules)
    if not path.exists():
        print(f"FAIL: {opts.rules} not found.")
        sys.exit(1)

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        print(f"FAIL: {opts.rules} is not valid JSON: {exc}")
        sys.exit(1)

    errors = validate(data)

    if errors:
        print(f"FAIL: {len(errors)} validation error(s):")
        for e in errors:
            print(f"  - {e}")
        sys.exit(1)

    rules = data["rules"] if isinstance(data, dict) else data
    contexts = sorted({c for r in rules for c in r.get("context") or []})

    print("PASS: Copy rules validated")
    print(f"  Rules: {len(rules):,}")
    print(f"  Contexts: {', '.join(contexts) or 'none'}")


if __name__ == "__main__":
    main()
