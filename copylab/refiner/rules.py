"""Replacement rules and the priority-ordered rule store.

Rules are kept sorted by descending priority. The sort is stable, so rules
with equal priority keep their load order. Every mutation goes through the
store so the order and the audit log stay consistent.
"""

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from copylab.errors import RuleSourceError

logger = logging.getLogger(__name__)


class ReplacementRule(BaseModel):
    pattern: str
    replacement: str
    context: list[str] | None = None
    priority: int = 0

    @field_validator("pattern")
    @classmethod
    def _pattern_compiles(cls, value: str) -> str:
        try:
            re.compile(value, re.IGNORECASE)
        except re.error as exc:
            raise ValueError(f"invalid regular expression {value!r}: {exc}") from exc
        return value

    def compiled(self) -> re.Pattern[str]:
        return re.compile(self.pattern, re.IGNORECASE)

    def applies_to(self, context: set[str]) -> bool:
        """Rules without context tags apply everywhere."""
        if not self.context:
            return True
        return not context.isdisjoint(self.context)


class RuleUpdateStrategy(BaseModel):
    confidence_threshold: float = Field(default=0.95, ge=0.0, le=1.0)
    # Reserved for priority escalation
    impact_multiplier: float = 1.5
    max_rule_modifications: int = Field(default=3, ge=0)


class RuleUpdateLogEntry(BaseModel):
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    rule_id: str
    change: str
    experiment_id: str


_RULE_LIST = TypeAdapter(list[ReplacementRule])


def parse_rules(data: Any) -> list[ReplacementRule]:
    """Validate decoded JSON: a list of rules or an object with a "rules" list."""
    if isinstance(data, dict) and "rules" in data:
        data = data["rules"]
    return _RULE_LIST.validate_python(data)


class RuleStore:
    def __init__(self, rules: list[ReplacementRule | dict] | None = None):
        self._rules: list[ReplacementRule] = []
        self._history: list[RuleUpdateLogEntry] = []
        if rules:
            self.load_rules(rules)

    def load_rules(self, rules: list[ReplacementRule | dict]) -> None:
        """Replace the active rule set."""
        validated = [
            r if isinstance(r, ReplacementRule) else ReplacementRule.model_validate(r)
            for r in rules
        ]
        self._rules = sorted(validated, key=lambda r: r.priority, reverse=True)
        logger.info("Loaded %d copy replacement rules", len(self._rules))

    def load_rules_from_file(self, path: str | Path) -> None:
        """Load rules from a JSON file. Failures are raised as RuleSourceError."""
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
            rules = parse_rules(data)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            logger.error("Error loading copy replacement rules from %s: %s", path, exc)
            raise RuleSourceError(f"Could not load rules from {path}: {exc}") from exc
        self.load_rules(rules)

    def save_rules_to_file(self, path: str | Path) -> None:
        payload = [rule.model_dump(exclude_none=True) for rule in self._rules]
        Path(path).write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")

    @property
    def rules(self) -> list[ReplacementRule]:
        """The live, sorted rule list. Callers must not reorder it."""
        return self._rules

    def get_rules(self) -> list[ReplacementRule]:
        return [rule.model_copy() for rule in self._rules]

    def add_rule(self, rule: ReplacementRule) -> None:
        self._rules.append(rule)
        self.resort()

    def update_rule(
        self,
        rule: ReplacementRule,
        *,
        replacement: str | None = None,
        priority: int | None = None,
    ) -> ReplacementRule:
        """Swap an active rule for an updated copy and restore priority order.

        The rule is looked up by identity in the active set.
        """
        for index, current in enumerate(self._rules):
            if current is rule:
                break
        else:
            raise ValueError(f"Rule {rule.pattern!r} is not in the active rule set")

        changes: dict[str, Any] = {}
        if replacement is not None:
            changes["replacement"] = replacement
        if priority is not None:
            changes["priority"] = priority
        updated = rule.model_copy(update=changes)
        self._rules[index] = updated
        self.resort()
        return updated

    def clear_rules(self) -> None:
        self._rules = []

    def resort(self) -> None:
        self._rules.sort(key=lambda r: r.priority, reverse=True)

    def log_update(self, rule_id: str, change: str, experiment_id: str) -> RuleUpdateLogEntry:
        entry = RuleUpdateLogEntry(rule_id=rule_id, change=change, experiment_id=experiment_id)
        self._history.append(entry)
        logger.info("Rule %s: %s (experiment %s)", rule_id, change, experiment_id)
        return entry

    def history(self) -> list[RuleUpdateLogEntry]:
        return list(self._history)
