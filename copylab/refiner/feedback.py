"""Rule updates driven by experiment reports.

When a report's best variant clears the strategy's confidence threshold,
existing rules that match the winning text are rewritten to produce it and
bumped one priority level. If no rule matched and the winner has enough
traffic, a new generalized rule is created for it instead.
"""

import logging
import re

from copylab.analysis.report import ExperimentReport, VariantReport
from copylab.refiner.rules import ReplacementRule, RuleStore, RuleUpdateStrategy
from copylab.refiner.text import escape_replacement

logger = logging.getLogger(__name__)

# A winner needs this much evidence before a brand-new rule is created for it
MIN_NEW_RULE_CONVERSION_RATE = 0.1
MIN_NEW_RULE_IMPRESSIONS = 100

_TOKEN = re.compile(r"(\s+)|([A-Za-z]+)|(.)", re.DOTALL)


def generate_pattern(text: str) -> str:
    r"""Generalize copy into a pattern matching similar phrases.

    Whitespace runs become \s+, ASCII letter runs become \w+ and every other
    character is matched literally.
    """
    parts = []
    for match in _TOKEN.finditer(text):
        space, word, other = match.groups()
        if space is not None:
            parts.append(r"\s+")
        elif word is not None:
            parts.append(r"\w+")
        else:
            parts.append(re.escape(other))
    return "".join(parts)


def should_create_rule(variant: VariantReport) -> bool:
    return (
        variant.conversion_rate > MIN_NEW_RULE_CONVERSION_RATE
        and variant.impressions > MIN_NEW_RULE_IMPRESSIONS
    )


class FeedbackLoop:
    def __init__(self, store: RuleStore):
        self.store = store

    def apply_test_results(
        self,
        report: ExperimentReport,
        strategy: RuleUpdateStrategy | None = None,
    ) -> int:
        """Update rules from a report. Returns the number of rule mutations."""
        strategy = strategy or RuleUpdateStrategy()
        if not report.variants:
            logger.warning("No variants found in results for %s", report.experiment_id)
            return 0

        best = report.variants[0]
        for variant in report.variants[1:]:
            if variant.conversion_rate > best.conversion_rate:
                best = variant

        if best.significance < strategy.confidence_threshold:
            logger.info(
                "No statistically significant improvement in %s (%.3f < %.3f)",
                report.experiment_id,
                best.significance,
                strategy.confidence_threshold,
            )
            return 0

        texts = [v.text for v in report.variants]
        affected = [
            rule for rule in self.store.rules
            if any(rule.compiled().search(text) for text in texts)
        ]

        modified = 0
        for rule in affected:
            if modified >= strategy.max_rule_modifications:
                break
            if not rule.compiled().search(best.text):
                continue
            self.store.update_rule(
                rule,
                replacement=escape_replacement(best.text),
                priority=rule.priority + 1,
            )
            self.store.log_update(
                rule.pattern,
                f'Updated replacement from "{rule.replacement}" to "{best.text}"',
                report.experiment_id,
            )
            modified += 1

        if modified == 0 and should_create_rule(best):
            rule = ReplacementRule(
                pattern=generate_pattern(best.text),
                replacement=escape_replacement(best.text),
                priority=1,
            )
            self.store.add_rule(rule)
            self.store.log_update(
                rule.pattern,
                f'Created new rule with replacement "{best.text}"',
                report.experiment_id,
            )
            return 1

        return modified
