"""Tests for rule updates driven by experiment reports."""

import re
from datetime import datetime, timezone

import pytest

from copylab.ab.experiment import ExperimentStatus
from copylab.analysis.report import ExperimentReport, VariantReport
from copylab.refiner.feedback import FeedbackLoop, generate_pattern
from copylab.refiner.rules import RuleStore, RuleUpdateStrategy
from copylab.refiner.text import TextRefiner


def _report(*variants, experiment_id="exp-1"):
    return ExperimentReport(
        experiment_id=experiment_id,
        variants=[VariantReport(**v) for v in variants],
        start_date=datetime(2026, 1, 1, tzinfo=timezone.utc),
        status=ExperimentStatus.RUNNING,
    )


WINNING = _report(
    {"text": "Get started free", "conversion_rate": 12.0, "impressions": 500, "significance": 0.99},
    {"text": "Sign up", "conversion_rate": 8.0, "impressions": 500, "significance": 0.6},
)


class TestGeneratePattern:
    def test_words_and_whitespace_generalized(self):
        assert generate_pattern("Get  started") == r"\w+\s+\w+"

    def test_metacharacters_escaped(self):
        pattern = generate_pattern("Save 50% (today)!")
        assert re.fullmatch(pattern, "Save 50% (today)!", re.IGNORECASE)
        assert re.fullmatch(pattern, "Grab 50% (now)!", re.IGNORECASE)
        assert not re.fullmatch(pattern, "Save 50 today", re.IGNORECASE)

    def test_pattern_matches_similar_phrases(self):
        pattern = generate_pattern("Start your free trial")
        assert re.fullmatch(pattern, "Begin  a  new journey", re.IGNORECASE)


class TestApplyTestResults:
    def test_below_threshold_is_noop(self):
        store = RuleStore([{"pattern": "get started", "replacement": "x"}])
        loop = FeedbackLoop(store)
        strategy = RuleUpdateStrategy(confidence_threshold=0.999)
        assert loop.apply_test_results(WINNING, strategy) == 0
        assert loop.apply_test_results(WINNING, strategy) == 0
        assert store.rules[0].replacement == "x"
        assert store.rules[0].priority == 0
        assert store.history() == []

    def test_empty_report_is_noop(self):
        store = RuleStore()
        assert FeedbackLoop(store).apply_test_results(_report()) == 0
        assert store.rules == []

    def test_updates_matching_rules(self):
        store = RuleStore([
            {"pattern": "get started", "replacement": "old copy", "priority": 1},
            {"pattern": "unrelated", "replacement": "nothing"},
        ])
        changed = FeedbackLoop(store).apply_test_results(WINNING)
        assert changed == 1
        rule = store.rules[0]
        assert rule.pattern == "get started"
        assert rule.replacement == "Get started free"
        assert rule.priority == 2
        [entry] = store.history()
        assert entry.rule_id == "get started"
        assert entry.experiment_id == "exp-1"
        assert 'from "old copy" to "Get started free"' in entry.change

    def test_rules_matching_only_losers_untouched(self):
        store = RuleStore([{"pattern": "sign up", "replacement": "Join"}])
        FeedbackLoop(store).apply_test_results(WINNING)
        sign_up = [r for r in store.rules if r.pattern == "sign up"][0]
        assert sign_up.replacement == "Join"
        assert sign_up.priority == 0

    def test_respects_max_modifications(self):
        store = RuleStore([
            {"pattern": "get", "replacement": "a"},
            {"pattern": "started", "replacement": "b"},
            {"pattern": "free", "replacement": "c"},
        ])
        strategy = RuleUpdateStrategy(max_rule_modifications=2)
        assert FeedbackLoop(store).apply_test_results(WINNING, strategy) == 2
        assert [r.pattern for r in store.rules] == ["get", "started", "free"]
        assert [r.priority for r in store.rules] == [1, 1, 0]
        assert store.rules[2].replacement == "c"

    def test_updates_go_through_the_store(self):
        store = RuleStore([{"pattern": "get started", "replacement": "old copy"}])
        before = store.rules[0]
        FeedbackLoop(store).apply_test_results(WINNING)
        assert before.replacement == "old copy"
        assert before.priority == 0
        assert store.rules[0] is not before

    def test_dollar_signs_in_winning_copy_stay_literal(self):
        report = _report(
            {"text": "Save $10 today", "conversion_rate": 12.0, "impressions": 500, "significance": 0.99},
            {"text": "Save money", "conversion_rate": 8.0, "impressions": 500, "significance": 0.6},
        )
        store = RuleStore([{"pattern": "save", "replacement": "x"}])
        FeedbackLoop(store).apply_test_results(report)
        assert store.rules[0].replacement == "Save $$10 today"
        assert TextRefiner(store).refine_text("save") == "Save $10 today"

    def test_resorts_after_update(self):
        store = RuleStore([
            {"pattern": "other", "replacement": "z", "priority": 1},
            {"pattern": "free", "replacement": "c", "priority": 1},
        ])
        FeedbackLoop(store).apply_test_results(WINNING)
        assert [r.pattern for r in store.rules] == ["free", "other"]

    def test_creates_rule_when_none_matched(self):
        store = RuleStore([{"pattern": "zzz", "replacement": "y", "priority": 3}])
        changed = FeedbackLoop(store).apply_test_results(WINNING)
        assert changed == 1
        created = store.rules[1]
        assert created.pattern == r"\w+\s+\w+\s+\w+"
        assert created.replacement == "Get started free"
        assert created.priority == 1
        assert "Created new rule" in store.history()[0].change

    def test_no_rule_created_without_enough_traffic(self):
        report = _report(
            {"text": "Buy now", "conversion_rate": 40.0, "impressions": 100, "significance": 1.0},
            {"text": "Purchase", "conversion_rate": 10.0, "impressions": 100, "significance": 1.0},
        )
        store = RuleStore()
        assert FeedbackLoop(store).apply_test_results(report) == 0
        assert store.rules == []

    def test_no_rule_created_for_low_conversion(self):
        report = _report(
            {"text": "Buy now", "conversion_rate": 0.1, "impressions": 5000, "significance": 1.0},
            {"text": "Purchase", "conversion_rate": 0.0, "impressions": 5000, "significance": 1.0},
        )
        store = RuleStore()
        assert FeedbackLoop(store).apply_test_results(report) == 0

    def test_best_variant_found_regardless_of_order(self):
        report = _report(
            {"text": "Sign up", "conversion_rate": 8.0, "impressions": 500, "significance": 0.2},
            {"text": "Get started free", "conversion_rate": 12.0, "impressions": 500, "significance": 0.99},
        )
        store = RuleStore([{"pattern": "started", "replacement": "x"}])
        assert FeedbackLoop(store).apply_test_results(report) == 1
        assert store.rules[0].replacement == "Get started free"

    @pytest.mark.parametrize("threshold", [0.0, 0.5, 0.99])
    def test_threshold_is_inclusive(self, threshold):
        store = RuleStore([{"pattern": "free", "replacement": "x"}])
        strategy = RuleUpdateStrategy(confidence_threshold=threshold)
        assert FeedbackLoop(store).apply_test_results(WINNING, strategy) == 1
