"""Explicitly constructed application context.

One context holds one of each shared component (assignment storage,
experiment registry, rule store, refiners, feedback loop). Components are
created on first access and reused afterwards, so any number of call sites
may touch them before or after each other. Tests build isolated contexts.
"""

from dataclasses import dataclass, field
from functools import cached_property

from copylab.ab.registry import ExperimentRegistry
from copylab.collector.tracker import AnalyticsTracker
from copylab.config import CopyLabConfig
from copylab.refiner.feedback import FeedbackLoop
from copylab.refiner.markup import MarkupRefiner
from copylab.refiner.rules import RuleStore, RuleUpdateStrategy
from copylab.refiner.text import TextRefiner
from copylab.warehouse.db import DuckDBStorage
from copylab.warehouse.storage import KeyValueStorage


@dataclass
class CopyLabContext:
    config: CopyLabConfig = field(default_factory=CopyLabConfig)
    tracker: AnalyticsTracker = field(default_factory=AnalyticsTracker)

    @classmethod
    def from_config(cls, config: CopyLabConfig) -> "CopyLabContext":
        context = cls(config=config)
        if config.rules_path:
            context.rule_store.load_rules_from_file(config.rules_path)
        return context

    @cached_property
    def storage(self) -> KeyValueStorage:
        return DuckDBStorage(self.config.db_path)

    @cached_property
    def registry(self) -> ExperimentRegistry:
        return ExperimentRegistry(
            storage=self.storage,
            tracker=self.tracker,
            assignments_key=self.config.assignments_key,
        )

    @cached_property
    def rule_store(self) -> RuleStore:
        return RuleStore()

    @cached_property
    def text_refiner(self) -> TextRefiner:
        return TextRefiner(self.rule_store)

    @cached_property
    def markup_refiner(self) -> MarkupRefiner:
        return MarkupRefiner(self.text_refiner)

    @cached_property
    def feedback(self) -> FeedbackLoop:
        return FeedbackLoop(self.rule_store)

    @property
    def strategy(self) -> RuleUpdateStrategy:
        return RuleUpdateStrategy(
            confidence_threshold=self.config.confidence_threshold,
            impact_multiplier=self.config.impact_multiplier,
            max_rule_modifications=self.config.max_rule_modifications,
        )
