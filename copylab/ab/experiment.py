"""Experiment definitions and their metrics records.

Each experiment has a unique ID, an ordered list of copy variants and a
traffic weight per variant. Variant texts need not be unique; metrics are
keyed by text, so duplicated texts share counters.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class ExperimentStatus(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    TERMINATED = "terminated"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def uniform_weights(count: int) -> list[float]:
    return [1 / count] * count


@dataclass
class Experiment:
    experiment_id: str
    variants: tuple[str, ...]
    weights: tuple[float, ...] = ()
    created_at: datetime = field(default_factory=_utcnow)
    status: ExperimentStatus = ExperimentStatus.RUNNING
    ended_at: datetime | None = None

    def __post_init__(self):
        self.variants = tuple(self.variants)
        if len(self.variants) < 2:
            raise ValueError("Experiment must have at least 2 variants")
        if not self.weights:
            self.weights = tuple(uniform_weights(len(self.variants)))
        self.weights = tuple(self.weights)
        if len(self.weights) != len(self.variants):
            raise ValueError(
                f"Expected {len(self.variants)} weights, got {len(self.weights)}"
            )
        if any(w < 0 for w in self.weights):
            raise ValueError("Variant weights must be non-negative")
        total = sum(self.weights)
        if abs(total - 1.0) > 0.001:
            raise ValueError(f"Variant weights must sum to 1.0, got {total}")

    @property
    def is_running(self) -> bool:
        return self.status == ExperimentStatus.RUNNING

    def finish(self, status: ExperimentStatus) -> None:
        if not self.is_running:
            raise ValueError(
                f"Experiment {self.experiment_id} is already {self.status.value}"
            )
        self.status = status
        self.ended_at = _utcnow()


@dataclass
class VariantMetrics:
    impressions: int = 0
    conversions: int = 0

    @property
    def conversion_rate(self) -> float:
        if self.impressions == 0:
            return 0.0
        return self.conversions / self.impressions


@dataclass
class MetricsRecord:
    experiment_id: str
    # Initial draw made when the experiment was created
    variant: str
    impressions: int = 0
    conversions: int = 0
    variant_metrics: dict[str, VariantMetrics] = field(default_factory=dict)
    started_at: datetime = field(default_factory=_utcnow)
    ended_at: datetime | None = None
    status: ExperimentStatus = ExperimentStatus.RUNNING

    @property
    def click_through_rate(self) -> float:
        """conversions / impressions, or 0.0 before the first impression."""
        if self.impressions == 0:
            return 0.0
        return self.conversions / self.impressions

    def for_variant(self, variant: str) -> VariantMetrics:
        return self.variant_metrics.setdefault(variant, VariantMetrics())

    def add_impression(self, variant: str | None) -> None:
        self.impressions += 1
        if variant is not None:
            self.for_variant(variant).impressions += 1

    def add_conversion(self, variant: str | None) -> None:
        self.conversions += 1
        if variant is not None:
            self.for_variant(variant).conversions += 1
