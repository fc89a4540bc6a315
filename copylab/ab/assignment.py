"""Weighted variant draws and persisted per-subject assignments.

A draw is random: r is taken uniformly from [0.0, 1.0) and mapped to a
variant through the cumulative traffic weights. Stability comes from
persistence instead of hashing. The first draw for an experiment is stored
in the subject's storage scope and returned unchanged on every later call.

The whole assignment map is stored under a single key as a JSON array of
[experiment_id, variant] pairs. Every save replaces that value.
"""

import json
import logging
import random

from copylab.ab.experiment import Experiment
from copylab.warehouse.storage import KeyValueStorage

logger = logging.getLogger(__name__)

ASSIGNMENTS_KEY = "copywriting_ab_assignments"


def draw_variant(experiment: Experiment, rng: random.Random | None = None) -> str:
    """Draw a variant according to the experiment's traffic weights.

    Returns the first variant whose cumulative weight reaches r.
    """
    r = (rng or random).random()

    cumulative = 0.0
    for variant, weight in zip(experiment.variants, experiment.weights):
        cumulative += weight
        if r <= cumulative:
            return variant

    # Weights summing to slightly under 1.0 can leave r unmatched
    return experiment.variants[-1]


class AssignmentStore:
    """Assignment map for one subject scope, loaded lazily from storage."""

    def __init__(self, storage: KeyValueStorage, key: str = ASSIGNMENTS_KEY):
        self.storage = storage
        self.key = key
        self._assignments: dict[str, str] | None = None

    @property
    def assignments(self) -> dict[str, str]:
        if self._assignments is None:
            self._assignments = self._load()
        return self._assignments

    def _load(self) -> dict[str, str]:
        try:
            stored = self.storage.get_item(self.key)
            if not stored:
                return {}
            return {str(exp_id): str(variant) for exp_id, variant in json.loads(stored)}
        except Exception:
            logger.exception("Error loading A/B test assignments from %r", self.key)
            return {}

    def save(self) -> None:
        payload = json.dumps([[exp_id, variant] for exp_id, variant in self.assignments.items()])
        try:
            self.storage.set_item(self.key, payload)
        except Exception:
            logger.exception("Error saving A/B test assignments to %r", self.key)

    def get(self, experiment_id: str) -> str | None:
        return self.assignments.get(experiment_id)

    def set(self, experiment_id: str, variant: str) -> None:
        self.assignments[experiment_id] = variant
        self.save()

    def delete(self, experiment_id: str) -> None:
        self.assignments.pop(experiment_id, None)
        self.save()

    def items(self) -> list[tuple[str, str]]:
        return list(self.assignments.items())
