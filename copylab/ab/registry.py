"""Experiment lifecycle and metrics aggregation.

The registry owns every Experiment and its MetricsRecord, keyed by
experiment ID in creation order. Assignments live in per-scope
AssignmentStores; a scope is any KeyValueStorage and stands for one
subject. Calls that omit the scope use the registry's default storage.

The registry remembers the scopes it has served only weakly. Clearing an
experiment removes its assignment from every scope that is still alive,
and an assignment naming a variant the experiment does not have (left over
from an earlier experiment under the same ID) is ignored.

Metrics calls against unknown or cleared experiments are silent no-ops,
since they may race with clear_experiment(). Ended experiments still accept
metrics.
"""

import logging
import random
import uuid
import weakref

from copylab.ab.assignment import ASSIGNMENTS_KEY, AssignmentStore, draw_variant
from copylab.ab.experiment import Experiment, ExperimentStatus, MetricsRecord
from copylab.collector.tracker import AnalyticsTracker
from copylab.errors import DuplicateExperimentError, ExperimentNotFoundError
from copylab.warehouse.storage import KeyValueStorage, MemoryStorage

logger = logging.getLogger(__name__)


class ExperimentRegistry:
    def __init__(
        self,
        storage: KeyValueStorage | None = None,
        tracker: AnalyticsTracker | None = None,
        rng: random.Random | None = None,
        assignments_key: str = ASSIGNMENTS_KEY,
    ):
        self.storage = storage if storage is not None else MemoryStorage()
        self.tracker = tracker if tracker is not None else AnalyticsTracker()
        self.rng = rng if rng is not None else random.Random()
        self.assignments_key = assignments_key
        self._experiments: dict[str, Experiment] = {}
        self._results: dict[str, MetricsRecord] = {}
        self._scopes: weakref.WeakSet = weakref.WeakSet()

    def assignments_for(self, scope: KeyValueStorage | None = None) -> AssignmentStore:
        """Return an assignment store reading the scope's storage."""
        storage = scope if scope is not None else self.storage
        self._scopes.add(storage)
        return AssignmentStore(storage, self.assignments_key)

    def live_scopes(self) -> list[KeyValueStorage]:
        """Scopes this registry has served that are still referenced elsewhere."""
        return list(self._scopes)

    def _assigned(self, experiment_id: str, scope: KeyValueStorage | None) -> str | None:
        variant = self.assignments_for(scope).get(experiment_id)
        experiment = self._experiments.get(experiment_id)
        if variant is None or experiment is None or variant not in experiment.variants:
            return None
        return variant

    def create_experiment(
        self,
        variants: list[str],
        weights: list[float] | None = None,
        experiment_id: str | None = None,
    ) -> str:
        if experiment_id is None:
            experiment_id = uuid.uuid4().hex
        if experiment_id in self._experiments:
            raise DuplicateExperimentError(experiment_id)

        experiment = Experiment(
            experiment_id=experiment_id,
            variants=tuple(variants),
            weights=tuple(weights or ()),
        )
        record = MetricsRecord(
            experiment_id=experiment_id,
            variant=draw_variant(experiment, self.rng),
            started_at=experiment.created_at,
        )
        for variant in experiment.variants:
            record.for_variant(variant)

        self._experiments[experiment_id] = experiment
        self._results[experiment_id] = record
        logger.info(
            "Created experiment %s with %d variants", experiment_id, len(experiment.variants)
        )
        return experiment_id

    def get_experiment(self, experiment_id: str) -> Experiment | None:
        return self._experiments.get(experiment_id)

    def _require(self, experiment_id: str) -> Experiment:
        experiment = self._experiments.get(experiment_id)
        if experiment is None:
            raise ExperimentNotFoundError(experiment_id)
        return experiment

    def get_variant(self, experiment_id: str, scope: KeyValueStorage | None = None) -> str:
        """Return the scope's variant, drawing and persisting one on first request."""
        experiment = self._require(experiment_id)
        store = self.assignments_for(scope)

        assigned = store.get(experiment_id)
        if assigned in experiment.variants:
            return assigned
        if assigned is not None:
            logger.warning("Discarding stale assignment %r for experiment %s", assigned, experiment_id)

        variant = draw_variant(experiment, self.rng)
        store.set(experiment_id, variant)
        logger.debug("Assigned variant %r for experiment %s", variant, experiment_id)

        try:
            self.tracker.track_copy_variant(experiment_id, variant)
        except Exception:
            logger.exception("Failed to track variant assignment for %s", experiment_id)
        return variant

    def record_impression(self, experiment_id: str, scope: KeyValueStorage | None = None) -> None:
        record = self._results.get(experiment_id)
        if record is None:
            return
        record.add_impression(self._assigned(experiment_id, scope))

    def record_conversion(self, experiment_id: str, scope: KeyValueStorage | None = None) -> None:
        record = self._results.get(experiment_id)
        if record is None:
            return
        variant = self._assigned(experiment_id, scope)
        record.add_conversion(variant)

        try:
            self.tracker.track_conversion(experiment_id, variant)
        except Exception:
            logger.exception("Failed to track conversion for %s", experiment_id)

    def get_results(self, experiment_id: str) -> MetricsRecord | None:
        return self._results.get(experiment_id)

    def get_all_results(self) -> list[MetricsRecord]:
        return list(self._results.values())

    def _finish(self, experiment_id: str, status: ExperimentStatus) -> None:
        experiment = self._require(experiment_id)
        experiment.finish(status)
        record = self._results[experiment_id]
        record.status = experiment.status
        record.ended_at = experiment.ended_at
        logger.info("Experiment %s %s", experiment_id, status.value)

    def end_experiment(self, experiment_id: str) -> None:
        self._finish(experiment_id, ExperimentStatus.COMPLETED)

    def terminate_experiment(self, experiment_id: str) -> None:
        self._finish(experiment_id, ExperimentStatus.TERMINATED)

    def clear_experiment(self, experiment_id: str, *scopes: KeyValueStorage) -> None:
        """Forget an experiment, its metrics and its assignments.

        The assignment is removed from the default scope, from every live
        scope the registry has served and from any extra scopes passed in.
        Afterwards the registry forgets the scopes it was tracking.
        """
        self._experiments.pop(experiment_id, None)
        self._results.pop(experiment_id, None)

        targets = {id(s): s for s in (self.storage, *self.live_scopes(), *scopes)}
        for storage in targets.values():
            store = AssignmentStore(storage, self.assignments_key)
            if store.get(experiment_id) is not None:
                store.delete(experiment_id)
        self._scopes = weakref.WeakSet()
        logger.info("Cleared experiment %s", experiment_id)
