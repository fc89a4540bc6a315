"""Simulation engine that drives visitor traffic through the registry.

Each simulated visitor is its own subject scope (a fresh MemoryStorage), so
every visitor gets an independent weighted draw. The visitor then produces
an impression and converts with the true rate of the variant shown.
All randomness is seeded for full reproducibility.
"""

import random

from copylab.ab.registry import ExperimentRegistry
from copylab.simulator.config import SimulationConfig
from copylab.warehouse.storage import MemoryStorage


def simulate(
    config: SimulationConfig | None = None,
    registry: ExperimentRegistry | None = None,
) -> ExperimentRegistry:
    """Run the configured traffic and return the registry holding the results.

    The experiment is created if the registry does not know it yet.
    """
    if config is None:
        config = SimulationConfig()

    rng = random.Random(config.seed)
    if registry is None:
        registry = ExperimentRegistry(rng=random.Random(rng.getrandbits(64)))
    if registry.get_experiment(config.experiment_id) is None:
        registry.create_experiment(
            list(config.variants),
            list(config.weights) or None,
            experiment_id=config.experiment_id,
        )

    true_rates = dict(zip(config.variants, config.conversion_rates))
    for _ in range(config.num_visitors):
        _simulate_visit(registry, config.experiment_id, true_rates, rng)
    return registry


def _simulate_visit(
    registry: ExperimentRegistry,
    experiment_id: str,
    true_rates: dict[str, float],
    rng: random.Random,
) -> str:
    """Simulate a single visitor seeing the copy once."""
    visitor = MemoryStorage()
    variant = registry.get_variant(experiment_id, visitor)
    registry.record_impression(experiment_id, visitor)
    if rng.random() < true_rates[variant]:
        registry.record_conversion(experiment_id, visitor)
    return variant
