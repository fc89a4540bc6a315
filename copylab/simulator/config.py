"""Simulation parameters for visitor traffic through a copy experiment.

The defaults model a call-to-action test: the control copy converts at 10%,
the challenger at 14%. Each visitor sees one variant, produces one
impression and converts with that variant's probability.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SimulationConfig:
    num_visitors: int = 2000
    # Random seed for reproducibility
    seed: int = 42

    experiment_id: str = "exp_cta_copy_v1"
    variants: tuple[str, ...] = ("Sign up", "Start your free trial")
    # Traffic split; empty means uniform
    weights: tuple[float, ...] = ()
    # True conversion probability per variant, same order as variants
    conversion_rates: tuple[float, ...] = (0.10, 0.14)

    def __post_init__(self):
        if len(self.conversion_rates) != len(self.variants):
            raise ValueError("Need one conversion rate per variant")
        if any(not 0.0 <= p <= 1.0 for p in self.conversion_rates):
            raise ValueError("Conversion rates must be within [0, 1]")
