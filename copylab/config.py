"""Runtime configuration.

Defaults cover a local, single-visitor setup: an in-memory DuckDB store and
no rule file. Command-line entry points override individual fields.
"""

from dataclasses import dataclass

from copylab.ab.assignment import ASSIGNMENTS_KEY


@dataclass(frozen=True)
class CopyLabConfig:
    # DuckDB path for the durable key-value store; ":memory:" keeps it in-process
    db_path: str = ":memory:"
    assignments_key: str = ASSIGNMENTS_KEY
    rules_path: str | None = None

    # Default rule update strategy for the feedback loop
    confidence_threshold: float = 0.95
    impact_multiplier: float = 1.5
    max_rule_modifications: int = 3
