"""Heuristic significance score for a variant.

score = min(|variant_rate - aggregate_rate| * sqrt(variant_impressions), 1.0)

This is not a test statistic. It grows with both the effect size and the
sample size, and saturates at 1.0. Scores at or above
SIGNIFICANCE_THRESHOLD count as significant for reporting and for the rule
feedback loop.
"""

import math

SIGNIFICANCE_THRESHOLD = 0.95


def score(
    variant_impressions: int,
    variant_conversions: int,
    total_impressions: int,
    total_conversions: int,
) -> float:
    """Score a variant against the experiment aggregate, in [0.0, 1.0].

    Returns 0.0 when either side has no impressions yet.
    """
    if variant_impressions <= 0 or total_impressions <= 0:
        return 0.0
    variant_rate = variant_conversions / variant_impressions
    aggregate_rate = total_conversions / total_impressions
    diff = abs(variant_rate - aggregate_rate)
    return min(diff * math.sqrt(variant_impressions), 1.0)


def is_significant(value: float) -> bool:
    return value >= SIGNIFICANCE_THRESHOLD
