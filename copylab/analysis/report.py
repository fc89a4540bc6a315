"""Experiment reports and the copy style guide.

A report ranks an experiment's variants by conversion rate (in percent) and
attaches a significance score to each, plus a plain-text recommendation.
"""

from datetime import datetime

from pydantic import BaseModel

from copylab.ab.experiment import ExperimentStatus, MetricsRecord, VariantMetrics
from copylab.ab.registry import ExperimentRegistry
from copylab.analysis.significance import is_significant, score
from copylab.errors import ExperimentNotFoundError
from copylab.refiner.rules import ReplacementRule

CONTINUE_TESTING = "Continue testing - no statistically significant winner yet."


class VariantReport(BaseModel):
    text: str
    conversion_rate: float  # percent, 0-100
    impressions: int
    significance: float


class ExperimentReport(BaseModel):
    experiment_id: str
    variants: list[VariantReport]
    recommendation: str | None = None
    start_date: datetime
    end_date: datetime | None = None
    status: ExperimentStatus


def _variant_report(text: str, record: MetricsRecord) -> VariantReport:
    metrics = record.variant_metrics.get(text, VariantMetrics())
    return VariantReport(
        text=text,
        conversion_rate=metrics.conversion_rate * 100,
        impressions=metrics.impressions,
        significance=score(
            metrics.impressions,
            metrics.conversions,
            record.impressions,
            record.conversions,
        ),
    )


def recommend(variants: list[VariantReport]) -> str:
    """Build a recommendation from variants sorted best-first."""
    if not variants or not is_significant(variants[0].significance):
        return CONTINUE_TESTING

    best = variants[0]
    confidence = f"{best.significance * 100:.1f}% confidence"
    second = variants[1] if len(variants) > 1 else None
    if second is None or second.conversion_rate == 0:
        return f'Recommend using variant "{best.text}" with {confidence}.'

    improvement = (best.conversion_rate - second.conversion_rate) / second.conversion_rate * 100
    return (
        f'Recommend using variant "{best.text}" - {improvement:.1f}% improvement '
        f"in conversion rate with {confidence}."
    )


def generate_report(registry: ExperimentRegistry, experiment_id: str) -> ExperimentReport:
    experiment = registry.get_experiment(experiment_id)
    record = registry.get_results(experiment_id)
    if experiment is None or record is None:
        raise ExperimentNotFoundError(experiment_id)

    # Duplicate variant texts share one set of counters
    texts = list(dict.fromkeys(experiment.variants))
    variants = [_variant_report(text, record) for text in texts]
    variants.sort(key=lambda v: v.conversion_rate, reverse=True)

    return ExperimentReport(
        experiment_id=experiment_id,
        variants=variants,
        recommendation=recommend(variants),
        start_date=record.started_at,
        end_date=record.ended_at,
        status=record.status,
    )


def generate_style_guide(rules: list[ReplacementRule], results: list[MetricsRecord]) -> str:
    """Render the active rules and overall performance as a Markdown guide."""
    measured = [r for r in results if r.impressions > 0]
    if measured:
        average = sum(r.click_through_rate for r in measured) / len(measured) * 100
    else:
        average = 0.0
    top_patterns = [rule.pattern for rule in rules[:3]]

    lines = [
        "# Copy Style Guide",
        "",
        "## Performance Overview",
        "",
        f"- Total Rules: {len(rules)}",
        f"- Average Conversion Rate: {average:.1f}%",
        f"- Top Performing Patterns: {', '.join(top_patterns) or 'None'}",
        "",
        "## Copy Rules",
        "",
    ]
    for index, rule in enumerate(rules, start=1):
        lines += [
            f"### Rule {index}",
            f"- Pattern: `{rule.pattern}`",
            f'- Replacement: "{rule.replacement}"',
            f"- Context: {', '.join(rule.context) if rule.context else 'All'}",
            f"- Priority: {rule.priority or 'Default'}",
            "",
        ]
    return "\n".join(lines)
