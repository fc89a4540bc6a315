"""CLI entrypoint: simulate a copy experiment and feed the result into the rules.

Usage:
    python -m copylab.simulator.generate
    python -m copylab.simulator.generate --visitors 5000 --seed 7
    python -m copylab.simulator.generate --rules rules.json   # update rules in place
"""

import argparse
import logging
import sys

from copylab.analysis.report import generate_report
from copylab.errors import RuleSourceError
from copylab.refiner.feedback import FeedbackLoop
from copylab.refiner.rules import RuleStore, RuleUpdateStrategy
from copylab.simulator.config import SimulationConfig
from copylab.simulator.engine import simulate


def main(args: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Simulate a copy A/B experiment")
    parser.add_argument("--visitors", type=int, default=2000, help="Number of visitors")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--rules", type=str, default=None, help="Rules JSON to update from the result")
    parser.add_argument("--threshold", type=float, default=0.95, help="Confidence threshold for rule updates")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    opts = parser.parse_args(args)

    logging.basicConfig(level=logging.DEBUG if opts.verbose else logging.WARNING)

    config = SimulationConfig(num_visitors=opts.visitors, seed=opts.seed)
    print(f"Experiment: {config.experiment_id}")
    for variant, rate in zip(config.variants, config.conversion_rates):
        print(f"  {variant!r}: true conversion rate {rate:.0%}")

    print(f"Simulating {config.num_visitors} visitors (seed={config.seed})...")
    registry = simulate(config)
    report = generate_report(registry, config.experiment_id)

    print("Results:")
    for v in report.variants:
        print(
            f"  {v.text!r}: {v.conversion_rate:.2f}% of {v.impressions} impressions "
            f"(significance {v.significance:.3f})"
        )
    print(report.recommendation)

    if opts.rules is None:
        return

    store = RuleStore()
    try:
        store.load_rules_from_file(opts.rules)
    except RuleSourceError as exc:
        print(f"FAIL: {exc}")
        sys.exit(1)

    changed = FeedbackLoop(store).apply_test_results(
        report, RuleUpdateStrategy(confidence_threshold=opts.threshold)
    )
    if changed:
        store.save_rules_to_file(opts.rules)
        for entry in store.history():
            print(f"  {entry.rule_id}: {entry.change}")
    print(f"Rule mutations: {changed}")


if __name__ == "__main__":
    main()
