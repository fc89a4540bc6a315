"""CLI entrypoint: refine the copy in a TSX component with a rules file.

Usage:
    python -m copylab.refiner.refine src/ui/Hero.tsx --rules rules.json
    python -m copylab.refiner.refine Hero.tsx --rules rules.json --context cta --write
"""

import argparse
import logging
import sys
from pathlib import Path

from copylab.errors import RuleSourceError
from copylab.refiner.markup import MarkupRefiner
from copylab.refiner.rules import RuleStore
from copylab.refiner.text import TextRefiner


def main(args: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Rewrite UI copy in a TSX component")
    parser.add_argument("component", help="Path to the .tsx/.jsx source file")
    parser.add_argument("--rules", required=True, help="Path to the rules JSON file")
    parser.add_argument(
        "--context", action="append", default=[], help="Context tag (repeatable)"
    )
    parser.add_argument("--write", action="store_true", help="Rewrite the file in place")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    opts = parser.parse_args(args)

    logging.basicConfig(level=logging.DEBUG if opts.verbose else logging.WARNING)

    store = RuleStore()
    try:
        store.load_rules_from_file(opts.rules)
    except RuleSourceError as exc:
        print(f"FAIL: {exc}")
        sys.exit(1)

    path = Path(opts.component)
    if not path.exists():
        print(f"FAIL: {opts.component} not found.")
        sys.exit(1)

    code = path.read_text(encoding="utf-8")
    refined = MarkupRefiner(TextRefiner(store)).refine_component(code, opts.context)

    if opts.write:
        if refined != code:
            path.write_text(refined, encoding="utf-8")
        print(f"{'Updated' if refined != code else 'Unchanged'}: {path}")
    else:
        sys.stdout.write(refined)


if __name__ == "__main__":
    main()
