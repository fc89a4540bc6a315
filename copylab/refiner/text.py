"""Plain-text copy refinement.

Rules compose against the current text: each rewrite is visible to every
rule that runs after it. At each step the highest-priority rule that has not
fired yet and matches the current text fires, replacing all of its matches.
A rule fires at most once per call, so a higher-priority rule can still pick
up text produced by a lower-priority one, and a replacement that contains
its own pattern cannot expand forever.

Replacement strings use the JavaScript String.replace syntax that existing
rule files are written in: $1-$99 insert a capture group, $& the whole
match, $` and $' the text before and after it, and $$ a literal dollar.
Backslashes carry no meaning.
"""

import re
from collections.abc import Iterable

from copylab.refiner.rules import RuleStore

_REFERENCE = re.compile(r"\$(\$|&|`|'|\d{1,2})")


def escape_replacement(text: str) -> str:
    """Quote text so it is inserted verbatim as a replacement."""
    return text.replace("$", "$$")


def expand_replacement(template: str, match: re.Match[str]) -> str:
    groups = match.re.groups

    def substitute(ref: re.Match[str]) -> str:
        token = ref.group(1)
        if token == "$":
            return "$"
        if token == "&":
            return match.group(0)
        if token == "`":
            return match.string[: match.start()]
        if token == "'":
            return match.string[match.end() :]
        index = int(token)
        if 1 <= index <= groups:
            return match.group(index) or ""
        # $12 with fewer than 12 groups reads as $1 followed by "2"
        if len(token) == 2 and 1 <= int(token[0]) <= groups:
            return (match.group(int(token[0])) or "") + token[1]
        return ref.group(0)

    return _REFERENCE.sub(substitute, template)


class TextRefiner:
    def __init__(self, store: RuleStore):
        self.store = store

    def refine_text(self, text: str, context: Iterable[str] = ()) -> str:
        tags = set(context)
        pending = [rule for rule in self.store.rules if rule.applies_to(tags)]
        refined = text

        fired = True
        while fired:
            fired = False
            for index, rule in enumerate(pending):
                pattern = rule.compiled()
                if not pattern.search(refined):
                    continue
                template = rule.replacement
                refined = pattern.sub(lambda m: expand_replacement(template, m), refined)
                del pending[index]
                fired = True
                break
        return refined
