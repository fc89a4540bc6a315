"""Copy refinement inside TSX component source.

The source is parsed with tree-sitter's TSX grammar. Two kinds of literal
text are rewritten:

  - JSX text content that is not whitespace-only
  - string values of the label, placeholder, title and alt JSX attributes

Everything else (code, other attributes, whitespace between nodes) is left
byte-identical. Spans are spliced into the UTF-8 source from the highest
start offset down, so each splice leaves the offsets of the spans still
waiting to be processed untouched.

Refined text is entity-escaped where it would otherwise end the construct
it sits in: braces and angle brackets in JSX text, the enclosing quote in
an attribute value.

Source that does not parse cleanly is returned unchanged.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from tree_sitter import Language, Node, Parser

from copylab.refiner.text import TextRefiner

logger = logging.getLogger(__name__)

TEXT_ATTRIBUTES = frozenset({"label", "placeholder", "title", "alt"})

_JSX_TEXT_ENTITIES = {"{": "&#123;", "}": "&#125;", "<": "&lt;", ">": "&gt;"}
_QUOTE_ENTITIES = {'"': "&quot;", "'": "&#39;"}

_tsx_parser: Parser | None = None


def get_tsx_parser() -> Parser:
    """Get or create the shared TSX parser."""
    global _tsx_parser
    if _tsx_parser is None:
        import tree_sitter_typescript

        _tsx_parser = Parser(Language(tree_sitter_typescript.language_tsx()))
    return _tsx_parser


@dataclass(frozen=True)
class TextSpan:
    start: int  # byte offsets into the UTF-8 source
    end: int
    value: str
    quote: str | None = None  # set for attribute values

    def escape(self, text: str) -> str:
        if self.quote is None:
            entities = _JSX_TEXT_ENTITIES
        else:
            entities = {self.quote: _QUOTE_ENTITIES[self.quote]}
        return "".join(entities.get(ch, ch) for ch in text)


def _attribute_value_span(node: Node) -> TextSpan | None:
    named = node.named_children
    if len(named) != 2:
        return None
    name, value = named
    if name.type != "property_identifier" or value.type != "string":
        return None
    if name.text.decode("utf-8") not in TEXT_ATTRIBUTES:
        return None
    # Keep the quotes, rewrite what is between them
    start, end = value.start_byte + 1, value.end_byte - 1
    if end <= start:
        return None
    raw = value.text.decode("utf-8")
    return TextSpan(start, end, raw[1:-1], quote=raw[0])


def collect_text_spans(root: Node) -> list[TextSpan]:
    """Collect literal-text spans in document order."""
    spans: list[TextSpan] = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "jsx_text":
            value = node.text.decode("utf-8")
            if value.strip():
                spans.append(TextSpan(node.start_byte, node.end_byte, value))
            continue
        if node.type == "jsx_attribute":
            span = _attribute_value_span(node)
            if span is not None:
                spans.append(span)
                continue
        # Attribute expressions may hold nested elements, so keep descending
        stack.extend(reversed(node.children))
    return spans


class MarkupRefiner:
    def __init__(self, text_refiner: TextRefiner):
        self.text_refiner = text_refiner

    def refine_component(self, code: str, context: Iterable[str] = ()) -> str:
        tags = list(context)
        try:
            source = code.encode("utf-8")
            tree = get_tsx_parser().parse(source)
            if tree.root_node.has_error:
                logger.warning("Component source has syntax errors; leaving it unchanged")
                return code
            spans = collect_text_spans(tree.root_node)
        except Exception:
            logger.exception("Error refining component")
            return code

        if not spans:
            return code

        refined = source
        for span in sorted(spans, key=lambda s: s.start, reverse=True):
            replacement = self.text_refiner.refine_text(span.value, tags)
            if replacement == span.value:
                continue
            escaped = span.escape(replacement).encode("utf-8")
            refined = refined[: span.start] + escaped + refined[span.end :]
        return refined.decode("utf-8")
