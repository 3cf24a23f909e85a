"""
Lark parse tree -> document tree.

Every node and entry gets a Span built from the token/rule positions that
lark propagates (`propagate_positions=True`).
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, List, Tuple, Union

from lark import Transformer, v_args
from lark.lexer import Token
from typing_extensions import TypeAlias

from ..shared.nodes import Entry, Node, Scalar
from ..shared.span import Span, SpanValue
from ..utils.config import DEFAULT_FILE_ID

logger: logging.Logger = logging.getLogger(__name__)

LarkMeta: TypeAlias = Any  # lark.tree.Meta, positions only

_SIMPLE_ESCAPES = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "b": "\b",
    "f": "\f",
    "\\": "\\",
    "/": "/",
    '"': '"',
}
_ESCAPE_RE = re.compile(r"\\(?:u\{([0-9a-fA-F]{1,6})\}|(.))", re.S)


def unescape_string(literal: str) -> str:
    """Body of a quoted KDL string with escapes resolved."""

    def replace(match: "re.Match[str]") -> str:
        if match.group(1) is not None:
            return chr(int(match.group(1), 16))
        char = match.group(2)
        return _SIMPLE_ESCAPES.get(char, char)

    return _ESCAPE_RE.sub(replace, literal[1:-1])


def parse_number(text: str) -> Scalar:
    """KDL number literal -> int or float."""
    digits = text.replace("_", "")
    unsigned = digits.lstrip("+-")
    if unsigned[:2] in ("0x", "0o", "0b"):
        return int(digits, 0)
    if any(c in unsigned for c in ".eE"):
        return float(digits)
    return int(digits, 10)


@dataclass(frozen=True)
class _Block:
    """Children block of a node, kept apart from entries while building the node."""
    nodes: Tuple[Node, ...]


NodeItem: TypeAlias = Union[SpanValue, Entry, _Block]


@v_args(meta=True)
class DocumentTransformer(Transformer):
    """
    Builds Node/Entry objects bottom-up.

    `current_file` must be set before `transform` so spans carry the file id.
    """

    def __init__(self, current_file: str = DEFAULT_FILE_ID):
        super().__init__()
        self.current_file = current_file

    def _span(self, start: int, end: int) -> Span:
        return Span(start, end - start, self.current_file)

    def _token_span(self, token: Token) -> Span:
        return self._span(token.start_pos, token.end_pos)

    def document(self, meta: LarkMeta, items) -> List[Node]:
        return [item for item in items if isinstance(item, Node)]

    def children(self, meta, items) -> _Block:
        nodes = items[0] if items else []
        return _Block(tuple(nodes))

    def node(self, meta: LarkMeta, items: List[NodeItem]) -> Node:
        name: SpanValue = items[0]
        entries: List[Entry] = []
        children = None
        for item in items[1:]:
            if isinstance(item, _Block):
                children = item.nodes
            elif isinstance(item, Entry):
                entries.append(item)
            else:
                entries.append(Entry(item.value, None, item.span))
        return Node(name.value, tuple(entries), children, self._span(meta.start_pos, meta.end_pos))

    def node_name(self, meta, items) -> SpanValue:
        return self._identifier(items[0])

    def prop_key(self, meta, items) -> SpanValue:
        return self._identifier(items[0])

    def prop(self, meta, items) -> Entry:
        key: SpanValue = items[0]
        value: SpanValue = items[1]
        return Entry(value.value, key.value, key.span.join(value.span))

    def value(self, meta, items) -> SpanValue:
        token: Token = items[0]
        span = self._token_span(token)
        if token.type == "STRING":
            return SpanValue(unescape_string(str(token)), span)
        if token.type == "NUMBER":
            return SpanValue(parse_number(str(token)), span)
        if token.type == "TRUE":
            return SpanValue(True, span)
        if token.type == "FALSE":
            return SpanValue(False, span)
        return SpanValue(None, span)

    def _identifier(self, token: Token) -> SpanValue:
        text = str(token)
        if token.type == "STRING":
            text = unescape_string(text)
        return SpanValue(text, self._token_span(token))
