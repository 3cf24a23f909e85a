"""
Tree Serialization
==================

Two renderings of the document tree:

- `to_kdl`: KDL text, which reads back (frontend/) to an equal tree
- `to_sexpr` / `dumps`: canonical S-expressions for tests and debug logs

S-expression layout (nested lists + sexpdata.Symbol):

    (node "WashingMachine" :noise 2.0 (children (node "Origin" :country "China")))

Arguments follow the name, properties are `:key value` pairs, and a
children block is a trailing `(children ...)` list, present iff the node
has a block (so `a` and `a {}` stay distinct).
"""

import re
from typing import Any, Iterable, List, Union

import sexpdata

from ..shared.nodes import Document, Entry, Node, Scalar
from ..utils.config import (
    BOOLEAN_FALSE_LITERAL,
    BOOLEAN_TRUE_LITERAL,
    DEFAULT_INDENT,
    NULL_LITERAL,
)

_BARE_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_\-.:]*\Z")
_RESERVED_BARE = frozenset({BOOLEAN_TRUE_LITERAL, BOOLEAN_FALSE_LITERAL, NULL_LITERAL})
_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t", "\b": "\\b", "\f": "\\f"}


# ---------------------------------------------------------------------------
# KDL text
# ---------------------------------------------------------------------------

def _quote(text: str) -> str:
    return '"' + "".join(_ESCAPES.get(c, c) for c in text) + '"'


def _identifier(text: str) -> str:
    if _BARE_IDENTIFIER.match(text) and text not in _RESERVED_BARE:
        return text
    return _quote(text)


def _scalar(value: Scalar) -> str:
    if value is None:
        return NULL_LITERAL
    if isinstance(value, bool):
        return BOOLEAN_TRUE_LITERAL if value else BOOLEAN_FALSE_LITERAL
    if isinstance(value, str):
        return _quote(value)
    return repr(value)


def _entry(entry: Entry) -> str:
    if entry.is_argument:
        return _scalar(entry.value)
    return f"{_identifier(entry.name)}={_scalar(entry.value)}"


def _render(node: Node, depth: int, indent: str, out: List[str]) -> None:
    prefix = indent * depth
    head = " ".join([_identifier(node.name)] + [_entry(e) for e in node.entries])
    if node.children is None:
        out.append(prefix + head)
    elif not node.children:
        out.append(prefix + head + " {}")
    else:
        out.append(prefix + head + " {")
        for child in node.children:
            _render(child, depth + 1, indent, out)
        out.append(prefix + "}")


def to_kdl(tree: Union[Node, Document, Iterable[Node]], indent: str = DEFAULT_INDENT) -> str:
    """Render a node, a document or a node list as KDL text, one node per line."""
    nodes = [tree] if isinstance(tree, Node) else list(tree)
    out: List[str] = []
    for node in nodes:
        _render(node, 0, indent, out)
    return "\n".join(out) + "\n" if out else ""


# ---------------------------------------------------------------------------
# S-expressions
# ---------------------------------------------------------------------------

def _sym(s: str) -> Any:
    return sexpdata.Symbol(s)


def _atom(value: Scalar) -> Any:
    if value is None:
        return _sym(NULL_LITERAL)
    if isinstance(value, bool):
        return _sym(BOOLEAN_TRUE_LITERAL if value else BOOLEAN_FALSE_LITERAL)
    return value


def to_sexpr(tree: Union[Node, Document]) -> Any:
    """Structured sexpr (lists, Symbols, atoms) for a node or a whole document."""
    if isinstance(tree, Document):
        return [_sym("document"), tree.file_id] + [to_sexpr(node) for node in tree.nodes]
    out: List[Any] = [_sym("node"), tree.name]
    for entry in tree.entries:
        if entry.is_argument:
            out.append(_atom(entry.value))
    for entry in tree.entries:
        if entry.is_property:
            out.extend([_sym(f":{entry.name}"), _atom(entry.value)])
    if tree.children is not None:
        out.append([_sym("children")] + [to_sexpr(child) for child in tree.children])
    return out


def _pretty_dumps(sexpr: Any, indent: int = 0, indent_str: str = "  ", max_line: int = 100) -> str:
    """
    Pretty-print structured sexpr. Keeps short forms on one line; breaks only when needed.
    """
    if isinstance(sexpr, list):
        if not sexpr:
            return "()"
        parts = [_pretty_dumps(e, indent + 1, indent_str, max_line) for e in sexpr]
        one_line = "(" + " ".join(parts) + ")"
        if len(one_line) <= max_line and "\n" not in one_line:
            return one_line
        prefix = indent_str * indent
        next_prefix = indent_str * (indent + 1)
        # First element on same line as ( to avoid orphan (; no space after (
        rest = "\n".join(next_prefix + p for p in parts[1:])
        inner = parts[0] + ("\n" + rest if rest else "")
        return f"({inner}\n{prefix})"
    return sexpdata.dumps(sexpr)


def dumps(tree: Union[Node, Document], pretty: bool = True) -> str:
    """
    S-expression string of a node or document.

    Pretty-printed by default; `pretty=False` gives sexpdata's compact form.
    """
    sexpr = to_sexpr(tree)
    if pretty:
        return _pretty_dumps(sexpr)
    return sexpdata.dumps(sexpr)
