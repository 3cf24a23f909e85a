"""
Document Tree Definitions

Immutable node tree consumed and produced by the expansion engine.

The reader (frontend/) builds these from text; any other parser can build them
directly. Spans are attached to every node and entry but never take part in
equality, so an expanded tree compares equal to a hand-written expected tree.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterator, Optional, Tuple, Union

from typing_extensions import TypeAlias

from .span import NO_SPAN, Span, SpanValue
from ..utils.config import DEFAULT_FILE_ID

# Primitive entry values: string, integer, float, boolean, null
Scalar: TypeAlias = Union[str, int, float, bool, None]


@dataclass(frozen=True)
class Entry:
    """
    One entry on a node.

    A bare value (`name is None`) is an argument and is positional; a
    name/value pair is a property.
    """
    value: Scalar
    name: Optional[str] = None
    span: Span = field(default=NO_SPAN, compare=False)

    @property
    def is_argument(self) -> bool:
        return self.name is None

    @property
    def is_property(self) -> bool:
        return self.name is not None

    def span_value(self) -> SpanValue:
        return SpanValue(self.value, self.span)

    def with_value(self, value: SpanValue) -> "Entry":
        """Same entry (same key) holding a substituted value."""
        return Entry(value.value, self.name, value.span)

    def __repr__(self) -> str:
        if self.name is None:
            return f"Entry({self.value!r})"
        return f"Entry({self.name}={self.value!r})"


@dataclass(frozen=True)
class Node:
    """
    A named node with ordered entries and an optional children block.

    `children is None` means the node has no block at all; `()` means an
    explicit empty block (`node {}`).
    """
    name: str
    entries: Tuple[Entry, ...] = ()
    children: Optional[Tuple["Node", ...]] = None
    span: Span = field(default=NO_SPAN, compare=False)

    @property
    def nodes(self) -> Tuple["Node", ...]:
        """Children, or an empty tuple when there is no block."""
        return self.children if self.children is not None else ()

    @property
    def arguments(self) -> Tuple[Entry, ...]:
        return tuple(e for e in self.entries if e.is_argument)

    @property
    def properties(self) -> Tuple[Entry, ...]:
        return tuple(e for e in self.entries if e.is_property)

    def get(self, key: str) -> Optional[Entry]:
        """Last property with the given key (later properties override)."""
        found = None
        for entry in self.entries:
            if entry.name == key:
                found = entry
        return found

    def walk(self) -> Iterator["Node"]:
        """This node and all its descendants, depth first."""
        yield self
        for node in self.nodes:
            yield from node.walk()

    def replace(self, **changes) -> "Node":
        return replace(self, **changes)


@dataclass(frozen=True)
class Document:
    """
    Ordered top-level nodes of one source file.

    `source` is kept only to render diagnostics; it does not take part in
    equality.
    """
    nodes: Tuple[Node, ...] = ()
    file_id: str = DEFAULT_FILE_ID
    source: Optional[str] = field(default=None, compare=False, repr=False)

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self.nodes)

    @property
    def span(self) -> Span:
        size = len(self.source) if self.source is not None else 0
        return Span(0, size, self.file_id)
