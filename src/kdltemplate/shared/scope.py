"""
Binding scopes.

A scope is one immutable link in a backward-only chain: it holds a set of
name -> Binding records and points at its parent. Pushing never mutates an
existing link, so a scope captured at a declaration point keeps seeing
exactly what was visible there. Lookup walks the chain innermost to outermost
and the first match wins (shadowing).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Tuple, TYPE_CHECKING

from .span import NO_SPAN, Span, SpanValue

if TYPE_CHECKING:
    from .nodes import Node


# -----------------------------------------------------------------------------
# Errors (caller may raise when duplicate item in same scope)
# -----------------------------------------------------------------------------


class ScopeRedefinitionError(ValueError):
    """Raised when one scope link would bind the same name twice."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"redefinition of '{name}' in same scope")


# -----------------------------------------------------------------------------
# Scope kind (categorizes scope links)
# -----------------------------------------------------------------------------


class ScopeKind(Enum):
    ROOT = "root"
    IMPORT = "import"
    DECLARATION = "declaration"
    CALL = "call"


# -----------------------------------------------------------------------------
# Binding kind
# -----------------------------------------------------------------------------


class BindingType(Enum):
    VALUE = "value"          # value tparameter -> SpanValue
    NODE = "node"            # node tparameter -> (Node, originating scope)
    EXPAND = "expand"        # expand tparameter -> (nodes, originating scope)
    TEMPLATE = "template"    # template name -> TemplateDefinition (None if malformed)


# -----------------------------------------------------------------------------
# Binding
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class Binding:
    """
    One name binding.

    `definition` depends on `binding_type`: a SpanValue, a Node, a tuple of
    Nodes, or a TemplateDefinition. `scope` is the scope the bound nodes are
    interpreted under; it is the call site's scope for call arguments and the
    template's home scope for defaults. `origin` is the file id an imported
    template came from.
    """
    name: str
    binding_type: BindingType
    definition: Any
    scope: Optional["Scope"] = None
    span: Span = NO_SPAN
    origin: Optional[str] = None

    @classmethod
    def value(cls, name: str, value: SpanValue) -> "Binding":
        return cls(name, BindingType.VALUE, value, span=value.span)

    @classmethod
    def node(cls, name: str, node: "Node", scope: "Scope", span: Span = NO_SPAN) -> "Binding":
        return cls(name, BindingType.NODE, node, scope=scope, span=span)

    @classmethod
    def expand(cls, name: str, nodes: Tuple["Node", ...], scope: "Scope", span: Span = NO_SPAN) -> "Binding":
        return cls(name, BindingType.EXPAND, tuple(nodes), scope=scope, span=span)

    @classmethod
    def template(cls, name: str, definition: Any, span: Span = NO_SPAN, origin: Optional[str] = None) -> "Binding":
        return cls(name, BindingType.TEMPLATE, definition, span=span, origin=origin)

    def renamed(self, name: str, origin: Optional[str] = None) -> "Binding":
        return Binding(
            name,
            self.binding_type,
            self.definition,
            scope=self.scope,
            span=self.span,
            origin=origin if origin is not None else self.origin,
        )

    @property
    def is_template(self) -> bool:
        return self.binding_type is BindingType.TEMPLATE

    @property
    def is_imported(self) -> bool:
        return self.origin is not None


# -----------------------------------------------------------------------------
# Scope (one link of the chain)
# -----------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class Scope:
    """
    One scope link: name -> Binding, plus a back-pointer.

    `hidden` lists template names that exist in the same document but must
    not be visible from here (the template being declared and everything
    declared after it). They are never bound on this chain; the set only lets
    the engine tell "declared later" apart from "ordinary node name".
    """

    parent: Optional[Scope] = None
    kind: ScopeKind = ScopeKind.ROOT
    _bindings: Mapping[str, Binding] = field(default_factory=dict)
    hidden: FrozenSet[str] = frozenset()

    @classmethod
    def root(cls) -> Scope:
        return cls()

    def lookup(self, name: str) -> Optional[Binding]:
        """Binding for name, innermost to outermost."""
        scope: Optional[Scope] = self
        while scope is not None:
            binding = scope._bindings.get(name)
            if binding is not None:
                return binding
            scope = scope.parent
        return None

    def lookup_all(self, name: str) -> List[Binding]:
        """All bindings for name along the scope chain, innermost first."""
        out: List[Binding] = []
        scope: Optional[Scope] = self
        while scope is not None:
            if name in scope._bindings:
                out.append(scope._bindings[name])
            scope = scope.parent
        return out

    def defined_in_this_scope(self, name: str) -> bool:
        return name in self._bindings

    def is_hidden(self, name: str) -> bool:
        """True if name is a template of this document not visible from here."""
        scope: Optional[Scope] = self
        while scope is not None:
            if name in scope._bindings:
                return False
            if name in scope.hidden:
                return True
            scope = scope.parent
        return False

    def imports_from(self, file_id: str) -> bool:
        """True if templates of document `file_id` were composed into this chain."""
        scope: Optional[Scope] = self
        while scope is not None:
            if scope.kind is ScopeKind.IMPORT and any(b.origin == file_id for b in scope._bindings.values()):
                return True
            scope = scope.parent
        return False

    def push(self, kind: ScopeKind, bindings: Iterable[Binding] = (), hidden: Iterable[str] = ()) -> Scope:
        """New link on top of this one; this scope is left untouched."""
        table = {}
        for binding in bindings:
            if binding.name in table:
                raise ScopeRedefinitionError(binding.name)
            table[binding.name] = binding
        return Scope(parent=self, kind=kind, _bindings=MappingProxyType(table), hidden=frozenset(hidden))

    def bind(self, binding: Binding, kind: ScopeKind = ScopeKind.DECLARATION, hidden: Iterable[str] = ()) -> Scope:
        return self.push(kind, (binding,), hidden)

    def hide(self, names: Iterable[str]) -> Scope:
        names = frozenset(names)
        if not names:
            return self
        return self.push(ScopeKind.DECLARATION, (), names)

    def bindings(self) -> Iterator[Binding]:
        """Visible bindings, innermost first; shadowed ones are skipped."""
        seen = set()
        scope: Optional[Scope] = self
        while scope is not None:
            for name, binding in scope._bindings.items():
                if name not in seen:
                    seen.add(name)
                    yield binding
            scope = scope.parent

    def templates(self) -> Iterator[Binding]:
        return (b for b in self.bindings() if b.is_template)

    @property
    def depth(self) -> int:
        depth = 0
        scope = self.parent
        while scope is not None:
            depth += 1
            scope = scope.parent
        return depth

    def __contains__(self, name: str) -> bool:
        return self.lookup(name) is not None

    def __repr__(self) -> str:
        names = ", ".join(self._bindings)
        return f"Scope(kind={self.kind.value}, depth={self.depth}, bindings=[{names}])"
