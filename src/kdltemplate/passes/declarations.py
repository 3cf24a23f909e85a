"""
Declaration collection.

Splits a document into template declarations and its terminal node, and
turns every declaration node into a TemplateDefinition:

    button "text" color="red" {     // head: tparameters as entries
        icon { Icon "none" }        // node tparameter, default `Icon "none"`
        expand "extra" { }          // expand tparameter, default: nothing
        Button label="text" {       // last child: the body
            icon
            expand "extra"
        }
    }

Each declaration is pushed as its own scope link, so declaration i sees
declarations 1..i-1 only.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Tuple

from ..shared.errors import Error, ErrorKind, ErrorReporter
from ..shared.nodes import Document, Node
from ..shared.scope import Binding, Scope, ScopeKind
from ..shared.span import NO_SPAN, Span, SpanValue
from ..utils.config import EXPAND_KEYWORD, EXPORT_KEYWORD, IMPORT_KEYWORD

logger = logging.getLogger(__name__)


class TparameterKind(Enum):
    POSITIONAL = "positional"   # bare string on the head, no default
    NAMED = "named"             # property on the head, value is the default
    NODE = "node"               # head child, its single child is the default
    EXPAND = "expand"           # `expand "name"` head child, children are the default

    @property
    def accepts_value(self) -> bool:
        return self in (TparameterKind.POSITIONAL, TparameterKind.NAMED)


@dataclass(frozen=True)
class Tparameter:
    """
    Formal parameter of a template.

    `default` is a SpanValue (NAMED), a Node (NODE), a tuple of Nodes
    (EXPAND) or None when the tparameter is required.
    """
    name: str
    kind: TparameterKind
    span: Span = NO_SPAN
    default: Any = None

    @property
    def has_default(self) -> bool:
        return self.default is not None

    @property
    def accepts_value(self) -> bool:
        return self.kind.accepts_value

    def default_binding(self, home: Scope) -> Binding:
        """Binding used when a call supplies no targument; defaults live in the home scope."""
        if self.kind is TparameterKind.NODE:
            return Binding.node(self.name, self.default, home, self.span)
        if self.kind is TparameterKind.EXPAND:
            return Binding.expand(self.name, self.default, home, self.span)
        return Binding.value(self.name, self.default)


@dataclass(frozen=True, eq=False)
class TemplateDefinition:
    """A declared template: tparameters, body and the scope it was declared in."""
    name: str
    tparameters: Tuple[Tparameter, ...]
    body: Node
    scope: Scope
    span: Span = NO_SPAN

    def tparameter(self, name: str) -> Optional[Tparameter]:
        for tparameter in self.tparameters:
            if tparameter.name == name:
                return tparameter
        return None

    @property
    def required(self) -> Tuple[Tparameter, ...]:
        return tuple(t for t in self.tparameters if not t.has_default)

    def __repr__(self) -> str:
        params = ", ".join(f"{t.name}:{t.kind.value}" for t in self.tparameters)
        return f"TemplateDefinition({self.name}({params}) @ {self.span})"


@dataclass(frozen=True)
class CollectedDocument:
    """
    Result of collecting one document.

    `scope` holds every declaration; `body` is the terminal node (None for a
    definitions-only document, whose terminal node is `export_node`).
    """
    file_id: str
    scope: Scope
    definitions: Tuple[TemplateDefinition, ...]
    body: Optional[Node] = None
    export_node: Optional[Node] = None

    @property
    def is_definitions_only(self) -> bool:
        return self.export_node is not None


def parse_declaration(node: Node, home: Scope) -> Tuple[Optional[TemplateDefinition], List[Error]]:
    """
    Build the TemplateDefinition for one declaration node.

    Returns (None, errors) when the declaration is malformed; every problem
    of the head is reported, not only the first.
    """
    errors: List[Error] = []

    def fail(kind: ErrorKind, message: str, span: Span, **extra) -> None:
        errors.append(Error(kind=kind, message=message, span=span, **extra))

    if not node.nodes:
        fail(
            ErrorKind.MALFORMED_DECLARATION,
            f"template `{node.name}` has no body",
            node.span,
            help="add a children block whose last node is the template body",
        )
        return None, errors

    tparameters: List[Tparameter] = []
    positional: List[Tparameter] = []
    named: List[Tparameter] = []
    for entry in node.entries:
        if entry.is_argument:
            if not isinstance(entry.value, str):
                fail(
                    ErrorKind.MALFORMED_DECLARATION,
                    f"positional tparameter of `{node.name}` must be a string naming it, found {entry.value!r}",
                    entry.span,
                )
                continue
            tparameter = Tparameter(entry.value, TparameterKind.POSITIONAL, entry.span)
            positional.append(tparameter)
        else:
            tparameter = Tparameter(entry.name, TparameterKind.NAMED, entry.span, SpanValue(entry.value, entry.span))
            named.append(tparameter)
        tparameters.append(tparameter)

    if positional and named:
        fail(
            ErrorKind.MIXED_DECLARATION_STYLE,
            f"template `{node.name}` mixes positional and named tparameters",
            node.span,
            label=f"positional: {', '.join(t.name for t in positional)}; named: {', '.join(t.name for t in named)}",
            help="declare every head tparameter either as a bare string or as name=default",
        )

    *parameter_nodes, body = node.nodes
    for child in parameter_nodes:
        if child.name == EXPAND_KEYWORD:
            tparameter = _expand_tparameter(child, fail)
        else:
            tparameter = _node_tparameter(child, fail)
        if tparameter is not None:
            tparameters.append(tparameter)

    seen = set()
    for tparameter in tparameters:
        if tparameter.name in seen:
            fail(
                ErrorKind.DUPLICATE_TPARAMETER_NAME,
                f"tparameter `{tparameter.name}` is declared more than once in `{node.name}`",
                tparameter.span,
            )
        seen.add(tparameter.name)

    if errors:
        return None, errors
    definition = TemplateDefinition(node.name, tuple(tparameters), body, home, node.span)
    return definition, errors


def _node_tparameter(child: Node, fail) -> Optional[Tparameter]:
    if child.entries:
        fail(
            ErrorKind.MALFORMED_DECLARATION,
            f"default-parameter node `{child.name}` must not carry entries",
            child.span,
        )
        return None
    if len(child.nodes) != 1:
        fail(
            ErrorKind.MALFORMED_DECLARATION,
            f"default-parameter node `{child.name}` must have exactly one child, found {len(child.nodes)}",
            child.span,
            help="the single child is the default sub-tree of the tparameter",
        )
        return None
    return Tparameter(child.name, TparameterKind.NODE, child.span, child.nodes[0])


def _expand_tparameter(child: Node, fail) -> Optional[Tparameter]:
    arguments = child.arguments
    if len(child.entries) != 1 or len(arguments) != 1 or not isinstance(arguments[0].value, str):
        fail(
            ErrorKind.MALFORMED_DECLARATION,
            f"`{EXPAND_KEYWORD}` tparameter takes exactly one string argument naming it",
            child.span,
        )
        return None
    # No block at all: the splice is required at every call site
    default = child.children
    return Tparameter(arguments[0].value, TparameterKind.EXPAND, child.span, default)


class DeclarationCollector:
    """
    Partition a document into declarations and its terminal node.

    All nodes but the last are declarations. A leading `import` node is
    applied to the outer scope first; a trailing `export` node marks a
    definitions-only document.
    """

    def __init__(self, reporter: ErrorReporter):
        self.reporter = reporter

    def collect(self, document: Document, scope: Optional[Scope] = None) -> CollectedDocument:
        scope = scope if scope is not None else Scope.root()
        self.reporter.add_source(document.file_id, document.source)
        nodes = list(document.nodes)

        if nodes and nodes[0].name == IMPORT_KEYWORD:
            from ..analysis.module_system.imports import apply_imports
            scope = apply_imports(nodes.pop(0), scope, self.reporter)

        if not nodes:
            self.reporter.report_error(
                ErrorKind.EMPTY_DOCUMENT,
                f"document `{document.file_id}` has no nodes",
                document.span,
            )
            return CollectedDocument(document.file_id, scope, ())

        *declarations, last = nodes
        body, export_node = (None, last) if last.name == EXPORT_KEYWORD else (last, None)

        names = [node.name for node in declarations]
        definitions: List[TemplateDefinition] = []
        for index, node in enumerate(declarations):
            existing = scope.lookup(node.name)
            if existing is not None and existing.is_imported:
                self.reporter.report_error(
                    ErrorKind.IMPORT_COLLISION,
                    f"template `{node.name}` collides with a template imported from `{existing.origin}`",
                    node.span,
                    help="rename the local template or the import alias",
                )
                continue
            # Itself and every later declaration are invisible from its body
            visible = set(names[:index])
            home = scope.hide(n for n in names[index:] if n not in visible)
            definition, errors = parse_declaration(node, home)
            self.reporter.extend(errors)
            if definition is not None:
                definitions.append(definition)
                logger.debug(
                    f"Collected template {definition.name} with "
                    f"{len(definition.tparameters)} tparameter(s) in {document.file_id}"
                )
            scope = scope.bind(Binding.template(node.name, definition, node.span), ScopeKind.DECLARATION)

        return CollectedDocument(document.file_id, scope, tuple(definitions), body, export_node)
