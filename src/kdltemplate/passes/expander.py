"""
Expansion engine.

Rewrites a node tree under a scope, recursively:

  - a node whose name is a template binding is a call: its targuments are
    bound (CallResolver) and the template body is expanded under the
    template's home scope extended with those bindings;
  - a node whose name is a node binding is replaced by the bound node,
    expanded under the scope it was written in;
  - a node whose name is a value binding holding a string is renamed;
  - an entry whose value is a string naming a value binding is substituted;
  - `expand "name"` in a children list is replaced by the nodes bound to
    the expand tparameter `name`, in order.

Everything else is copied with entries and children expanded. Errors are
reported and the offending node is left as written, so one run collects
every diagnostic.
"""

import logging
import sys
from typing import List, Optional, Tuple

from ..shared.errors import ErrorKind, ErrorReporter, ImplementationError
from ..shared.nodes import Entry, Node
from ..shared.scope import Binding, BindingType, Scope
from ..utils.config import EXPAND_KEYWORD, FILE_SEPARATOR
from .call_resolver import CallResolver

logger = logging.getLogger(__name__)


class Expander:
    """Expands node trees; one instance may be reused across documents."""

    def __init__(self, reporter: ErrorReporter):
        self.reporter = reporter
        self.resolver = CallResolver(reporter, self.substitute_entry)
        self.calls_expanded = 0

    def expand_root(self, node: Node, scope: Scope) -> Node:
        """
        Expand a terminal node. Call chains deeper than the interpreter's
        recursion limit are reported and the node is returned as written.
        """
        try:
            return self.expand_node(node, scope)
        except RecursionError:
            self.reporter.report_error(
                ErrorKind.EXPANSION_TOO_DEEP,
                f"template calls under `{node.name}` nest too deeply to expand",
                node.span,
                note=f"the recursion limit is {sys.getrecursionlimit()}",
                help="flatten the chain of nested calls or raise it with sys.setrecursionlimit",
            )
            return node

    def expand_node(self, node: Node, scope: Scope) -> Node:
        """The expansion of one node in a single-node position."""
        if node.name == EXPAND_KEYWORD:
            if self._splice_binding(node, scope) is not None:
                self.reporter.report_error(
                    ErrorKind.ARGUMENT_KIND_MISMATCH,
                    f"`{EXPAND_KEYWORD}` can only splice nodes into a children list",
                    node.span,
                    help="a template body or node argument must be a single node; wrap the splice in one",
                )
            return node

        binding = scope.lookup(node.name)
        if binding is None:
            self._check_unbound_name(node, scope)
            return self._copy(node, node.name, scope)

        if binding.binding_type is BindingType.TEMPLATE:
            return self._expand_call(node, binding, scope)

        if binding.binding_type is BindingType.NODE:
            if node.entries or node.children is not None:
                self.reporter.report_error(
                    ErrorKind.ARGUMENT_KIND_MISMATCH,
                    f"node tparameter `{node.name}` is used with entries or children",
                    node.span,
                    help=f"write `{node.name}` on its own to insert the bound node",
                )
                return node
            return self.expand_node(binding.definition, binding.scope)

        if binding.binding_type is BindingType.VALUE:
            value = binding.definition.value
            if not isinstance(value, str):
                self.reporter.report_error(
                    ErrorKind.ARGUMENT_KIND_MISMATCH,
                    f"value tparameter `{node.name}` holds {value!r}, which cannot name a node",
                    node.span,
                    label="used as a node name here",
                )
                return self._copy(node, node.name, scope)
            return self._copy(node, value, scope)

        if binding.binding_type is BindingType.EXPAND:
            self.reporter.report_error(
                ErrorKind.ARGUMENT_KIND_MISMATCH,
                f"expand tparameter `{node.name}` used as a single node",
                node.span,
                help=f'splice it into a children list with `{EXPAND_KEYWORD} "{node.name}"`',
            )
            return node

        raise ImplementationError(f"unhandled binding kind {binding.binding_type} for `{node.name}`")

    def expand_children(self, children: Tuple[Node, ...], scope: Scope) -> Tuple[Node, ...]:
        """Expand a children list; `expand` markers splice zero or more nodes in place."""
        out: List[Node] = []
        for child in children:
            if child.name != EXPAND_KEYWORD:
                out.append(self.expand_node(child, scope))
                continue
            binding = self._splice_binding(child, scope)
            if binding is None:
                out.append(child)
                continue
            # Spliced nodes are interpreted where they were written
            out.extend(self.expand_children(binding.definition, binding.scope))
        return tuple(out)

    def substitute_entry(self, entry: Entry, scope: Scope) -> Entry:
        """Entry with its value replaced when it is a string naming a value binding."""
        if not isinstance(entry.value, str):
            return entry
        binding = scope.lookup(entry.value)
        if binding is None or binding.is_template:
            return entry
        if binding.binding_type is BindingType.VALUE:
            return entry.with_value(binding.definition)
        self.reporter.report_error(
            ErrorKind.ARGUMENT_KIND_MISMATCH,
            f"{binding.binding_type.value} tparameter `{entry.value}` used where a value is expected",
            entry.span,
        )
        return entry

    def _copy(self, node: Node, name: str, scope: Scope) -> Node:
        entries = tuple(self.substitute_entry(entry, scope) for entry in node.entries)
        children = None if node.children is None else self.expand_children(node.children, scope)
        return Node(name, entries, children, node.span)

    def _expand_call(self, node: Node, binding: Binding, scope: Scope) -> Node:
        definition = binding.definition
        if definition is None:
            # Malformed declaration, already reported
            self._check_arguments(node, scope)
            return node
        body_scope = self.resolver.bind(definition, node, scope)
        if body_scope is None:
            self._check_arguments(node, scope)
            return node
        self.calls_expanded += 1
        logger.debug(f"Expanding call to {node.name} at {node.span}")
        return self.expand_node(definition.body, body_scope)

    def _check_arguments(self, call: Node, scope: Scope) -> None:
        """Report errors inside the argument subtrees of a call left as written."""
        for argument in call.nodes:
            self.expand_children(argument.nodes, scope)

    def _check_unbound_name(self, node: Node, scope: Scope) -> None:
        if scope.is_hidden(node.name):
            self.reporter.report_error(
                ErrorKind.UNKNOWN_TEMPLATE,
                f"template `{node.name}` is not visible here",
                node.span,
                label="declared later in this document",
                note="a template sees only the templates declared before it, and never itself",
            )
        elif FILE_SEPARATOR in node.name:
            # Only names under an imported document can be misspelled calls
            file_id, _, template = node.name.rpartition(FILE_SEPARATOR)
            if file_id and scope.imports_from(file_id):
                self.reporter.report_error(
                    ErrorKind.UNKNOWN_TEMPLATE,
                    f"document `{file_id}` exports no template named `{template}`",
                    node.span,
                    help=f"check the `export` node of `{file_id}`",
                )

    def _splice_binding(self, marker: Node, scope: Scope) -> Optional[Binding]:
        arguments = marker.arguments
        if len(marker.entries) != 1 or len(arguments) != 1 or not isinstance(arguments[0].value, str):
            self.reporter.report_error(
                ErrorKind.UNKNOWN_TPARAMETER_REFERENCE,
                f"`{EXPAND_KEYWORD}` takes exactly one string argument naming an expand tparameter",
                marker.span,
            )
            return None
        name = arguments[0].value
        binding = scope.lookup(name)
        if binding is None:
            self.reporter.report_error(
                ErrorKind.UNKNOWN_TPARAMETER_REFERENCE,
                f"no expand tparameter named `{name}` in scope",
                arguments[0].span,
            )
            return None
        if binding.binding_type is not BindingType.EXPAND:
            self.reporter.report_error(
                ErrorKind.ARGUMENT_KIND_MISMATCH,
                f"`{name}` is a {binding.binding_type.value} binding, not an expand tparameter",
                arguments[0].span,
            )
            return None
        return binding
