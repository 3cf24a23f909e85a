"""
Call resolution: binds the targuments of one template call.

Binding order at a call site:
    1. properties bind by name (value tparameters only)
    2. children bind by name (node, expand, or value from `name <value>`)
    3. bare entries fill the still unbound tparameters in declaration order
    4. tparameters still unbound take their default, or fail TooFewArguments

Call-site entries and value children are substituted under the caller's scope
first, so `Outer "x" { Inner "x" }` passes Outer's argument through to Inner.
"""

import logging
from typing import Callable, Dict, List, Optional

from ..shared.errors import ErrorKind, ErrorReporter
from ..shared.nodes import Entry, Node
from ..shared.scope import Binding, Scope, ScopeKind
from ..shared.span import Span
from .declarations import TemplateDefinition, Tparameter, TparameterKind

logger = logging.getLogger(__name__)

SubstituteEntry = Callable[[Entry, Scope], Entry]


class CallResolver:
    """
    Turns (definition, call node, caller scope) into the scope the template
    body is expanded under: one CALL link pushed onto the template's home
    scope, never onto the caller's.
    """

    def __init__(self, reporter: ErrorReporter, substitute_entry: SubstituteEntry):
        self.reporter = reporter
        self.substitute_entry = substitute_entry

    def bind(self, definition: TemplateDefinition, call: Node, caller: Scope) -> Optional[Scope]:
        """
        Scope for expanding `definition.body`, or None if the call is
        invalid. Every problem with the call is reported, not only the first.
        """
        errors_before = len(self.reporter.errors)
        bound: Dict[str, Binding] = {}
        entries = [self.substitute_entry(entry, caller) for entry in call.entries]

        for entry in entries:
            if entry.is_argument:
                continue
            tparameter = self._named(definition, entry.name, entry.span, bound)
            if tparameter is None:
                continue
            if not tparameter.accepts_value:
                self._kind_mismatch(definition, tparameter, entry.span)
                continue
            bound[tparameter.name] = Binding.value(tparameter.name, entry.span_value())

        for child in call.nodes:
            tparameter = self._named(definition, child.name, child.span, bound)
            if tparameter is None:
                continue
            binding = self._bind_child(definition, tparameter, child, caller)
            if binding is not None:
                bound[tparameter.name] = binding

        pending: List[Tparameter] = [t for t in definition.tparameters if t.name not in bound]
        for entry in entries:
            if not entry.is_argument:
                continue
            if not pending:
                self.reporter.report_error(
                    ErrorKind.TOO_MANY_ARGUMENTS,
                    f"template `{definition.name}` got more arguments than it has tparameters",
                    entry.span,
                    label="no tparameter left for this value",
                    note=f"`{definition.name}` declares {_describe(definition)}",
                )
                continue
            tparameter = pending.pop(0)
            if not tparameter.accepts_value:
                self._kind_mismatch(definition, tparameter, entry.span)
                continue
            bound[tparameter.name] = Binding.value(tparameter.name, entry.span_value())

        for tparameter in definition.required:
            if tparameter.name not in bound:
                self.reporter.report_error(
                    ErrorKind.TOO_FEW_ARGUMENTS,
                    f"missing argument for tparameter `{tparameter.name}` of template `{definition.name}`",
                    call.span,
                    help=_supply_hint(tparameter),
                )

        if len(self.reporter.errors) > errors_before:
            return None

        ordered = [
            bound[t.name] if t.name in bound else t.default_binding(definition.scope)
            for t in definition.tparameters
        ]
        logger.debug(f"Bound {len(ordered)} tparameter(s) for call to {definition.name}")
        return definition.scope.push(ScopeKind.CALL, ordered)

    def _named(
        self,
        definition: TemplateDefinition,
        name: str,
        span: Span,
        bound: Dict[str, Binding],
    ) -> Optional[Tparameter]:
        tparameter = definition.tparameter(name)
        if tparameter is None:
            self.reporter.report_error(
                ErrorKind.UNKNOWN_TPARAMETER_NAME,
                f"template `{definition.name}` has no tparameter named `{name}`",
                span,
                note=f"`{definition.name}` declares {_describe(definition)}",
            )
            return None
        if tparameter.name in bound:
            self.reporter.report_error(
                ErrorKind.TOO_MANY_ARGUMENTS,
                f"tparameter `{name}` of template `{definition.name}` is bound more than once",
                span,
            )
            return None
        return tparameter

    def _bind_child(
        self,
        definition: TemplateDefinition,
        tparameter: Tparameter,
        child: Node,
        caller: Scope,
    ) -> Optional[Binding]:
        if tparameter.kind is TparameterKind.NODE:
            if child.entries or len(child.nodes) != 1:
                self._kind_mismatch(
                    definition, tparameter, child.span,
                    note="a node argument needs exactly one child and no entries",
                )
                return None
            return Binding.node(tparameter.name, child.nodes[0], caller, child.span)

        if tparameter.kind is TparameterKind.EXPAND:
            if child.entries:
                self._kind_mismatch(
                    definition, tparameter, child.span, note="an expand argument cannot carry entries"
                )
                return None
            return Binding.expand(tparameter.name, child.nodes, caller, child.span)

        if child.nodes or len(child.entries) != 1 or not child.entries[0].is_argument:
            self._kind_mismatch(
                definition, tparameter, child.span, note="a value argument needs exactly one bare entry and no children"
            )
            return None
        entry = self.substitute_entry(child.entries[0], caller)
        return Binding.value(tparameter.name, entry.span_value())

    def _kind_mismatch(
        self,
        definition: TemplateDefinition,
        tparameter: Tparameter,
        span: Span,
        note: Optional[str] = None,
    ) -> None:
        self.reporter.report_error(
            ErrorKind.ARGUMENT_KIND_MISMATCH,
            f"{tparameter.kind.value} tparameter `{tparameter.name}` of template `{definition.name}` "
            f"cannot be bound here",
            span,
            label=f"expected {_expected(tparameter)}",
            help=_supply_hint(tparameter),
            note=note,
        )


def _expected(tparameter: Tparameter) -> str:
    if tparameter.accepts_value:
        return "a value"
    if tparameter.kind is TparameterKind.NODE:
        return "a node"
    return "a list of nodes"


def _supply_hint(tparameter: Tparameter) -> str:
    name = tparameter.name
    if tparameter.kind is TparameterKind.NODE:
        return f"pass it as a child: `{name} {{ <node> }}`"
    if tparameter.kind is TparameterKind.EXPAND:
        return f"pass it as a child: `{name} {{ <nodes...> }}`"
    return f"pass it as `{name}=<value>`, `{name} <value>` or as a bare value"


def _describe(definition: TemplateDefinition) -> str:
    if not definition.tparameters:
        return "no tparameters"
    return ", ".join(f"`{t.name}` ({t.kind.value})" for t in definition.tparameters)
