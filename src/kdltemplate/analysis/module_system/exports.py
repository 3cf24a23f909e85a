"""
Export tables and composition.

A definitions-only document ends with an `export` node instead of a body:

    export "card" "row" button="btn"

Bare strings export a template under its own name, `old="new"` exports it
renamed. Composing the table into a scope binds each template under the
composite name `<file-id>/<name>`; the template keeps the home scope it was
declared in, so it does not see the importing document's templates.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, Mapping, Optional, Tuple

from ...shared.errors import ErrorKind, ErrorReporter, ExpansionError
from ...shared.nodes import Node
from ...shared.scope import Binding, Scope, ScopeKind
from ...shared.span import Span
from ...utils.config import FILE_SEPARATOR

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportTable:
    """Exported name -> template binding of one definitions-only document."""
    file_id: str
    _bindings: Mapping[str, Binding] = field(default_factory=dict)

    def get(self, name: str):
        """TemplateDefinition exported as name, or None."""
        binding = self._bindings.get(name)
        return binding.definition if binding is not None else None

    def binding(self, name: str) -> Optional[Binding]:
        return self._bindings.get(name)

    def names(self) -> Tuple[str, ...]:
        return tuple(self._bindings)

    def items(self) -> Iterator[Tuple[str, Binding]]:
        return iter(self._bindings.items())

    def __contains__(self, name: str) -> bool:
        return name in self._bindings

    def __iter__(self) -> Iterator[str]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)


def composite_name(file_id: str, name: str) -> str:
    return f"{file_id}{FILE_SEPARATOR}{name}"


def build_export_table(export_node: Node, scope: Scope, file_id: str, reporter: ErrorReporter) -> ExportTable:
    """Resolve the entries of an `export` node against the document's final scope."""
    table: Dict[str, Binding] = {}
    for entry in export_node.entries:
        if not isinstance(entry.value, str):
            reporter.report_error(
                ErrorKind.MALFORMED_DECLARATION,
                f"export entries must be template names, found {entry.value!r}",
                entry.span,
                help='write `export "name"` or `export name="public-name"`',
            )
            continue
        source, public = (entry.value, entry.value) if entry.is_argument else (entry.name, entry.value)

        binding = scope.lookup(source)
        if binding is None or not binding.is_template:
            reporter.report_error(
                ErrorKind.UNKNOWN_TEMPLATE,
                f"cannot export `{source}`: no template with that name in `{file_id}`",
                entry.span,
            )
            continue
        if public in table:
            reporter.report_error(
                ErrorKind.IMPORT_COLLISION,
                f"`{public}` is exported more than once from `{file_id}`",
                entry.span,
            )
            continue
        table[public] = binding.renamed(public)

    logger.debug(f"Export table for {file_id}: {', '.join(table) or '(empty)'}")
    return ExportTable(file_id, table)


def compose_into(
    scope: Scope,
    exports: ExportTable,
    file_id: str,
    reporter: ErrorReporter,
    span: Optional[Span] = None,
) -> Scope:
    """
    Push one IMPORT link binding every export as `<file_id>/<name>`.

    A composite name that is already bound is an ImportCollision and is
    left out of the new link.
    """
    bindings = []
    for name, binding in exports.items():
        qualified = composite_name(file_id, name)
        existing = scope.lookup(qualified)
        if existing is not None:
            reporter.report_error(
                ErrorKind.IMPORT_COLLISION,
                f"`{qualified}` is already bound in this scope",
                span if span is not None else binding.span,
                note=f"`{file_id}` is composed into the scope more than once",
            )
            continue
        bindings.append(binding.renamed(qualified, origin=file_id))
    return scope.push(ScopeKind.IMPORT, bindings)


def compose(scope: Scope, exports: ExportTable, file_id: Optional[str] = None) -> Scope:
    """
    Scope extended with the templates of `exports` under `<file_id>/<name>`.

    `file_id` defaults to the id of the exporting document. Raises
    ExpansionError on a collision; `scope` itself is never modified.
    """
    reporter = ErrorReporter()
    composed = compose_into(scope, exports, file_id if file_id is not None else exports.file_id, reporter)
    if reporter.has_errors():
        raise ExpansionError(reporter.errors, reporter.source_files)
    return composed
