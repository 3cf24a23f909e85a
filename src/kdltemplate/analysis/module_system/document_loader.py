"""
Document Loader

Expands a set of named documents that import each other. Each document's
dependencies (see `get_imports`) are collected first and their export
tables composed into its scope, depth first, with every table built once.
"""

import logging
from typing import Dict, List, Mapping, Optional

from ...passes.declarations import CollectedDocument, DeclarationCollector
from ...passes.expander import Expander
from ...shared.errors import ErrorKind, ErrorReporter
from ...shared.nodes import Document, Node
from ...shared.scope import Scope
from ...shared.span import Span
from .exports import ExportTable, build_export_table, compose_into
from .imports import get_imports

logger = logging.getLogger(__name__)


class DocumentLoader:
    """
    Loads documents by file id from an in-memory set.

    `loaded_exports` caches export tables; `loading_stack` holds the ids
    currently being loaded and detects import cycles.
    """

    def __init__(
        self,
        documents: Mapping[str, Document],
        reporter: Optional[ErrorReporter] = None,
        scope: Optional[Scope] = None,
    ):
        self.documents: Dict[str, Document] = dict(documents)
        self.reporter = reporter if reporter is not None else ErrorReporter()
        self.base_scope = scope if scope is not None else Scope.root()
        self.loaded_exports: Dict[str, ExportTable] = {}
        self.loading_stack: List[str] = []
        for file_id, document in self.documents.items():
            self.reporter.add_source(file_id, document.source)

    def load_exports(self, file_id: str, span: Optional[Span] = None) -> Optional[ExportTable]:
        """Export table of a definitions-only document, or None if it failed to load."""
        if file_id in self.loaded_exports:
            return self.loaded_exports[file_id]

        collected = self._collect(file_id, span)
        if collected is None:
            return None
        if not collected.is_definitions_only:
            self.reporter.report_error(
                ErrorKind.NOT_A_DEFINITIONS_FILE,
                f"document `{file_id}` is imported but does not end with an `export` node",
                collected.body.span if collected.body is not None else span,
            )
            return None

        table = build_export_table(collected.export_node, collected.scope, file_id, self.reporter)
        self.loaded_exports[file_id] = table
        return table

    def expand(self, file_id: str) -> Optional[Node]:
        """Expanded terminal node of a body document, or None if it has none."""
        collected = self._collect(file_id)
        if collected is None:
            return None
        if collected.body is None:
            if collected.export_node is not None:
                self.reporter.report_error(
                    ErrorKind.NOT_A_BODY_FILE,
                    f"document `{file_id}` only defines templates and has no body to expand",
                    collected.export_node.span,
                )
            return None
        return Expander(self.reporter).expand_root(collected.body, collected.scope)

    def scope_for(self, document: Document) -> Scope:
        """Base scope with the exports of every document `document` needs."""
        scope = self.base_scope
        for dependency in get_imports(document).required_files:
            exports = self.load_exports(dependency, document.span)
            if exports is not None:
                scope = compose_into(scope, exports, dependency, self.reporter)
        return scope

    def _collect(self, file_id: str, span: Optional[Span] = None) -> Optional[CollectedDocument]:
        if file_id in self.loading_stack:
            cycle = " -> ".join(self.loading_stack[self.loading_stack.index(file_id):] + [file_id])
            self.reporter.report_error(
                ErrorKind.IMPORT_CYCLE,
                f"circular import: {cycle}",
                span,
            )
            return None
        document = self.documents.get(file_id)
        if document is None:
            self.reporter.report_error(
                ErrorKind.MISSING_IMPORT,
                f"document `{file_id}` was not provided",
                span,
                note=f"available documents: {', '.join(sorted(self.documents)) or '(none)'}",
            )
            return None

        self.loading_stack.append(file_id)
        try:
            logger.debug(f"Loading document {file_id}")
            scope = self.scope_for(document)
            return DeclarationCollector(self.reporter).collect(document, scope)
        finally:
            self.loading_stack.pop()
