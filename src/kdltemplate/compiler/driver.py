"""
Template Driver

Orchestrates the passes for one document or a set of documents:

    parse (optional) -> collect declarations -> expand body | build export table

The driver never raises on document errors: it returns an ExpansionResult
holding the (partial) output and every diagnostic. The module-level
functions at the bottom are the raising convenience API.
"""

import logging
from typing import List, Mapping, Optional

from ..analysis.module_system.document_loader import DocumentLoader
from ..analysis.module_system.exports import ExportTable, build_export_table
from ..frontend.parser import Parser
from ..ir.serialization import dumps
from ..passes.declarations import CollectedDocument, DeclarationCollector
from ..passes.expander import Expander
from ..shared.errors import Error, ErrorKind, ErrorReporter, ExpansionError
from ..shared.nodes import Document, Node
from ..shared.scope import Scope
from ..utils.config import DEFAULT_FILE_ID

logger = logging.getLogger(__name__)


class ExpansionResult:
    """Expansion result"""
    def __init__(
        self,
        node: Optional[Node] = None,
        exports: Optional[ExportTable] = None,
        reporter: Optional[ErrorReporter] = None,
        success: bool = False,
    ):
        self.node = node
        self.exports = exports
        self.reporter = reporter if reporter is not None else ErrorReporter()
        self.success = success

    @property
    def errors(self) -> List[Error]:
        return list(self.reporter.errors)

    def has_errors(self) -> bool:
        """True if expansion reported errors."""
        return self.reporter.has_errors() or not self.success

    def get_errors(self) -> list:
        """Formatted diagnostics, one string per error."""
        return [self.reporter.format_error(e, color=False) for e in self.reporter.errors]

    def raise_for_errors(self) -> None:
        if self.reporter.has_errors():
            raise ExpansionError(self.reporter.errors, self.reporter.source_files)


class TemplateDriver:
    """
    Runs declaration collection, expansion and export building.

    The lark parser is only created when text is expanded.
    """

    def __init__(self, parser: Optional[Parser] = None):
        self._parser = parser

    @property
    def parser(self) -> Parser:
        if self._parser is None:
            self._parser = Parser()
        return self._parser

    def expand(self, document: Document, scope: Optional[Scope] = None) -> ExpansionResult:
        """Expand the terminal node of a body document."""
        reporter = ErrorReporter()
        collected = DeclarationCollector(reporter).collect(document, scope)
        node = None
        if collected.body is not None:
            node = Expander(reporter).expand_root(collected.body, collected.scope)
        elif collected.export_node is not None:
            reporter.report_error(
                ErrorKind.NOT_A_BODY_FILE,
                f"document `{document.file_id}` only defines templates and has no body to expand",
                collected.export_node.span,
                help="use collect_exports for definitions-only documents",
            )
        return self._finish(ExpansionResult(node=node, reporter=reporter), document.file_id)

    def collect_exports(self, document: Document, scope: Optional[Scope] = None) -> ExpansionResult:
        """Export table of a definitions-only document."""
        reporter = ErrorReporter()
        collected = DeclarationCollector(reporter).collect(document, scope)
        exports = self._export_table(collected, reporter)
        return self._finish(ExpansionResult(exports=exports, reporter=reporter), document.file_id)

    def expand_source(
        self,
        source: str,
        file_id: str = DEFAULT_FILE_ID,
        scope: Optional[Scope] = None,
    ) -> ExpansionResult:
        """Parse KDL text and expand it. ParseError propagates."""
        return self.expand(self.parser.parse(source, file_id), scope)

    def expand_documents(
        self,
        documents: Mapping[str, Document],
        root: str,
        scope: Optional[Scope] = None,
    ) -> ExpansionResult:
        """
        Expand `documents[root]`, loading the documents it imports (and
        theirs) from `documents` first.
        """
        loader = DocumentLoader(documents, scope=scope)
        node = loader.expand(root)
        return self._finish(ExpansionResult(node=node, reporter=loader.reporter), root)

    def _export_table(self, collected: CollectedDocument, reporter: ErrorReporter) -> Optional[ExportTable]:
        if collected.export_node is None:
            if collected.body is not None:
                reporter.report_error(
                    ErrorKind.NOT_A_DEFINITIONS_FILE,
                    f"document `{collected.file_id}` does not end with an `export` node",
                    collected.body.span,
                )
            return None
        return build_export_table(collected.export_node, collected.scope, collected.file_id, reporter)

    def _finish(self, result: ExpansionResult, file_id: str) -> ExpansionResult:
        result.success = not result.reporter.has_errors()
        if result.success:
            logger.debug(f"Expanded {file_id} without errors")
            if result.node is not None and logger.isEnabledFor(logging.DEBUG):
                logger.debug(f"Output of {file_id}:\n{dumps(result.node)}")
        else:
            logger.debug(f"Expansion of {file_id} reported {len(result.reporter.errors)} error(s)")
        return result


_default_driver = TemplateDriver()


def expand(document: Document, scope: Optional[Scope] = None) -> Node:
    """
    Expanded terminal node of `document` under `scope` (empty by default).

    Raises ExpansionError carrying every diagnostic of the run.
    """
    result = _default_driver.expand(document, scope)
    result.raise_for_errors()
    return result.node


def collect_exports(document: Document, scope: Optional[Scope] = None) -> ExportTable:
    """Export table of a definitions-only document; raises ExpansionError."""
    result = _default_driver.collect_exports(document, scope)
    result.raise_for_errors()
    return result.exports


def expand_documents(documents: Mapping[str, Document], root: str, scope: Optional[Scope] = None) -> Node:
    """Expand `documents[root]` with its imports resolved from `documents`; raises ExpansionError."""
    result = _default_driver.expand_documents(documents, root, scope)
    result.raise_for_errors()
    return result.node
