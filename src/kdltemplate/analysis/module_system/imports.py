"""
Import declarations.

An optional first `import` node gives short aliases to composed templates:

    import "widgets/card" btn="widgets/button"

binds `card` and `btn` next to `widgets/card` and `widgets/button`. A
document can also call `widgets/card` directly; `get_imports` reports every
file a document needs either way.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ...shared.errors import ErrorKind, ErrorReporter
from ...shared.nodes import Document, Entry, Node
from ...shared.scope import Binding, Scope, ScopeKind
from ...utils.config import FILE_SEPARATOR, IMPORT_KEYWORD

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportEntry:
    """One alias of an `import` node: `alias` -> `file_id/name`."""
    alias: str
    file_id: str
    name: str

    @property
    def target(self) -> str:
        return f"{self.file_id}{FILE_SEPARATOR}{self.name}"


@dataclass(frozen=True)
class Imports:
    """Files a document depends on, in first-use order."""
    required_files: Tuple[str, ...] = ()
    aliases: Tuple[ImportEntry, ...] = ()
    import_node: Optional[Node] = None

    def __contains__(self, file_id: str) -> bool:
        return file_id in self.required_files


def split_composite(name: str) -> Optional[Tuple[str, str]]:
    """`"file/name"` -> ("file", "name"); None when name is not composite."""
    file_id, sep, rest = name.rpartition(FILE_SEPARATOR)
    if not sep or not file_id or not rest:
        return None
    return file_id, rest


def _import_entries(import_node: Node) -> List[Tuple[Optional[ImportEntry], Entry]]:
    out = []
    for entry in import_node.entries:
        target = entry.value
        parts = split_composite(target) if isinstance(target, str) else None
        if parts is None:
            out.append((None, entry))
            continue
        alias = parts[1] if entry.is_argument else entry.name
        out.append((ImportEntry(alias, parts[0], parts[1]), entry))
    return out


def get_imports(document: Document) -> Imports:
    """
    Files `document` requires: targets of its `import` node plus the file
    part of every composite node name anywhere in the tree.
    """
    required: List[str] = []
    aliases: List[ImportEntry] = []
    import_node = None
    nodes = document.nodes

    if nodes and nodes[0].name == IMPORT_KEYWORD:
        import_node = nodes[0]
        for item, _ in _import_entries(import_node):
            if item is None:
                continue
            aliases.append(item)
            if item.file_id not in required:
                required.append(item.file_id)
        nodes = nodes[1:]

    for top in nodes:
        for node in top.walk():
            parts = split_composite(node.name)
            if parts is not None and parts[0] not in required:
                required.append(parts[0])

    return Imports(tuple(required), tuple(aliases), import_node)


def apply_imports(import_node: Node, scope: Scope, reporter: ErrorReporter) -> Scope:
    """Push one IMPORT link holding the aliases of an `import` node."""
    bindings: List[Binding] = []
    taken = set()
    for item, entry in _import_entries(import_node):
        if item is None:
            reporter.report_error(
                ErrorKind.UNKNOWN_TEMPLATE,
                f"import target must be written `<file-id>{FILE_SEPARATOR}<template>`, found {entry.value!r}",
                entry.span,
            )
            continue
        binding = scope.lookup(item.target)
        if binding is None or not binding.is_template:
            reporter.report_error(
                ErrorKind.UNKNOWN_TEMPLATE,
                f"no imported template named `{item.target}`",
                entry.span,
                help=f"compose the exports of `{item.file_id}` into the scope first",
            )
            continue
        if item.alias in taken or scope.lookup(item.alias) is not None:
            reporter.report_error(
                ErrorKind.IMPORT_COLLISION,
                f"import alias `{item.alias}` is already bound",
                entry.span,
            )
            continue
        taken.add(item.alias)
        bindings.append(binding.renamed(item.alias, origin=binding.origin or item.file_id))
        logger.debug(f"Imported {item.target} as {item.alias}")
    return scope.push(ScopeKind.IMPORT, bindings)
