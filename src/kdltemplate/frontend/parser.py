"""
Parser

Reads KDL text into the document tree. The expansion engine never imports
this module; it only exists so documents can be written as text.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional
import logging

from lark import Lark
from lark.exceptions import UnexpectedInput, VisitError

from ..shared.errors import KdlTemplateError
from ..shared.nodes import Document
from ..shared.span import Span
from ..utils.config import DEFAULT_FILE_ID, DEFAULT_PARSER_CACHE_FILE
from .transformer import DocumentTransformer

logger = logging.getLogger("kdltemplate.frontend.parser")


class Parser:
    """
    KDL reader built on a cached LALR lark grammar.

    Positions are propagated so every node and entry carries a Span.
    """

    def __init__(self, cache_file: Optional[str] = DEFAULT_PARSER_CACHE_FILE):
        grammar_path = Path(__file__).parent / "grammar.lark"
        self.parser = Lark.open(
            grammar_path,
            start="start",
            parser="lalr",              # Required for caching
            cache=cache_file if cache_file else False,
            propagate_positions=True,   # Spans for diagnostics
            maybe_placeholders=False,
        )
        self.transformer = DocumentTransformer()

    def parse(self, source: str, file_id: str = DEFAULT_FILE_ID) -> Document:
        """
        Parse source text to a Document.

        Raises ParseError with the offending span on malformed input.
        """
        try:
            self.transformer.current_file = file_id
            tree = self.parser.parse(source)
            nodes = self.transformer.transform(tree)
        except UnexpectedInput as e:
            position = getattr(e, "pos_in_stream", None)
            span = Span(position, 1, file_id) if position is not None else None
            raise ParseError(f"Parse error: {e}", file_id, span, source) from e
        except VisitError as e:
            raise ParseError(f"Parse error: {e.orig_exc}", file_id, None, source) from e

        logger.debug(f"Parsed {len(nodes)} top-level node(s) from {file_id}")
        return Document(tuple(nodes), file_id, source)


class ParseError(KdlTemplateError):
    """Parse error with source span"""
    def __init__(self, message: str, file_id: str, span: Optional[Span] = None, source: Optional[str] = None):
        self.message = message
        self.file_id = file_id
        self.span = span
        self.source = source
        super().__init__(f"{message} in {file_id}")


@lru_cache(maxsize=1)
def _default_parser() -> Parser:
    return Parser()


def parse_document(source: str, file_id: str = DEFAULT_FILE_ID) -> Document:
    """Parse with a process-wide shared Parser."""
    return _default_parser().parse(source, file_id)
