"""KDL text reader (lark) producing the document tree."""

from .parser import Parser, ParseError, parse_document

__all__ = ["Parser", "ParseError", "parse_document"]
