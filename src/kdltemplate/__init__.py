"""
kdltemplate: template (macro) expansion for KDL node trees.

    from kdltemplate import expand, parse_document

    node = expand(parse_document('''
        washer { WashingMachine noise=2.0 }
        Laundry { washer; washer }
    '''))
"""

from .shared import (
    Binding,
    BindingType,
    Document,
    Entry,
    Error,
    ErrorKind,
    ErrorReporter,
    ExpansionError,
    KdlTemplateError,
    Node,
    Scope,
    ScopeKind,
    Span,
    SpanValue,
)
from .frontend import ParseError, Parser, parse_document
from .passes.declarations import TemplateDefinition, Tparameter, TparameterKind
from .analysis.module_system import DocumentLoader, ExportTable, compose, get_imports
from .compiler.driver import (
    ExpansionResult,
    TemplateDriver,
    collect_exports,
    expand,
    expand_documents,
)
from .ir.serialization import dumps, to_kdl, to_sexpr

__version__ = "0.1.0"

__all__ = [
    "Binding",
    "BindingType",
    "Document",
    "Entry",
    "Error",
    "ErrorKind",
    "ErrorReporter",
    "ExpansionError",
    "KdlTemplateError",
    "Node",
    "Scope",
    "ScopeKind",
    "Span",
    "SpanValue",
    "ParseError",
    "Parser",
    "parse_document",
    "TemplateDefinition",
    "Tparameter",
    "TparameterKind",
    "DocumentLoader",
    "ExportTable",
    "compose",
    "get_imports",
    "ExpansionResult",
    "TemplateDriver",
    "collect_exports",
    "expand",
    "expand_documents",
    "dumps",
    "to_kdl",
    "to_sexpr",
]
