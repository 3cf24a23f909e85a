"""Module system: export tables, composition, imports and multi-document loading."""

from .exports import ExportTable, build_export_table, compose, compose_into, composite_name
from .imports import ImportEntry, Imports, apply_imports, get_imports, split_composite
from .document_loader import DocumentLoader

__all__ = [
    'ExportTable',
    'build_export_table',
    'compose',
    'compose_into',
    'composite_name',
    'ImportEntry',
    'Imports',
    'apply_imports',
    'get_imports',
    'split_composite',
    'DocumentLoader',
]
