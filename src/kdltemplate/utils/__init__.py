"""
kdltemplate utilities package
"""

from .config import (
    EXPAND_KEYWORD,
    EXPORT_KEYWORD,
    IMPORT_KEYWORD,
    FILE_SEPARATOR,
    DEFAULT_FILE_ID,
)
from .io_utils import read_source_file, file_id_for

__all__ = [
    "EXPAND_KEYWORD",
    "EXPORT_KEYWORD",
    "IMPORT_KEYWORD",
    "FILE_SEPARATOR",
    "DEFAULT_FILE_ID",
    "read_source_file",
    "file_id_for",
]
