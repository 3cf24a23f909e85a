"""
File I/O helpers.

- Single place for encoding
- Maps file paths to the file ids used in composite template names
"""

from pathlib import Path
from typing import Union

from .config import DEFAULT_FILE_ENCODING, KDL_FILE_EXTENSION


def read_source_file(path: Union[Path, str]) -> str:
    """Read source file with standard encoding."""
    p = Path(path) if not isinstance(path, Path) else path
    return p.read_text(encoding=DEFAULT_FILE_ENCODING)


def file_id_for(path: Union[Path, str]) -> str:
    """File id of a document on disk: its name without the .kdl extension."""
    p = Path(path)
    return p.stem if p.suffix == KDL_FILE_EXTENSION else p.name
