"""
Source Span

Offsets into the source text of a document, plus the value/span pair used as
the unit of error reporting.
"""

from dataclasses import dataclass
from typing import Any, Tuple

from ..utils.config import DEFAULT_FILE_ID


@dataclass(frozen=True)
class Span:
    """
    Region of a source document.

    `offset` and `size` index into the document's source string. `file` is
    the file id of the document, so diagnostics raised while expanding an
    imported template point into the file that declared it.
    Immutable (frozen) for hashability.
    """
    offset: int = 0
    size: int = 0
    file: str = DEFAULT_FILE_ID

    @property
    def end(self) -> int:
        return self.offset + self.size

    def join(self, other: "Span") -> "Span":
        """Smallest span covering both spans (same file assumed)."""
        start = min(self.offset, other.offset)
        end = max(self.end, other.end)
        return Span(start, end - start, self.file)

    def locate(self, source: str) -> Tuple[int, int, int, int]:
        """
        Convert to 1-based (line, column, end_line, end_column) in `source`.

        end_column is exclusive, matching the caret underline width.
        """
        line, column = _line_col(source, self.offset)
        end_line, end_column = _line_col(source, self.end)
        return line, column, end_line, end_column

    def __str__(self) -> str:
        return f"{self.file}:{self.offset}..{self.end}"


NO_SPAN = Span()


def _line_col(source: str, offset: int) -> Tuple[int, int]:
    offset = max(0, min(offset, len(source)))
    line = source.count("\n", 0, offset) + 1
    line_start = source.rfind("\n", 0, offset) + 1
    return line, offset - line_start + 1


@dataclass(frozen=True)
class SpanValue:
    """A parsed scalar together with where it was written."""
    value: Any
    span: Span = NO_SPAN

    def __str__(self) -> str:
        return repr(self.value)
