"""
Error Reporting

Diagnostics for template declaration, call and composition errors, rendered
rustc style with a source snippet when the source text is known.
"""

import os
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional

from .span import Span
from ..utils.config import COLOR_ENV_VAR, NO_COLOR_ENV_VAR


# ---------------------------------------------------------------------------
# ANSI color helpers (disabled when NO_COLOR is set or not a TTY)
# ---------------------------------------------------------------------------

def _use_color() -> bool:
    if os.environ.get(NO_COLOR_ENV_VAR):
        return False
    explicit = os.environ.get(COLOR_ENV_VAR, "").lower()
    if explicit in ("0", "false", "no", "never"):
        return False
    if explicit in ("1", "true", "yes", "always"):
        return True
    return sys.stderr.isatty()

_BOLD   = "\033[1m"
_RED    = "\033[31m"
_BLUE   = "\033[34m"
_CYAN   = "\033[36m"
_RESET  = "\033[0m"

def _style(text: str, *codes: str, color: bool = True) -> str:
    if not color:
        return text
    prefix = "".join(codes)
    return f"{prefix}{text}{_RESET}" if prefix else text


# ---------------------------------------------------------------------------
# Error kinds
# ---------------------------------------------------------------------------

class ErrorKind(Enum):
    """Closed set of diagnostics; the value is the error code."""
    MALFORMED_DECLARATION = "E0101"
    DUPLICATE_TPARAMETER_NAME = "E0102"
    MIXED_DECLARATION_STYLE = "E0103"
    UNKNOWN_TEMPLATE = "E0201"
    UNKNOWN_TPARAMETER_NAME = "E0202"
    UNKNOWN_TPARAMETER_REFERENCE = "E0203"
    TOO_MANY_ARGUMENTS = "E0301"
    TOO_FEW_ARGUMENTS = "E0302"
    ARGUMENT_KIND_MISMATCH = "E0303"
    EXPANSION_TOO_DEEP = "E0304"
    IMPORT_COLLISION = "E0401"
    IMPORT_CYCLE = "E0402"
    MISSING_IMPORT = "E0403"
    EMPTY_DOCUMENT = "E0501"
    NOT_A_DEFINITIONS_FILE = "E0502"
    NOT_A_BODY_FILE = "E0503"

    @property
    def code(self) -> str:
        return self.value

    @property
    def is_arity_mismatch(self) -> bool:
        return self in (ErrorKind.TOO_MANY_ARGUMENTS, ErrorKind.TOO_FEW_ARGUMENTS)


# ---------------------------------------------------------------------------
# Error dataclass
# ---------------------------------------------------------------------------

@dataclass
class Error:
    """One diagnostic: what went wrong and where."""
    kind: ErrorKind
    message: str
    span: Optional[Span]
    help: Optional[str] = None
    note: Optional[str] = None
    label: Optional[str] = None

    @property
    def code(self) -> str:
        return self.kind.code

    def __str__(self) -> str:
        where = f" at {self.span}" if self.span is not None else ""
        return f"[{self.code}] {self.message}{where}"


# ---------------------------------------------------------------------------
# Formatting engine
# ---------------------------------------------------------------------------

def _format_diagnostic(
    error: Error,
    source_files: Dict[str, str],
    color: bool = False,
) -> str:
    """
    Render a single diagnostic in rustc style.

    Example output (plain, no color)::

        error[E0201]: template `Button` is not visible here
         --> ui.kdl:4:5
          |
        4 |     Button "ok"
          |     ^^^^^^^^^^^ declared later in this document
    """
    out: List[str] = []

    out.append(
        _style(f"error[{error.code}]", _BOLD, _RED, color=color)
        + _style(f": {error.message}", _BOLD, color=color)
    )

    if error.span is None:
        out.append(_style(" --> ", _BOLD, _BLUE, color=color) + "<unknown location>")
        _append_annotations(out, error, 1, color)
        return "\n".join(out)

    span = error.span
    source = source_files.get(span.file)
    if source is None:
        out.append(_style(" --> ", _BOLD, _BLUE, color=color) + str(span))
        _append_annotations(out, error, 1, color)
        return "\n".join(out)

    line, column, end_line, end_column = span.locate(source)
    src_lines = source.split("\n")
    gw = max(len(str(line)), 1)

    def gutter(text: str = "") -> str:
        return _style(text.rjust(gw) + " |", _BOLD, _BLUE, color=color)

    out.append(_style(" " * gw + "--> ", _BOLD, _BLUE, color=color) + f"{span.file}:{line}:{column}")
    out.append(gutter())

    code_line = src_lines[line - 1] if 0 < line <= len(src_lines) else ""
    out.append(f"{gutter(str(line))} {code_line}")

    # Multi-line spans are underlined to the end of their first line
    if end_line == line and end_column > column:
        width = end_column - column
    else:
        width = len(code_line) - column + 1
    carets = " " * (column - 1) + "^" * max(1, width)
    label_suffix = f" {error.label}" if error.label else ""
    out.append(f"{gutter()} {_style(carets + label_suffix, _BOLD, _RED, color=color)}")

    _append_annotations(out, error, gw, color)
    return "\n".join(out)


def _append_annotations(
    out: List[str],
    error: Error,
    gw: int,
    color: bool,
) -> None:
    if not (error.help or error.note):
        return
    out.append(_style(" " * (gw + 1) + "|", _BOLD, _BLUE, color=color))
    pad = " " * (gw + 1)
    if error.help:
        out.append(
            _style(f"{pad}= ", _BOLD, _CYAN, color=color)
            + _style("help: ", _BOLD, color=color)
            + error.help
        )
    if error.note:
        out.append(
            _style(f"{pad}= ", _BOLD, _CYAN, color=color)
            + _style("note: ", _BOLD, color=color)
            + error.note
        )


def _summary(count: int, color: bool) -> str:
    summary = f"aborting due to {count} previous error{'s' if count != 1 else ''}"
    return _style("error", _BOLD, _RED, color=color) + _style(f": {summary}", _BOLD, color=color)


# ---------------------------------------------------------------------------
# ErrorReporter
# ---------------------------------------------------------------------------

class ErrorReporter:
    """
    Accumulates diagnostics across a whole expansion pass.

    `source_files` maps file id to source text and is only used for
    rendering; errors are recorded whether or not the source is known.
    """

    def __init__(self, source_files: Optional[Dict[str, str]] = None):
        self.source_files: Dict[str, str] = dict(source_files or {})
        self.errors: List[Error] = []

    def add_source(self, file_id: str, source: Optional[str]) -> None:
        if source is not None:
            self.source_files[file_id] = source

    def report_error(
        self,
        kind: ErrorKind,
        message: str,
        span: Optional[Span],
        help: Optional[str] = None,
        note: Optional[str] = None,
        label: Optional[str] = None,
    ) -> Error:
        error = Error(kind=kind, message=message, span=span, help=help, note=note, label=label)
        self.errors.append(error)
        return error

    def extend(self, errors: Iterable[Error]) -> None:
        self.errors.extend(errors)

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def kinds(self) -> List[ErrorKind]:
        return [e.kind for e in self.errors]

    def format_error(self, error: Error, color: Optional[bool] = None) -> str:
        use_color = color if color is not None else _use_color()
        return _format_diagnostic(error, self.source_files, color=use_color)

    def format_all_errors(self, color: Optional[bool] = None) -> str:
        use_color = color if color is not None else _use_color()
        parts = [self.format_error(e, color=use_color) for e in self.errors]
        parts.append(_summary(len(self.errors), use_color))
        return "\n\n".join(parts)

    def print_errors(self) -> None:
        color = _use_color()
        for error in self.errors:
            print(self.format_error(error, color=color), file=sys.stderr)
        if self.errors:
            print(f"\n{_summary(len(self.errors), color)}", file=sys.stderr)


# ============================================================================
# Exception Classes
# ============================================================================

class KdlTemplateError(Exception):
    """Base exception for all kdltemplate errors"""


class ExpansionError(KdlTemplateError):
    """
    Raised by the convenience API when expansion reported diagnostics.

    Carries every diagnostic of the run, not only the first one.
    """
    def __init__(self, errors: List[Error], source_files: Optional[Dict[str, str]] = None):
        self.errors = list(errors)
        self.source_files = dict(source_files or {})
        first = self.errors[0].message if self.errors else "expansion failed"
        super().__init__(first)

    @property
    def kinds(self) -> List[ErrorKind]:
        return [e.kind for e in self.errors]

    def format(self, color: bool = False) -> str:
        reporter = ErrorReporter(self.source_files)
        reporter.extend(self.errors)
        return reporter.format_all_errors(color=color)

    def __str__(self) -> str:
        return self.format(color=False)


class ImplementationError(Exception):
    """
    Error in the Python implementation, never in a user's document.

    Use ExpansionError (via the reporter) for anything a document author can fix.
    """
    def __init__(self, message: str, error_code: str = "E9999"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code

    def __str__(self):
        return f"[{self.error_code}] {self.message}"
