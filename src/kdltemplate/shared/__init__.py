"""
Shared components: document tree, spans, scopes and diagnostics.
"""

from .span import Span, SpanValue, NO_SPAN
from .nodes import Scalar, Entry, Node, Document
from .scope import Scope, ScopeKind, Binding, BindingType, ScopeRedefinitionError
from .errors import (
    Error,
    ErrorKind,
    ErrorReporter,
    KdlTemplateError,
    ExpansionError,
    ImplementationError,
)
