"""
Configuration constants to replace magic strings throughout kdltemplate
"""

import os
import tempfile

# Reserved node names
EXPAND_KEYWORD = "expand"   # splice marker / expand tparameter declaration
EXPORT_KEYWORD = "export"   # terminal node of a definitions-only document
IMPORT_KEYWORD = "import"   # optional first node listing required templates

# Composite names: "<file-id>/<template>"
FILE_SEPARATOR = "/"

# Identifier used for documents read without an explicit file id
DEFAULT_FILE_ID = "<input>"

# Parser configuration constants (cache under temp dir to avoid cluttering project root)
DEFAULT_PARSER_CACHE_FILE = os.path.join(tempfile.gettempdir(), "kdltemplate_parser.cache")

# File encoding constants
DEFAULT_FILE_ENCODING = "utf-8"

# Environment variables
COLOR_ENV_VAR = "KDLTEMPLATE_COLOR"
NO_COLOR_ENV_VAR = "NO_COLOR"

# Literal spellings used by the reader and the renderer
BOOLEAN_TRUE_LITERAL = "true"
BOOLEAN_FALSE_LITERAL = "false"
NULL_LITERAL = "null"

# Rendering
DEFAULT_INDENT = "    "

# Documents on disk
KDL_FILE_EXTENSION = ".kdl"
