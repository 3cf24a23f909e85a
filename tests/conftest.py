"""
Pytest configuration and shared fixtures for all kdltemplate tests.

The lark parser is the only expensive object; it is built once per session
and shared (it is stateless between parses).
"""

import sys
import pytest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from kdltemplate.compiler.driver import TemplateDriver
from kdltemplate.frontend.parser import Parser


# =============================================================================
# Session-scoped fixtures (shared across all tests)
# =============================================================================

@pytest.fixture(scope="session")
def session_parser():
    """Session-scoped parser; grammar loading happens once, with lark's cache."""
    return Parser()


@pytest.fixture(scope="session")
def session_driver(session_parser):
    """Session-scoped driver reusing the session parser."""
    return TemplateDriver(parser=session_parser)


# =============================================================================
# Class-scoped fixtures
# =============================================================================

@pytest.fixture(scope="class")
def parser(session_parser):
    """Class-scoped parser - returns session parser (stateless, safe to share)."""
    return session_parser


@pytest.fixture(scope="class")
def driver(session_driver):
    """Class-scoped driver - returns session driver (stateless, safe to share)."""
    return session_driver
