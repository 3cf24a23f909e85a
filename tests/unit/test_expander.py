"""
Tests for the expansion engine: name-position bindings, visibility,
error accumulation and partial output.
"""

import sys

from tests.test_utils import N, error_kinds, expand_ok, expand_source, parse_node
from kdltemplate.analysis.module_system import compose
from kdltemplate.compiler.driver import collect_exports
from kdltemplate.frontend.parser import parse_document
from kdltemplate.ir.serialization import to_kdl
from kdltemplate.passes.declarations import DeclarationCollector
from kdltemplate.passes.expander import Expander
from kdltemplate.shared.errors import ErrorKind, ErrorReporter
from kdltemplate.shared.scope import Scope


class TestPlainTrees:
    """Trees without templates come out unchanged"""

    def test_identity(self, driver):
        source = 'Root 1 "a" k=true { Child; Leaf null { Deep 2.5 } ; Empty {} }'
        assert expand_ok(source, driver) == parse_node(source)

    def test_idempotent_on_expanded_output(self, driver):
        source = """
        cell "v" { Cell value="v" }
        Table { cell 1; cell 2 }
        """
        once = expand_ok(source, driver)
        twice = expand_ok(to_kdl(once), driver)
        assert twice == once


class TestNamePosition:
    """Bindings used as node names"""

    def test_value_binding_renames_node(self, driver):
        node = expand_ok('wrap "tag" { tag "x" { inner } }\nwrap "div"', driver)
        assert node == N("div", "x", children=[N("inner")])

    def test_non_string_value_as_node_name(self, driver):
        result = expand_source('t "n" { n }\nt 5', driver)
        assert error_kinds(result) == [ErrorKind.ARGUMENT_KIND_MISMATCH]

    def test_node_binding_with_entries(self, driver):
        result = expand_source("t { p { D }; X { p 1 } }\nt", driver)
        assert error_kinds(result) == [ErrorKind.ARGUMENT_KIND_MISMATCH]

    def test_node_binding_in_entry_position(self, driver):
        result = expand_source('t { p { D }; X "p" }\nt', driver)
        assert error_kinds(result) == [ErrorKind.ARGUMENT_KIND_MISMATCH]

    def test_expand_binding_as_single_node(self, driver):
        result = expand_source('t { expand "xs" {}; Out { xs } }\nt', driver)
        assert error_kinds(result) == [ErrorKind.ARGUMENT_KIND_MISMATCH]

    def test_template_calls_inside_body(self, driver):
        source = """
        leaf "v" { Leaf "v" }
        branch "v" { Branch { leaf "v"; leaf 0 } }
        branch 1
        """
        assert expand_ok(source, driver) == parse_node("Branch { Leaf 1; Leaf 0 }")


class TestVisibility:
    """Forward and self references are UnknownTemplate"""

    def test_forward_reference(self, driver):
        result = expand_source("a { b }\nb { X }\na", driver)
        assert error_kinds(result) == [ErrorKind.UNKNOWN_TEMPLATE]
        assert result.node == N("b")

    def test_self_reference(self, driver):
        result = expand_source("a { Wrap { a } }\na", driver)
        assert error_kinds(result) == [ErrorKind.UNKNOWN_TEMPLATE]

    def test_body_named_like_its_template(self, driver):
        result = expand_source('Button "t" { Button label="t" }\nButton "ok"', driver)
        assert error_kinds(result) == [ErrorKind.UNKNOWN_TEMPLATE]

    def test_terminal_node_sees_all_declarations(self, driver):
        node = expand_ok("a { A }\nb { B }\nRoot { a; b }", driver)
        assert node == parse_node("Root { A; B }")

    def test_composite_name_without_import_is_data(self, driver):
        node = expand_ok('Root { "ui/button" 1 }', driver)
        assert node == N("Root", children=[N("ui/button", 1)])

    def test_missing_template_of_imported_document(self, driver):
        exports = collect_exports(parse_document('t { T }\nexport "t"', "lib"))
        scope = compose(Scope.root(), exports)
        result = expand_source('Root { "lib/t"; "lib/u" 1; "other/u" }', driver, scope=scope)
        assert error_kinds(result) == [ErrorKind.UNKNOWN_TEMPLATE]
        assert "`lib` exports no template named `u`" in result.errors[0].message
        assert result.node == parse_node('Root { T; "lib/u" 1; "other/u" }')

    def test_strings_naming_templates_are_not_substituted(self, driver):
        node = expand_ok('t { T }\nRoot "t" ref="t"', driver)
        assert node == N("Root", "t", ref="t")


class TestErrorAccumulation:
    """One run reports every problem and keeps going"""

    def test_sibling_errors_are_all_reported(self, driver):
        result = expand_source('t "x" { X "x" }\nRoot { t; t 1 2; t 3 }', driver)
        assert error_kinds(result) == [ErrorKind.TOO_FEW_ARGUMENTS, ErrorKind.TOO_MANY_ARGUMENTS]
        assert result.node == parse_node("Root { t; t 1 2; X 3 }")

    def test_arguments_of_a_failed_call_are_still_checked(self, driver):
        result = expand_source('t "a" { T "a" }\nRoot { t 1 2 { Inner { expand "nope" } } }', driver)
        assert error_kinds(result) == [
            ErrorKind.UNKNOWN_TPARAMETER_NAME,
            ErrorKind.TOO_MANY_ARGUMENTS,
            ErrorKind.UNKNOWN_TPARAMETER_REFERENCE,
        ]
        assert result.node == parse_node('Root { t 1 2 { Inner { expand "nope" } } }')

    def test_arguments_of_a_malformed_template_are_still_checked(self, driver):
        result = expand_source("t\na { b }\nb { B }\nRoot { t { p { a } } }", driver)
        assert error_kinds(result) == [ErrorKind.MALFORMED_DECLARATION, ErrorKind.UNKNOWN_TEMPLATE]

    def test_malformed_declaration_does_not_cascade(self, driver):
        result = expand_source("t\nRoot { t 1 }", driver)
        assert error_kinds(result) == [ErrorKind.MALFORMED_DECLARATION]
        assert result.node == parse_node("Root { t 1 }")

    def test_errors_carry_spans_into_source(self, driver):
        source = 't "x" { X "x" }\nRoot { t }'
        result = expand_source(source, driver, file_id="page")
        span = result.errors[0].span
        assert span.file == "page"
        assert source[span.offset:span.end] == "t"


class TestExpanderDirect:
    """Expander used without the driver"""

    def test_calls_are_counted(self):
        reporter = ErrorReporter()
        collected = DeclarationCollector(reporter).collect(parse_document("t { T }\nRoot { t; t; t }", "x"))
        expander = Expander(reporter)
        node = expander.expand_node(collected.body, collected.scope)
        assert node == parse_node("Root { T; T; T }")
        assert expander.calls_expanded == 3
        assert not reporter.has_errors()

    def test_unbound_composite_name_passes_through(self):
        reporter = ErrorReporter()
        node = N("Root", children=[N("x/y")])
        assert Expander(reporter).expand_node(node, Scope.root()) == node
        assert reporter.kinds() == []

    def test_expand_root_reports_deep_nesting(self):
        # Each level wraps the previous call, so the chain outgrows the recursion limit
        depth = sys.getrecursionlimit()
        lines = ["t0 { Leaf }"]
        lines += [f"t{i} {{ W{i} {{ t{i - 1} }} }}" for i in range(1, depth)]
        lines.append(f"Root {{ t{depth - 1} }}")
        reporter = ErrorReporter()
        collected = DeclarationCollector(reporter).collect(parse_document("\n".join(lines), "deep"))
        node = Expander(reporter).expand_root(collected.body, collected.scope)
        assert reporter.kinds() == [ErrorKind.EXPANSION_TOO_DEEP]
        assert node is collected.body
