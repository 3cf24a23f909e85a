"""
Tests for the KDL reader: node structure, values, separators, spans, errors.
"""

import pytest
from tests.test_utils import N
from kdltemplate.frontend.parser import ParseError
from kdltemplate.frontend.transformer import parse_number, unescape_string
from kdltemplate.shared.nodes import Entry
from kdltemplate.shared.span import Span


class TestNodeStructure:
    """Names, entries and children blocks"""

    def test_arguments_properties_and_children(self, parser):
        doc = parser.parse('a 1 "x" k=2 {\n    b\n}\n', "f")
        assert doc.nodes == (N("a", 1, "x", k=2, children=[N("b")]),)

    def test_no_block_vs_empty_block(self, parser):
        doc = parser.parse("a\nb {}\n", "f")
        assert doc.nodes[0].children is None
        assert doc.nodes[1].children == ()

    def test_quoted_node_name(self, parser):
        doc = parser.parse('"A/t" 1', "f")
        assert doc.nodes[0].name == "A/t"

    def test_quoted_property_key(self, parser):
        doc = parser.parse('a "my key"=1', "f")
        assert doc.nodes[0].entries == (Entry(1, "my key"),)

    def test_entry_order_is_kept(self, parser):
        doc = parser.parse('a k=1 "x" j=2 3', "f")
        assert [e.name for e in doc.nodes[0].entries] == ["k", None, "j", None]

    def test_document_keeps_file_id_and_source(self, parser):
        doc = parser.parse("a", "widgets")
        assert doc.file_id == "widgets"
        assert doc.source == "a"

    def test_empty_document(self, parser):
        assert len(parser.parse("", "f")) == 0
        assert len(parser.parse("\n\n  // only a comment\n", "f")) == 0


class TestValues:
    """Scalar literals"""

    def test_booleans_and_null(self, parser):
        doc = parser.parse("a true false null", "f")
        assert [e.value for e in doc.nodes[0].entries] == [True, False, None]

    def test_numbers(self, parser):
        doc = parser.parse("a 1 -2 2.5 1e3 0x1F 0o17 0b101 1_000", "f")
        assert [e.value for e in doc.nodes[0].entries] == [1, -2, 2.5, 1000.0, 31, 15, 5, 1000]

    def test_parse_number_types(self):
        assert isinstance(parse_number("3"), int)
        assert isinstance(parse_number("3.0"), float)
        assert parse_number("-0x10") == -16

    def test_string_escapes(self, parser):
        doc = parser.parse(r'a "q\"x" "l1\nl2" "\u{41}"', "f")
        assert [e.value for e in doc.nodes[0].entries] == ['q"x', "l1\nl2", "A"]

    def test_unescape_string(self):
        assert unescape_string(r'"a\tb\\c"') == "a\tb\\c"


class TestSeparatorsAndComments:
    """Newlines, semicolons and comments"""

    def test_semicolons(self, parser):
        doc = parser.parse("a; b; c", "f")
        assert [n.name for n in doc.nodes] == ["a", "b", "c"]

    def test_semicolons_inside_children(self, parser):
        doc = parser.parse("a { b; c }", "f")
        assert doc.nodes[0].children == (N("b"), N("c"))

    def test_comments(self, parser):
        source = "// header\na /* inline */ 1 // trailing\n/* block\n comment */\nb\n"
        doc = parser.parse(source, "f")
        assert doc.nodes == (N("a", 1), N("b"))

    def test_blank_lines_and_indentation(self, parser):
        source = """
        a {

            b


        }

        c
        """
        doc = parser.parse(source, "f")
        assert doc.nodes == (N("a", children=[N("b")]), N("c"))


class TestSpans:
    """Spans are offsets into the source"""

    def test_node_and_entry_spans(self, parser):
        doc = parser.parse('foo "bar"', "f")
        node = doc.nodes[0]
        assert node.span == Span(0, 9, "f")
        assert node.entries[0].span == Span(4, 5, "f")

    def test_property_span_covers_key_and_value(self, parser):
        doc = parser.parse("a key=12", "f")
        assert doc.nodes[0].entries[0].span == Span(2, 6, "f")

    def test_spans_do_not_affect_equality(self, parser):
        first = parser.parse("a 1", "f").nodes[0]
        second = parser.parse("\n\n   a    1", "g").nodes[0]
        assert first == second
        assert first.span != second.span


class TestParseErrors:
    """Malformed text raises ParseError"""

    def test_unclosed_block(self, parser):
        with pytest.raises(ParseError) as exc_info:
            parser.parse("a {", "broken")
        assert exc_info.value.file_id == "broken"
        assert "broken" in str(exc_info.value)

    def test_unexpected_character(self, parser):
        with pytest.raises(ParseError) as exc_info:
            parser.parse("a @", "broken")
        assert exc_info.value.span is not None
        assert exc_info.value.span.offset == 2

    def test_bare_identifier_value_is_rejected(self, parser):
        with pytest.raises(ParseError):
            parser.parse("a b c", "broken")
