"""Tests for XPath queries."""

import io

import pytest

from xq.query.xpath import parse_document, string_value, xpath_query, xpath_query_string
from xq.shared.colors import ColorMode
from xq.shared.errors import ParseError, QueryError

ITEMS = '<root><item id="1">a</item><item id="2"> b </item></root>'


class TestXPathQuery:
    """Test evaluation and printing of XPath results."""

    def test_node_set_prints_string_values(self):
        """Test that matched elements print their trimmed text."""
        assert xpath_query_string(ITEMS, "//item") == "a\nb\n"

    def test_single_node(self):
        """Test that single mode prints the first match only."""
        assert xpath_query_string(ITEMS, "//item", single=True) == "a\n"

    def test_number(self):
        """Test that numbers print without decimals."""
        assert xpath_query_string(ITEMS, "count(//item)") == "2\n"

    def test_string(self):
        """Test string results."""
        assert xpath_query_string(ITEMS, "string(//item[2])") == "b\n"

    def test_boolean(self):
        """Test boolean results."""
        assert xpath_query_string(ITEMS, "boolean(//missing)") == "false\n"

    def test_attributes(self):
        """Test attribute node results."""
        assert xpath_query_string(ITEMS, "//item/@id") == "1\n2\n"

    def test_no_match(self):
        """Test that an empty node set prints nothing."""
        assert xpath_query_string(ITEMS, "//missing") == ""

    def test_with_tags(self):
        """Test that elements are printed as formatted markup."""
        source = "<root><item><b>x</b></item></root>"
        assert xpath_query_string(source, "//item", with_tags=True) == (
            "<item>\n  <b>x</b>\n</item>\n"
        )

    def test_with_tags_indent(self):
        """Test the indentation of printed markup."""
        source = "<root><item><b>x</b></item></root>"
        assert xpath_query_string(source, "//item", with_tags=True, indent="\t") == (
            "<item>\n\t<b>x</b>\n</item>\n"
        )

    def test_namespaced_query(self):
        """Test that document prefixes can be used in expressions."""
        source = '<r xmlns:x="urn:x"><x:i>v</x:i></r>'
        assert xpath_query_string(source, "//x:i") == "v\n"
        assert xpath_query_string(source, "//x:i", with_tags=True) == '<x:i xmlns:x="urn:x">v</x:i>\n'

    def test_declared_charset(self):
        """Test that byte input honours its encoding declaration."""
        source = '<?xml version="1.0" encoding="ISO-8859-1"?><a>café</a>'.encode("latin-1")
        assert xpath_query_string(source, "/a") == "café\n"

    def test_returns_match_count(self):
        """Test the return value."""
        out = io.StringIO()
        assert xpath_query(ITEMS, out, "//item", colors=ColorMode.DISABLED) == 2

    def test_invalid_expression(self):
        """Test that syntax errors become query errors."""
        with pytest.raises(QueryError, match="XPath error"):
            xpath_query_string(ITEMS, "//[")

    def test_expression_with_control_character(self):
        """Test that strings lxml rejects become query errors."""
        with pytest.raises(QueryError, match="XPath error"):
            xpath_query_string(ITEMS, "//item\x00")

    def test_undefined_prefix(self):
        """Test evaluation errors."""
        with pytest.raises(QueryError):
            xpath_query_string(ITEMS, "//y:item")


class TestParseDocument:
    """Test document loading for XPath."""

    def test_recovers_sloppy_markup(self):
        """Test that unclosed elements are tolerated."""
        tree = parse_document("<root><a>1</root>")
        assert tree.getroot().tag == "root"

    def test_empty_document(self):
        """Test that a document without a root is rejected."""
        with pytest.raises(ParseError):
            parse_document("")


class TestStringValue:
    """Test result rendering."""

    def test_values(self):
        """Test scalar rendering."""
        assert string_value(True) == "true"
        assert string_value(3.0) == "3"
        assert string_value("  x ") == "x"
