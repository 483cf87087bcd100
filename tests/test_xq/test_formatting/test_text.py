"""Tests for whitespace and escaping helpers."""

from xq.formatting.text import (
    escape_attribute,
    escape_text_content,
    escape_xml_text,
    normalize_spaces,
    wrap_cdata,
)


class TestNormalizeSpaces:
    """Test re-indentation of text runs."""

    def test_whitespace_only_disappears(self):
        """Test blank text."""
        assert normalize_spaces("\n    \n  ", "  ", 2) == ""

    def test_plain_text_keeps_leading_spaces(self):
        """Test that only trailing spaces are dropped."""
        assert normalize_spaces(" text  ", "  ", 1) == " text"

    def test_leading_newline_reindented(self):
        """Test re-indenting a run that starts on a new line."""
        assert normalize_spaces("\n        text", "  ", 2) == "\n    text"

    def test_trailing_newline_reindented(self):
        """Test that the closing tag lines up with its parent."""
        assert normalize_spaces("text\n        ", "  ", 2) == "text\n  "

    def test_empty_indent_collapses(self):
        """Test single-line output."""
        assert normalize_spaces("\n    text\n  ", "", 2) == "text"


class TestEscaping:
    """Test escaping helpers."""

    def test_attribute(self):
        """Test every escaped attribute character."""
        assert escape_attribute("<a & \"b\" 'c'>\t\n\r") == (
            "&lt;a &amp; &quot;b&quot; &apos;c&apos;&gt;&#x9;&#xA;&#xD;"
        )

    def test_text_content(self):
        """Test HTML text escaping."""
        assert escape_text_content("a < b & c > d") == "a &lt; b &amp; c &gt; d"

    def test_cdata_splits_terminator(self):
        """Test that ']]>' cannot end the section early."""
        assert wrap_cdata("a]]>b") == "<![CDATA[a]]]]><![CDATA[>b]]>"

    def test_xml_text_untouched_without_specials(self):
        """Test that plain text is not wrapped."""
        assert escape_xml_text("a > b") == "a > b"

    def test_xml_text_wrapped_keeping_whitespace_outside(self):
        """Test CDATA protection around the stripped core."""
        assert escape_xml_text("\n  a & b\n") == "\n  <![CDATA[a & b]]>\n"
