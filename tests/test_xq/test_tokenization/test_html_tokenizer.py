"""Tests for the HTML token source."""

from xq.tokenization.html_tokenizer import VOID_ELEMENTS, HTMLTokenizer, tokenize_html
from xq.tokenization.tokens import (
    Attribute,
    Comment,
    Doctype,
    EndTag,
    ProcessingInstruction,
    QName,
    StartTag,
    Text,
)


def tokens_of(*chunks):
    return list(tokenize_html(chunks))


class TestHTMLTokenizer:
    """Test mapping of parser callbacks onto tokens."""

    def test_doctype(self):
        """Test that the doctype keyword is stripped."""
        assert tokens_of("<!DOCTYPE html>")[0] == Doctype("html")

    def test_elements_and_entities(self):
        """Test tags, attributes and resolved character references."""
        assert tokens_of('<p class="x">a &amp; b</p>') == [
            StartTag(QName("", "p"), (Attribute(QName("", "class"), "x"),)),
            Text("a & b"),
            EndTag(QName("", "p")),
        ]

    def test_self_closing_flag(self):
        """Test explicit self-closing syntax."""
        assert tokens_of("<br/>") == [StartTag(QName("", "br"), self_closing=True)]

    def test_valueless_attribute(self):
        """Test that a bare attribute gets an empty value."""
        assert tokens_of("<input disabled>")[0].attributes == (
            Attribute(QName("", "disabled"), ""),
        )

    def test_comment(self):
        """Test comments."""
        assert tokens_of("<!-- note -->") == [Comment(" note ")]

    def test_processing_instruction(self):
        """Test that a PI body is kept raw."""
        assert tokens_of("<?php echo 1 ?>") == [ProcessingInstruction("", "php echo 1 ?")]

    def test_text_coalesced_across_chunks(self):
        """Test that split text forms one token."""
        assert tokens_of("<p>hel", "lo wor", "ld</p>")[1] == Text("hello world")

    def test_feed_holds_back_open_text(self):
        """Test that text is only emitted once it is complete."""
        tokenizer = HTMLTokenizer()
        assert tokenizer.feed("<p>abc") == [StartTag(QName("", "p"))]
        assert tokenizer.close() == [Text("abc")]

    def test_void_elements(self):
        """Test the void element set."""
        assert {"br", "img", "input", "meta", "link", "hr"} <= VOID_ELEMENTS
        assert "div" not in VOID_ELEMENTS
