"""Tests for content sniffing."""

import io

import pytest

from xq.api.detection import ContentType, detect_format, is_html, is_json


class TestSniffing:
    """Test the classification helpers."""

    @pytest.mark.parametrize("head", ['{"a"', "  [1,", "\n\t{"])
    def test_json_heads(self, head):
        """Test object and array openings after whitespace."""
        assert is_json(head)

    def test_json_must_open_the_document(self):
        """Test that a brace later in the text does not count."""
        assert not is_json("<a>{</a>")

    @pytest.mark.parametrize("head", ["<!DOCTYPE h", "<HTML>", "<body>", b"<html lang"])
    def test_html_heads(self, head):
        """Test the HTML markers, case-insensitively."""
        assert is_html(head)

    def test_xml_is_not_html(self):
        """Test a plain XML head."""
        assert not is_html('<?xml vers')


class TestDetectFormat:
    """Test stream classification."""

    def test_xml(self):
        """Test that markup without HTML markers is XML."""
        content_type, _ = detect_format(io.StringIO("<root><a/></root>"))
        assert content_type is ContentType.XML

    def test_html(self):
        """Test an HTML document."""
        content_type, _ = detect_format(io.StringIO("<!DOCTYPE html><html></html>"))
        assert content_type is ContentType.HTML

    def test_json_with_bom(self):
        """Test that a byte order mark is skipped while sniffing."""
        content_type, _ = detect_format(io.BytesIO(b"\xef\xbb\xbf{}"))
        assert content_type is ContentType.JSON

    def test_empty_input(self):
        """Test that empty input is plain text."""
        content_type, _ = detect_format(io.StringIO(""))
        assert content_type is ContentType.TEXT

    def test_forced_html(self):
        """Test that forcing HTML skips sniffing."""
        content_type, _ = detect_format(io.StringIO('{"a": 1}'), force_html=True)
        assert content_type is ContentType.HTML

    def test_reader_replays_sniffed_bytes(self):
        """Test that nothing is lost to sniffing."""
        source = "<root>" + "x" * 100 + "</root>"
        _, reader = detect_format(io.StringIO(source))
        assert reader.read() == source
