"""Tests for charset detection."""

import pytest

from xq.character.encoding import (
    BOMDetector,
    DetectionMethod,
    EncodingDetector,
    XMLDeclarationParser,
    resolve_charset,
)
from xq.shared.errors import ParseError


class TestBOMDetector:
    """Test byte order mark detection."""

    @pytest.mark.parametrize("data,encoding,length", [
        (b"\xef\xbb\xbf<a/>", "utf-8", 3),
        (b"\xff\xfe<\x00", "utf-16-le", 2),
        (b"\xfe\xff\x00<", "utf-16-be", 2),
        (b"\xff\xfe\x00\x00<\x00\x00\x00", "utf-32-le", 4),
    ])
    def test_detects_bom(self, data, encoding, length):
        """Test each supported BOM."""
        result = BOMDetector().detect(data)
        assert result.encoding == encoding
        assert result.bom_length == length
        assert result.method is DetectionMethod.BOM

    def test_no_bom(self):
        """Test input without a BOM."""
        assert BOMDetector().detect(b"<a/>") is None
        assert BOMDetector().detect(b"") is None


class TestXMLDeclarationParser:
    """Test encoding declaration parsing."""

    def test_declared_name(self):
        """Test reading the encoding pseudo-attribute."""
        data = b'<?xml version="1.0" encoding="ISO-8859-1"?><a/>'
        assert XMLDeclarationParser().declared_name(data) == "ISO-8859-1"

    def test_single_quotes(self):
        """Test a single-quoted declaration."""
        data = b"<?xml version='1.0' encoding='windows-1252' ?>"
        assert XMLDeclarationParser().declared_name(data) == "windows-1252"

    def test_no_declaration(self):
        """Test a document without a declaration."""
        assert XMLDeclarationParser().parse_declaration(b"<a/>") is None


class TestResolveCharset:
    """Test charset label resolution."""

    def test_utf16_is_read_as_utf8(self):
        """Test the utf-16 override."""
        assert resolve_charset("UTF-16") == "utf-8"

    def test_latin1(self):
        """Test a label resolved through the codec registry."""
        assert resolve_charset("ISO-8859-1") == "iso8859-1"

    def test_unknown_charset(self):
        """Test that unknown labels are parse errors."""
        with pytest.raises(ParseError, match="unsupported charset"):
            resolve_charset("klingon-8")


class TestEncodingDetector:
    """Test the detection cascade."""

    def test_bom_wins(self):
        """Test that a BOM beats a declaration."""
        data = b'\xef\xbb\xbf<?xml version="1.0" encoding="latin-1"?>'
        assert EncodingDetector().detect(data).encoding == "utf-8"

    def test_declaration(self):
        """Test detection from the declaration."""
        result = EncodingDetector().detect(b'<?xml version="1.0" encoding="latin-1"?>')
        assert result.encoding == "iso8859-1"
        assert result.method is DetectionMethod.XML_DECLARATION

    def test_declarations_can_be_ignored(self):
        """Test that HTML input skips the declaration lookup."""
        result = EncodingDetector().detect(b'<?xml encoding="latin-1"?>', declarations=False)
        assert result.encoding == "utf-8"
        assert result.method is DetectionMethod.FALLBACK

    def test_fallback(self):
        """Test the UTF-8 default."""
        result = EncodingDetector().detect(b"<a/>")
        assert result.encoding == "utf-8"
        assert result.method is DetectionMethod.FALLBACK
