"""Charset detection for incoming documents.

Detection runs as a short cascade: byte order mark, then the encoding named
in an XML declaration, then UTF-8.
"""

import codecs
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from xq.shared.errors import ParseError

DECLARATION_SCAN_LIMIT = 1024
FALLBACK_ENCODING = "utf-8"

# Documents declaring utf-16 are routinely re-saved as utf-8 without touching
# the declaration, so the name is treated as utf-8.
CHARSET_OVERRIDES = {
    "utf-16": "utf-8",
    "utf16": "utf-8",
}


class DetectionMethod(Enum):
    """Which step of the cascade settled the encoding."""
    BOM = "bom"
    XML_DECLARATION = "xml_declaration"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class EncodingResult:
    """Codec chosen for a document.

    Attributes:
        encoding: Python codec name
        method: Step of the cascade that chose it
        bom_length: Leading bytes to skip before decoding
    """
    encoding: str
    method: DetectionMethod
    bom_length: int = 0


class BOMDetector:
    """Recognizes the byte order marks of UTF-8, UTF-16 and UTF-32."""

    # Longest marks first: the UTF-32 LE mark starts with the UTF-16 LE one
    MARKS: Tuple[Tuple[bytes, str], ...] = (
        (codecs.BOM_UTF32_LE, "utf-32-le"),
        (codecs.BOM_UTF32_BE, "utf-32-be"),
        (codecs.BOM_UTF8, "utf-8"),
        (codecs.BOM_UTF16_LE, "utf-16-le"),
        (codecs.BOM_UTF16_BE, "utf-16-be"),
    )

    def detect(self, data: bytes) -> Optional[EncodingResult]:
        """Return the encoding announced by a leading mark, or None."""
        for mark, encoding in self.MARKS:
            if data.startswith(mark):
                return EncodingResult(encoding, DetectionMethod.BOM, len(mark))
        return None


class XMLDeclarationParser:
    """Reads the ``encoding`` pseudo-attribute of an ``<?xml ...?>`` declaration."""

    DECLARATION = re.compile(
        rb"""<\?xml\s[^>]*?\bencoding\s*=\s*(?:"([^"]*)"|'([^']*)')""",
        re.IGNORECASE,
    )

    def declared_name(self, data: bytes) -> Optional[str]:
        """Return the charset label as written in the declaration, if any."""
        match = self.DECLARATION.search(data[:DECLARATION_SCAN_LIMIT])
        if match is None:
            return None
        raw = match.group(1) if match.group(1) is not None else match.group(2)
        return raw.decode("ascii", errors="ignore").strip()

    def parse_declaration(self, data: bytes) -> Optional[EncodingResult]:
        """Resolve the declared charset to a codec.

        Raises:
            ParseError: If the declared charset is unknown
        """
        label = self.declared_name(data)
        if label is None:
            return None
        return EncodingResult(resolve_charset(label), DetectionMethod.XML_DECLARATION)


def resolve_charset(name: str) -> str:
    """Map a declared charset label to a Python codec name.

    Raises:
        ParseError: If no codec is registered for ``name``
    """
    label = name.strip().lower()
    label = CHARSET_OVERRIDES.get(label, label)
    try:
        return codecs.lookup(label).name
    except LookupError as e:
        raise ParseError(f"unsupported charset: {name!r}") from e


class EncodingDetector:
    """Cascading charset detection: BOM, XML declaration, UTF-8 fallback."""

    def __init__(self) -> None:
        self.marks = BOMDetector()
        self.declarations = XMLDeclarationParser()

    def detect(self, data: bytes, declarations: bool = True) -> EncodingResult:
        """Choose the codec for a document from its leading bytes.

        Args:
            data: Leading bytes of the document
            declarations: Whether to honour an ``<?xml encoding=...?>`` declaration
        """
        result = self.marks.detect(data)
        if result is None and declarations:
            result = self.declarations.parse_declaration(data)
        if result is None:
            result = EncodingResult(FALLBACK_ENCODING, DetectionMethod.FALLBACK)
        return result
