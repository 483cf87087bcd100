"""Character layer: charset detection and lazily decoded text streams."""

from .encoding import (
    BOMDetector,
    DetectionMethod,
    EncodingDetector,
    EncodingResult,
    XMLDeclarationParser,
    resolve_charset,
)
from .stream import (
    DEFAULT_CHUNK_SIZE,
    SniffingReader,
    Source,
    iter_text_chunks,
    read_document,
)

__all__ = [
    "BOMDetector",
    "DetectionMethod",
    "EncodingDetector",
    "EncodingResult",
    "XMLDeclarationParser",
    "resolve_charset",
    "DEFAULT_CHUNK_SIZE",
    "SniffingReader",
    "Source",
    "iter_text_chunks",
    "read_document",
]
