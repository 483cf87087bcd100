"""Content sniffing on the first bytes of a document."""

import re
from enum import Enum
from typing import IO, Any, AnyStr, Tuple, Union

from xq.character.stream import SniffingReader
from xq.shared.logging import get_logger

SNIFF_SIZE = 10
HTML_MARKERS = ("html", "<!d", "<body")
_JSON_START = re.compile(r"\s*[{\[]")

logger = get_logger(__name__, component="format_detection")


class ContentType(Enum):
    """Input formats the formatters and converters understand."""
    XML = "xml"
    HTML = "html"
    JSON = "json"
    TEXT = "text"


def _as_text(head: Union[str, bytes]) -> str:
    if isinstance(head, bytes):
        head = head.decode("utf-8", errors="ignore")
    return head.lstrip("\ufeff")


def is_html(head: Union[str, bytes]) -> bool:
    """True when the leading text carries an HTML marker anywhere."""
    text = _as_text(head).lower()
    return any(marker in text for marker in HTML_MARKERS)


def is_json(head: Union[str, bytes]) -> bool:
    """True when the leading text opens an object or array after whitespace."""
    return _JSON_START.match(_as_text(head)) is not None


def detect_format(
    stream: IO[AnyStr],
    force_html: bool = False,
) -> Tuple[ContentType, SniffingReader[Any]]:
    """Classify a stream by its first bytes.

    The returned reader replays the sniffed bytes, so it must be used in
    place of ``stream`` afterwards.

    Args:
        stream: Readable text or binary stream
        force_html: Skip sniffing and report HTML

    Returns:
        Tuple of the detected content type and the reader to continue with
    """
    reader = stream if isinstance(stream, SniffingReader) else SniffingReader(stream)
    if force_html:
        return ContentType.HTML, reader

    head = reader.peek(SNIFF_SIZE)
    if not head:
        content_type = ContentType.TEXT
    elif is_json(head):
        content_type = ContentType.JSON
    elif is_html(head):
        content_type = ContentType.HTML
    else:
        content_type = ContentType.XML

    logger.debug("Detected content type", extra={"content_type": content_type.value})
    return content_type, reader
