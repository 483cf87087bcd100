"""Character stream helpers.

Inputs arrive as ``str``, ``bytes`` or file objects in text or binary mode.
These helpers turn any of them into lazily decoded text chunks, and let the
format sniffer look at the first bytes without losing them.
"""

import codecs
import io
from typing import IO, Any, AnyStr, Generic, Iterator, Optional, Union

from xq.character.encoding import EncodingDetector
from xq.shared.logging import get_logger

DEFAULT_CHUNK_SIZE = 64 * 1024

Source = Union[str, bytes, bytearray, IO[Any]]

logger = get_logger(__name__, component="character_stream")


class SniffingReader(Generic[AnyStr]):
    """File-like wrapper that can peek at leading data and replay it.

    Works over binary and text streams alike; ``peek`` never consumes.
    """

    def __init__(self, stream: IO[AnyStr]) -> None:
        self._stream = stream
        self._head: Optional[AnyStr] = None

    def peek(self, size: int) -> AnyStr:
        """Return up to ``size`` leading items without consuming them."""
        head = self._stream.read(size) if self._head is None else self._head
        while len(head) < size:
            chunk = self._stream.read(size - len(head))
            if not chunk:
                break
            head += chunk
        self._head = head
        return head[:size]

    def read(self, size: int = -1) -> AnyStr:
        if self._head is None:
            return self._stream.read(size)

        head, self._head = self._head, None
        if size is None or size < 0:
            return head + self._stream.read()
        if len(head) > size:
            self._head = head[size:]
            return head[:size]
        return head

    def readable(self) -> bool:
        return True

    def close(self) -> None:
        self._stream.close()

    @property
    def is_binary(self) -> bool:
        if self._head is not None:
            return isinstance(self._head, bytes)
        return not isinstance(self._stream, io.TextIOBase)


def iter_text_chunks(
    source: Source,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    declarations: bool = True,
) -> Iterator[str]:
    """Yield the document as decoded text, one chunk at a time.

    Args:
        source: Document as text, bytes or a readable file object
        chunk_size: Read size for file objects
        declarations: Honour an XML encoding declaration when decoding bytes

    Returns:
        Iterator over non-empty text chunks
    """
    if isinstance(source, str):
        for start in range(0, len(source), chunk_size):
            yield source[start:start + chunk_size]
        return

    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(bytes(source))

    first = source.read(chunk_size)
    if isinstance(first, str):
        while first:
            yield first
            first = source.read(chunk_size)
        return

    detection = EncodingDetector().detect(first, declarations=declarations)
    logger.debug(
        "Decoding document",
        extra={"encoding": detection.encoding, "method": detection.method.value},
    )
    decoder = codecs.getincrementaldecoder(detection.encoding)(errors="replace")

    chunk = first[detection.bom_length:]
    while True:
        text = decoder.decode(chunk)
        if text:
            yield text
        chunk = source.read(chunk_size)
        if not chunk:
            break

    tail = decoder.decode(b"", final=True)
    if tail:
        yield tail


def read_document(source: Source) -> Union[str, bytes]:
    """Read a whole document, keeping bytes undecoded for parsers that sniff charsets."""
    if isinstance(source, (str, bytes)):
        return source
    if isinstance(source, bytearray):
        return bytes(source)
    return source.read()
