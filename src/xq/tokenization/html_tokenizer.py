"""HTML token source built on the standard library ``html.parser``.

``HTMLParser`` already tolerates anything a browser would; this adapter only
maps its callbacks onto the shared markup token vocabulary and merges the
text fragments it reports piecemeal.
"""

from html.parser import HTMLParser
from typing import FrozenSet, Iterable, Iterator, List, Optional, Tuple

from xq.shared.logging import get_logger
from xq.tokenization.tokens import (
    Attribute,
    Comment,
    Directive,
    Doctype,
    EndTag,
    MarkupToken,
    ProcessingInstruction,
    QName,
    StartTag,
    Text,
)

DOCTYPE_KEYWORD = "doctype"

VOID_ELEMENTS: FrozenSet[str] = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "keygen", "link", "meta", "param", "source", "track", "wbr",
})


class HTMLTokenizer(HTMLParser):
    """Incremental HTML tokenizer producing markup tokens."""

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        super().__init__(convert_charrefs=True)
        self.logger = get_logger(__name__, correlation_id, "html_tokenizer")
        self._tokens: List[MarkupToken] = []
        self._text: List[str] = []

    def feed(self, data: str) -> List[MarkupToken]:  # type: ignore[override]
        """Consume a chunk of HTML and return the tokens it completed."""
        super().feed(data)
        return self._drain()

    def close(self) -> List[MarkupToken]:  # type: ignore[override]
        """Flush buffered input and return the remaining tokens."""
        super().close()
        self._flush_text()
        return self._drain()

    def tokenize(self, chunks: Iterable[str]) -> Iterator[MarkupToken]:
        for chunk in chunks:
            yield from self.feed(chunk)
        yield from self.close()

    def _drain(self) -> List[MarkupToken]:
        # Text stays buffered: the next callback may still extend it
        tokens, self._tokens = self._tokens, []
        return tokens

    def _emit(self, token: MarkupToken) -> None:
        self._flush_text()
        self._tokens.append(token)

    def _flush_text(self) -> None:
        if self._text:
            self._tokens.append(Text("".join(self._text)))
            self._text = []

    @staticmethod
    def _attributes(attrs: List[Tuple[str, Optional[str]]]) -> Tuple[Attribute, ...]:
        return tuple(
            Attribute(QName("", name), value if value is not None else "")
            for name, value in attrs
        )

    def handle_starttag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        self._emit(StartTag(QName("", tag), self._attributes(attrs)))

    def handle_startendtag(self, tag: str, attrs: List[Tuple[str, Optional[str]]]) -> None:
        self._emit(StartTag(QName("", tag), self._attributes(attrs), self_closing=True))

    def handle_endtag(self, tag: str) -> None:
        self._emit(EndTag(QName("", tag)))

    def handle_data(self, data: str) -> None:
        if data:
            self._text.append(data)

    def handle_comment(self, data: str) -> None:
        self._emit(Comment(data))

    def handle_decl(self, decl: str) -> None:
        if decl[:len(DOCTYPE_KEYWORD)].lower() == DOCTYPE_KEYWORD:
            self._emit(Doctype(decl[len(DOCTYPE_KEYWORD):].strip()))
        else:
            self._emit(Directive(decl))

    def handle_pi(self, data: str) -> None:
        self._emit(ProcessingInstruction("", data))

    def unknown_decl(self, data: str) -> None:
        self.logger.debug("Keeping unknown declaration verbatim", extra={"declaration": data})
        closer = "]]" if data.upper().startswith("CDATA[") else "]"
        self._emit(Directive(f"[{data}{closer}"))


def tokenize_html(chunks: Iterable[str]) -> Iterator[MarkupToken]:
    """Tokenize HTML text chunks with a fresh tokenizer."""
    return HTMLTokenizer().tokenize(chunks)
