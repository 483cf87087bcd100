"""JSON re-emitter.

Separators are chosen from the tokenizer's position after each token: a key
is followed by the colon separator, a value inside a container by a comma
and a line break. Numbers are written in their source spelling.
"""

import json
from typing import Iterable, Optional, TextIO

from xq.character.stream import Source, iter_text_chunks
from xq.shared.colors import ColorMode, Palette, resolve_palette
from xq.shared.logging import get_logger
from xq.tokenization.json_tokenizer import JSONTokenizer
from xq.tokenization.tokens import (
    JSONDelimiter,
    JSONLiteral,
    JSONNumber,
    JSONPosition,
    JSONString,
    JSONToken,
)


class JSONFormatter:
    """Re-indents a JSON token stream.

    Args:
        writer: Destination text stream
        indent: Indentation unit; empty keeps everything on one line
        palette: Colors for delimiters, keys and values
        compact: Use ``:`` instead of ``": "`` between keys and values
    """

    def __init__(
        self,
        writer: TextIO,
        indent: str = "  ",
        palette: Optional[Palette] = None,
        compact: bool = False,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.writer = writer
        self.indent = indent
        self.newline = "\n" if indent else ""
        self.palette = palette or Palette.plain()
        self.colon = ":" if compact else ": "
        self.logger = get_logger(__name__, correlation_id, "json_formatter")
        self.depth = 0
        self._prefix = ""
        self._just_opened = False

    def format(self, tokens: Iterable[JSONToken]) -> None:
        for token in tokens:
            self.feed(token)
        self.finish()

    def feed(self, token: JSONToken) -> None:
        if isinstance(token, JSONDelimiter):
            if token.opens:
                self._write_open(token)
            else:
                self._write_close(token)
        else:
            self._write_scalar(token)
            self._just_opened = False

        self._prefix = self._separator(token.position)

    def finish(self) -> None:
        self.writer.write("\n")

    def _write_open(self, token: JSONDelimiter) -> None:
        self.writer.write(self._prefix + self.palette.tag(token.char))
        self.depth += 1
        self._just_opened = True

    def _write_close(self, token: JSONDelimiter) -> None:
        self.depth -= 1
        if self._just_opened:
            self.writer.write(self.palette.tag(token.char))
        else:
            self.writer.write(self.newline + self.indent * self.depth + self.palette.tag(token.char))
        self._just_opened = False

    def _write_scalar(self, token: JSONToken) -> None:
        if isinstance(token, JSONString):
            text = json.dumps(token.value, ensure_ascii=False)
            rendered = self.palette.key(text) if token.is_key else self.palette.value(text)
        elif isinstance(token, JSONNumber):
            rendered = self.palette.value(token.lexeme)
        elif isinstance(token, JSONLiteral):
            rendered = self.palette.value(token.lexeme)
        else:
            raise TypeError(f"unexpected JSON token: {token!r}")
        self.writer.write(self._prefix + rendered)

    def _separator(self, position: JSONPosition) -> str:
        if position is JSONPosition.OBJECT_COLON:
            return self.colon
        if position in (JSONPosition.OBJECT_COMMA, JSONPosition.ARRAY_COMMA):
            return "," + self.newline + self.indent * self.depth
        if position in (JSONPosition.OBJECT_START, JSONPosition.ARRAY_START):
            return self.newline + self.indent * self.depth
        # Between top-level values of a JSON stream
        return "\n"


def format_json(
    source: Source,
    writer: TextIO,
    indent: str = "  ",
    colors: ColorMode = ColorMode.DEFAULT,
    compact: bool = False,
    correlation_id: Optional[str] = None,
) -> None:
    """Pretty-print a JSON document or stream of JSON values.

    Raises:
        ParseError: If the input is not valid JSON
    """
    formatter = JSONFormatter(
        writer, indent, resolve_palette(colors, writer), compact, correlation_id
    )
    tokenizer = JSONTokenizer(correlation_id=correlation_id)
    formatter.format(tokenizer.tokenize(iter_text_chunks(source, declarations=False)))
