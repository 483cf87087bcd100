"""Streaming JSON tokenizer.

The tokenizer exposes its position state with every token so that the JSON
re-emitter can decide separators from what the tokenizer expects next,
instead of tracking nesting on its own. Numbers are passed through as their
source lexeme.
"""

import json
import re
from typing import Iterable, Iterator, List, Optional

from xq.shared.errors import ParseError
from xq.shared.logging import get_logger
from xq.tokenization.tokens import (
    JSONDelimiter,
    JSONLiteral,
    JSONNumber,
    JSONPosition,
    JSONString,
    JSONToken,
)

_WHITESPACE = " \t\n\r"
_NUMBER = re.compile(r"-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")
_NUMBER_CHARS = frozenset("+-0123456789.eE")
LITERALS = {"true": True, "false": False, "null": None}

_VALUE_POSITIONS = frozenset({
    JSONPosition.TOP_VALUE,
    JSONPosition.ARRAY_START,
    JSONPosition.ARRAY_VALUE,
    JSONPosition.OBJECT_VALUE,
})


class JSONTokenizer:
    """Incremental JSON tokenizer tracking its position in the document."""

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        self.logger = get_logger(__name__, correlation_id, "json_tokenizer")
        self.position = JSONPosition.TOP_VALUE
        self._bracket_stack: List[str] = []
        self._buffer = ""
        self._line = 1
        self._string_resume = 0
        self._tokens: List[JSONToken] = []

    @property
    def depth(self) -> int:
        return len(self._bracket_stack)

    def feed(self, data: str) -> List[JSONToken]:
        """Consume a chunk of text and return the tokens it completed."""
        self._buffer += data
        self._scan(final=False)
        return self._drain()

    def close(self) -> List[JSONToken]:
        """Finish the stream.

        Raises:
            ParseError: If a value or container is left incomplete
        """
        self._scan(final=True)
        if self._bracket_stack or self.position is not JSONPosition.TOP_VALUE:
            raise ParseError("unexpected end of JSON input", self._line)
        return self._drain()

    def tokenize(self, chunks: Iterable[str]) -> Iterator[JSONToken]:
        for chunk in chunks:
            yield from self.feed(chunk)
        yield from self.close()

    def _drain(self) -> List[JSONToken]:
        tokens, self._tokens = self._tokens, []
        return tokens

    def _scan(self, final: bool) -> None:
        buf = self._buffer
        pos = 0
        length = len(buf)

        while True:
            while pos < length and buf[pos] in _WHITESPACE:
                if buf[pos] == "\n":
                    self._line += 1
                pos += 1
            if pos >= length:
                break

            new_pos = self._process_char(buf, pos, final)
            if new_pos is None:
                break
            pos = new_pos

        self._buffer = buf[pos:]

    def _error(self, char: str, context: str) -> ParseError:
        return ParseError(f"invalid character {char!r} {context}", self._line)

    def _process_char(self, buf: str, pos: int, final: bool) -> Optional[int]:
        char = buf[pos]
        position = self.position

        if position is JSONPosition.OBJECT_COLON:
            if char != ":":
                raise self._error(char, "after object key")
            self.position = JSONPosition.OBJECT_VALUE
            return pos + 1

        if position is JSONPosition.ARRAY_COMMA:
            if char == ",":
                self.position = JSONPosition.ARRAY_VALUE
                return pos + 1
            if char == "]":
                return self._close_container(char, pos)
            raise self._error(char, "after array element")

        if position is JSONPosition.OBJECT_COMMA:
            if char == ",":
                self.position = JSONPosition.OBJECT_KEY
                return pos + 1
            if char == "}":
                return self._close_container(char, pos)
            raise self._error(char, "after object key:value pair")

        if position is JSONPosition.OBJECT_START and char == "}":
            return self._close_container(char, pos)
        if position is JSONPosition.ARRAY_START and char == "]":
            return self._close_container(char, pos)

        if position in (JSONPosition.OBJECT_START, JSONPosition.OBJECT_KEY):
            if char != '"':
                raise self._error(char, "looking for beginning of object key string")
            return self._read_string(buf, pos, final, is_key=True)

        if position in _VALUE_POSITIONS:
            return self._read_value(buf, pos, final)

        raise self._error(char, "in unexpected position")

    def _read_value(self, buf: str, pos: int, final: bool) -> Optional[int]:
        char = buf[pos]
        if char in "{[":
            self._bracket_stack.append(char)
            self.position = (
                JSONPosition.OBJECT_START if char == "{" else JSONPosition.ARRAY_START
            )
            self._tokens.append(JSONDelimiter(char, self.position))
            return pos + 1
        if char == '"':
            return self._read_string(buf, pos, final, is_key=False)
        if char == "-" or char.isdigit():
            return self._read_number(buf, pos, final)
        if char in "tfn":
            return self._read_literal(buf, pos, final)
        raise self._error(char, "looking for beginning of value")

    def _value_end(self) -> JSONPosition:
        if not self._bracket_stack:
            return JSONPosition.TOP_VALUE
        if self._bracket_stack[-1] == "[":
            return JSONPosition.ARRAY_COMMA
        return JSONPosition.OBJECT_COMMA

    def _close_container(self, char: str, pos: int) -> int:
        self._bracket_stack.pop()
        self.position = self._value_end()
        self._tokens.append(JSONDelimiter(char, self.position))
        return pos + 1

    def _read_string(self, buf: str, pos: int, final: bool, is_key: bool) -> Optional[int]:
        index = pos + max(1, self._string_resume)
        while True:
            end = buf.find('"', index)
            if end == -1:
                if final:
                    raise ParseError("unexpected end of JSON input in string", self._line)
                self._string_resume = max(1, len(buf) - pos)
                return None

            backslashes = 0
            cursor = end - 1
            while cursor > pos and buf[cursor] == "\\":
                backslashes += 1
                cursor -= 1
            if backslashes % 2 == 0:
                break
            index = end + 1

        self._string_resume = 0
        raw = buf[pos:end + 1]
        try:
            value = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ParseError(f"invalid string literal: {e.msg}", self._line) from e

        if is_key:
            self.position = JSONPosition.OBJECT_COLON
        else:
            self.position = self._value_end()
        self._tokens.append(JSONString(value, self.position))
        return end + 1

    def _read_number(self, buf: str, pos: int, final: bool) -> Optional[int]:
        end = pos
        while end < len(buf) and buf[end] in _NUMBER_CHARS:
            end += 1
        if end == len(buf) and not final:
            return None

        match = _NUMBER.match(buf, pos)
        if match is None or match.end() != end:
            raise ParseError(f"invalid number literal {buf[pos:end]!r}", self._line)

        self.position = self._value_end()
        self._tokens.append(JSONNumber(match.group(0), self.position))
        return end

    def _read_literal(self, buf: str, pos: int, final: bool) -> Optional[int]:
        for word, value in LITERALS.items():
            if word[0] != buf[pos]:
                continue
            if buf.startswith(word, pos):
                self.position = self._value_end()
                self._tokens.append(JSONLiteral(value, self.position))
                return pos + len(word)
            if not final and word.startswith(buf[pos:]):
                return None
        raise self._error(buf[pos], "in literal")


def tokenize_json(chunks: Iterable[str]) -> Iterator[JSONToken]:
    """Tokenize JSON text chunks with a fresh tokenizer."""
    return JSONTokenizer().tokenize(chunks)
