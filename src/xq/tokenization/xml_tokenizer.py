"""Streaming XML tokenizer with structural recovery.

The tokenizer is fed decoded text in arbitrary chunks and produces flat
markup tokens in document order. Text and CDATA runs are merged into one
``Text`` token, namespaces are resolved through a scoped prefix table, and
in recovering mode mismatched or missing end tags are repaired with
synthetic ``EndTag`` tokens instead of aborting.
"""

import re
from enum import Enum, auto
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from xq.shared.errors import ParseError
from xq.shared.logging import get_logger
from xq.tokenization.tokens import (
    XML_NAMESPACE,
    Attribute,
    Comment,
    Directive,
    EndTag,
    MarkupToken,
    ProcessingInstruction,
    QName,
    StartTag,
    Text,
)

COMMENT_OPEN = "<!--"
CDATA_OPEN = "<![CDATA["
UNICODE_START_OFFSET = 0x80  # Start of non-ASCII name characters

PREDEFINED_ENTITIES: Dict[str, str] = {
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "apos": "'",
    "quot": '"',
}

_TAG_BODY = re.compile(r"""(?:[^"'>]|"[^"]*"|'[^']*')*>""")
_TAG_NAME = re.compile(r"[^\s/>]+")
_ATTRIBUTE = re.compile(
    r"""([^\s=/>"']+)(?:\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+)))?"""
)
_ENTITY = re.compile(r"&(#[0-9]+|#[xX][0-9a-fA-F]+|[A-Za-z_][\w.\-]*);")
_LINE_END = re.compile(r"\r\n?")


class TokenizerState(Enum):
    """What the tokenizer was scanning when it ran out of buffered input."""

    TEXT_CONTENT = auto()           # Character data between markup
    MARKUP_OPEN = auto()            # Just after '<', kind not yet known
    START_TAG = auto()              # <name attrs ...>
    END_TAG = auto()                # </name>
    COMMENT = auto()                # <!-- ... -->
    CDATA = auto()                  # <![CDATA[ ... ]]>
    PROCESSING_INSTRUCTION = auto() # <? ... ?>
    DIRECTIVE = auto()              # <! ... >


def decode_entities(text: str) -> str:
    """Replace predefined and numeric character references.

    Unknown entities and bare ampersands are kept verbatim.
    """
    if "&" not in text:
        return text

    def replace(match: "re.Match[str]") -> str:
        ref = match.group(1)
        if ref.startswith("#"):
            try:
                codepoint = int(ref[2:], 16) if ref[1] in "xX" else int(ref[1:])
                return chr(codepoint) if codepoint > 0 else match.group(0)
            except (ValueError, OverflowError):
                return match.group(0)
        return PREDEFINED_ENTITIES.get(ref, match.group(0))

    return _ENTITY.sub(replace, text)


def normalize_line_ends(text: str) -> str:
    return _LINE_END.sub("\n", text) if "\r" in text else text


class XMLTokenizer:
    """Incremental XML tokenizer.

    Args:
        strict: Raise ``ParseError`` for stray, mismatched or unclosed
            elements instead of repairing them
        correlation_id: Correlation ID for log records
    """

    def __init__(self, strict: bool = False, correlation_id: Optional[str] = None) -> None:
        self.strict = strict
        self.logger = get_logger(__name__, correlation_id, "xml_tokenizer")
        self._buffer = ""
        self._line = 1
        self.state = TokenizerState.TEXT_CONTENT
        self._text_parts: List[Tuple[bool, str]] = []  # (is_cdata, raw text)
        self._open: List[str] = []
        self._scopes: List[Dict[str, str]] = []
        self._tokens: List[MarkupToken] = []
        self._closed = False
        self.repairs = 0

    @property
    def depth(self) -> int:
        return len(self._open)

    def feed(self, data: str) -> List[MarkupToken]:
        """Consume a chunk of text and return the tokens it completed."""
        if self._closed:
            raise ValueError("tokenizer is closed")
        self._buffer += data
        self._scan(final=False)
        return self._drain()

    def close(self) -> List[MarkupToken]:
        """Finish the document and return the remaining tokens.

        Raises:
            ParseError: On unterminated markup, or unclosed elements in strict mode
        """
        if self._closed:
            return []
        self._scan(final=True)
        if self._buffer:
            raise ParseError("unexpected EOF", self._line)
        self._flush_text()

        if self._open:
            if self.strict:
                raise ParseError("unexpected EOF", self._line)
            self.logger.debug(
                "Closing elements left open at end of input",
                extra={"open_elements": list(self._open)},
            )
            while self._open:
                self._pop_element()
                self.repairs += 1

        self._closed = True
        return self._drain()

    def tokenize(self, chunks: Iterable[str]) -> Iterator[MarkupToken]:
        """Tokenize a whole document given as text chunks."""
        for chunk in chunks:
            yield from self.feed(chunk)
        yield from self.close()

    def _drain(self) -> List[MarkupToken]:
        tokens, self._tokens = self._tokens, []
        return tokens

    def _scan(self, final: bool) -> None:
        buf = self._buffer
        pos = 0
        length = len(buf)

        while pos < length:
            if buf[pos] != "<":
                self.state = TokenizerState.TEXT_CONTENT
                end = buf.find("<", pos)
                if end == -1:
                    end = length
                self._text_parts.append((False, buf[pos:end]))
                self._advance(buf, pos, end)
                pos = end
                continue

            self.state = TokenizerState.MARKUP_OPEN
            new_pos = self._process_markup(buf, pos, final)
            if new_pos is None:
                break
            self._advance(buf, pos, new_pos)
            pos = new_pos

        self._buffer = buf[pos:]

    def _advance(self, buf: str, start: int, end: int) -> None:
        self._line += buf.count("\n", start, end)

    def _process_markup(self, buf: str, pos: int, final: bool) -> Optional[int]:
        """Dispatch on the construct starting at ``buf[pos] == '<'``.

        Returns the position after the construct, or None when more input is needed.
        """
        remaining = len(buf) - pos
        if remaining < 2:
            return None if not final else self._literal_text("<", pos)

        marker = buf[pos + 1]
        if marker == "/":
            return self._process_end_tag(buf, pos, final)
        if marker == "?":
            return self._process_processing_instruction(buf, pos, final)
        if marker == "!":
            head = buf[pos:pos + len(CDATA_OPEN)]
            if head.startswith(COMMENT_OPEN):
                return self._process_comment(buf, pos, final)
            if head.startswith(CDATA_OPEN):
                return self._process_cdata(buf, pos, final)
            if not final and (COMMENT_OPEN.startswith(head) or CDATA_OPEN.startswith(head)):
                return None
            return self._process_directive(buf, pos, final)
        if self._is_name_start_char(marker):
            return self._process_start_tag(buf, pos, final)

        # A '<' that cannot open markup is taken as text
        return self._literal_text("<", pos)

    def _literal_text(self, text: str, pos: int) -> int:
        self.state = TokenizerState.TEXT_CONTENT
        self._text_parts.append((False, text))
        return pos + len(text)

    def _unterminated(self, final: bool) -> None:
        if final:
            raise ParseError("unexpected EOF", self._line)

    def _process_start_tag(self, buf: str, pos: int, final: bool) -> Optional[int]:
        self.state = TokenizerState.START_TAG
        match = _TAG_BODY.match(buf, pos + 1)
        if match is None:
            self._unterminated(final)
            return None

        end = match.end()
        body = buf[pos + 1:end - 1]
        self_closing = body.endswith("/")
        if self_closing:
            body = body[:-1]

        name_match = _TAG_NAME.match(body)
        raw_name = name_match.group(0)
        raw_attributes = self._parse_attributes(body[name_match.end():])

        self._flush_text()
        self._open_element(raw_name, raw_attributes)
        if self_closing:
            self._pop_element()
        return end

    def _parse_attributes(self, body: str) -> List[Tuple[str, str]]:
        attributes = []
        for match in _ATTRIBUTE.finditer(body):
            name = match.group(1)
            value = next(
                (group for group in match.group(2, 3, 4) if group is not None),
                None,
            )
            if value is None:
                # Value-less attribute, as in HTML: <input checked>
                value = name
            attributes.append((name, decode_entities(normalize_line_ends(value))))
        return attributes

    def _process_end_tag(self, buf: str, pos: int, final: bool) -> Optional[int]:
        if len(buf) - pos < 3:
            if not final:
                return None
            return self._literal_text("</", pos)
        if not self._is_name_start_char(buf[pos + 2]):
            return self._literal_text("</", pos)

        self.state = TokenizerState.END_TAG
        end = buf.find(">", pos + 2)
        if end == -1:
            self._unterminated(final)
            return None

        raw_name = buf[pos + 2:end].strip()
        self._flush_text()
        self._close_element(raw_name)
        return end + 1

    def _process_comment(self, buf: str, pos: int, final: bool) -> Optional[int]:
        self.state = TokenizerState.COMMENT
        start = pos + len(COMMENT_OPEN)
        end = buf.find("-->", start)
        if end == -1:
            self._unterminated(final)
            return None

        self._flush_text()
        self._tokens.append(Comment(normalize_line_ends(buf[start:end])))
        return end + 3

    def _process_cdata(self, buf: str, pos: int, final: bool) -> Optional[int]:
        self.state = TokenizerState.CDATA
        start = pos + len(CDATA_OPEN)
        end = buf.find("]]>", start)
        if end == -1:
            self._unterminated(final)
            return None

        self._text_parts.append((True, buf[start:end]))
        return end + 3

    def _process_processing_instruction(
        self, buf: str, pos: int, final: bool
    ) -> Optional[int]:
        self.state = TokenizerState.PROCESSING_INSTRUCTION
        end = buf.find("?>", pos + 2)
        if end == -1:
            self._unterminated(final)
            return None

        content = buf[pos + 2:end]
        parts = content.split(None, 1)
        target = parts[0] if parts else ""
        instruction = parts[1] if len(parts) > 1 else ""
        if not target:
            if self.strict:
                raise ParseError("expected target name after <?", self._line)
            self.logger.debug("Processing instruction without a target")

        self._flush_text()
        self._tokens.append(
            ProcessingInstruction(target, normalize_line_ends(instruction))
        )
        return end + 2

    def _process_directive(self, buf: str, pos: int, final: bool) -> Optional[int]:
        self.state = TokenizerState.DIRECTIVE
        end = self._find_directive_end(buf, pos + 2)
        if end == -1:
            self._unterminated(final)
            return None

        self._flush_text()
        self._tokens.append(Directive(normalize_line_ends(buf[pos + 2:end])))
        return end + 1

    @staticmethod
    def _find_directive_end(buf: str, start: int) -> int:
        """Find the '>' closing a directive, skipping quoted and nested '<...>' parts."""
        depth = 0
        quote = ""
        for index in range(start, len(buf)):
            char = buf[index]
            if quote:
                if char == quote:
                    quote = ""
            elif char in "\"'":
                quote = char
            elif char == "<":
                depth += 1
            elif char == ">":
                if depth == 0:
                    return index
                depth -= 1
        return -1

    def _flush_text(self) -> None:
        if not self._text_parts:
            return

        # Adjacent character data is joined first so that entity references
        # split across fed chunks still decode.
        runs: List[Tuple[bool, List[str]]] = []
        for is_cdata, raw in self._text_parts:
            if runs and runs[-1][0] == is_cdata:
                runs[-1][1].append(raw)
            else:
                runs.append((is_cdata, [raw]))
        self._text_parts = []

        pieces = []
        for is_cdata, parts in runs:
            raw = normalize_line_ends("".join(parts))
            pieces.append(raw if is_cdata else decode_entities(raw))

        data = "".join(pieces)
        if data:
            self._tokens.append(Text(data))

    def _open_element(self, raw_name: str, raw_attributes: List[Tuple[str, str]]) -> None:
        scope: Dict[str, str] = {}
        for name, value in raw_attributes:
            if name == "xmlns":
                scope[""] = value
            elif name.startswith("xmlns:"):
                scope[name[len("xmlns:"):]] = value

        self._open.append(raw_name)
        self._scopes.append(scope)

        attributes = tuple(
            Attribute(self._translate(name, is_element=False), value)
            for name, value in raw_attributes
        )
        self._tokens.append(StartTag(self._translate(raw_name, is_element=True), attributes))

    def _pop_element(self) -> None:
        raw_name = self._open[-1]
        self._tokens.append(EndTag(self._translate(raw_name, is_element=True)))
        self._open.pop()
        self._scopes.pop()

    def _close_element(self, raw_name: str) -> None:
        if self._open and self._open[-1] == raw_name:
            self._pop_element()
            return

        if not self._open:
            if self.strict:
                raise ParseError(f"unexpected end element </{raw_name}>", self._line)
            self.logger.debug("Dropping stray end tag", extra={"tag": raw_name})
            self.repairs += 1
            return

        if self.strict:
            raise ParseError(
                f"element <{self._open[-1]}> closed by </{raw_name}>", self._line
            )

        if raw_name in self._open:
            while self._open[-1] != raw_name:
                self.logger.debug(
                    "Inserting synthetic end tag",
                    extra={"tag": self._open[-1], "closed_by": raw_name},
                )
                self._pop_element()
                self.repairs += 1
            self._pop_element()
        else:
            self.logger.debug("Dropping stray end tag", extra={"tag": raw_name})
            self.repairs += 1

    def _lookup_namespace(self, prefix: str) -> Optional[str]:
        for scope in reversed(self._scopes):
            if prefix in scope:
                return scope[prefix]
        return None

    def _translate(self, raw_name: str, is_element: bool) -> QName:
        """Resolve a raw ``prefix:local`` name against the open namespace scopes."""
        space, local = "", raw_name
        if raw_name.count(":") == 1:
            prefix, _, rest = raw_name.partition(":")
            if prefix and rest:
                space, local = prefix, rest

        if space == "xmlns":
            return QName(space, local)
        if space == "" and not is_element:
            return QName("", local)
        if space == "xml":
            return QName(XML_NAMESPACE, local)

        uri = self._lookup_namespace(space)
        if uri is not None:
            return QName(uri, local)
        return QName(space, local)

    def _is_name_start_char(self, char: str) -> bool:
        """Check if character can start an XML name."""
        return (char.isalpha() or
                char == "_" or
                char == ":" or
                ord(char) >= UNICODE_START_OFFSET)


def tokenize_xml(chunks: Iterable[str], strict: bool = False) -> Iterator[MarkupToken]:
    """Tokenize XML text chunks with a fresh tokenizer."""
    return XMLTokenizer(strict=strict).tokenize(chunks)
