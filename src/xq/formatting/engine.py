"""Shared reconstruction state machine for markup formatters.

Markup tokenizers only report a flat token sequence, so nesting and
indentation are rebuilt here in a single fold over the tokens. The one
decision that needs deferral is whether a start tag ends in ``>`` or
``/>``: the tag is written without its bracket and the next token settles it.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Dict, Iterable, List, Optional, TextIO

from xq.shared.colors import Palette
from xq.shared.logging import get_logger
from xq.tokenization.tokens import (
    XML_NAMESPACE,
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
    TokenType,
)


class BracketState(Enum):
    """Resolution state of the most recent start tag's closing bracket."""

    TAG_CLOSED = auto()                 # No start tag is waiting for its bracket
    TAG_OPEN_AWAITING_CONTENT = auto()  # "<name attrs" written, ">" or "/>" undecided
    CONTENT_OPEN = auto()               # ">" written, element content in progress


@dataclass
class FormatterState:
    """Mutable state owned by one formatting pass."""

    depth: int = 0
    bracket: BracketState = BracketState.TAG_CLOSED
    pending_name: str = ""
    last_closed: str = ""
    content_seen: bool = False
    last_was_end: bool = False
    pending_break: str = ""
    open_elements: List[str] = field(default_factory=list)
    namespace_aliases: Dict[str, str] = field(
        default_factory=lambda: {XML_NAMESPACE: "xml"}
    )

    def open_tag(self, name: str) -> None:
        self.bracket = BracketState.TAG_OPEN_AWAITING_CONTENT
        self.pending_name = name
        self.depth += 1
        self.content_seen = False
        self.last_was_end = False
        self.open_elements.append(name)

    def close_tag(self, name: str) -> None:
        self.depth = max(self.depth - 1, 0)
        self.bracket = BracketState.TAG_CLOSED
        self.pending_name = ""
        self.content_seen = False
        self.last_was_end = True
        self.last_closed = name
        if name in self.open_elements:
            while self.open_elements.pop() != name:
                pass

    def should_collapse(self, name: str) -> bool:
        """True when an end tag for ``name`` directly follows its own start tag."""
        return (
            self.bracket is BracketState.TAG_OPEN_AWAITING_CONTENT
            and self.pending_name == name
            and not self.content_seen
        )

    def register_namespace(self, attribute: Attribute) -> None:
        """Record the alias an ``xmlns`` attribute declares for its URI."""
        if attribute.name.space == "xmlns":
            if not self.namespace_aliases.get(attribute.value):
                self.namespace_aliases[attribute.value] = attribute.name.local
        elif attribute.name.space == "" and attribute.name.local == "xmlns":
            self.namespace_aliases[attribute.value] = ""

    def render_name(self, name: QName) -> str:
        space = self.namespace_aliases.get(name.space, name.space)
        return f"{space}:{name.local}" if space else name.local


class MarkupFormatter:
    """Base class for the XML and HTML reconstruction passes.

    Subclasses provide the dialect: how names and text are rendered, whether
    empty elements collapse, and when an end tag starts a new line.
    """

    collapse_empty = True

    def __init__(
        self,
        writer: TextIO,
        indent: str = "  ",
        palette: Optional[Palette] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.writer = writer
        self.indent = indent
        self.newline = "\n" if indent else ""
        self.palette = palette or Palette.plain()
        self.state = FormatterState()
        self._line_ended = False
        self.logger = get_logger(__name__, correlation_id, type(self).__name__)
        self._handlers: Dict[TokenType, Callable] = {
            TokenType.START_TAG: self._on_start_tag,
            TokenType.END_TAG: self._on_end_tag,
            TokenType.TEXT: self._on_text,
            TokenType.COMMENT: self._on_comment,
            TokenType.PROCESSING_INSTRUCTION: self._on_processing_instruction,
            TokenType.DIRECTIVE: self._on_directive,
            TokenType.DOCTYPE: self._on_doctype,
        }

    def format(self, tokens: Iterable[MarkupToken]) -> None:
        """Write every token, then the trailing newline."""
        for token in tokens:
            self.feed(token)
        self.finish()

    def feed(self, token: MarkupToken) -> None:
        self._handlers[token.type](token)

    def finish(self) -> None:
        self._flush_pending_break()
        if not self._line_ended:
            self.writer.write("\n")

    def _write(self, *parts: str) -> None:
        text = "".join(parts)
        if text:
            self.writer.write(text)
            self._line_ended = text.endswith("\n")

    def _take_pending_break(self) -> str:
        pending, self.state.pending_break = self.state.pending_break, ""
        return pending

    def _flush_pending_break(self) -> None:
        self._write(self._take_pending_break())

    def _split_pending_break(self, text: str) -> str:
        """Hold back a trailing re-indent so the next token can replace it."""
        tail = self._line_break(max(self.state.depth - 1, 0))
        if self.newline and text.endswith(tail) and len(text) > len(tail):
            self.state.pending_break = tail
            return text[:-len(tail)]
        return text

    def _line_break(self, depth: Optional[int] = None) -> str:
        return self.newline + self.indent * (self.state.depth if depth is None else depth)

    def _close_bracket(self) -> None:
        if self.state.bracket is BracketState.TAG_OPEN_AWAITING_CONTENT:
            self._write(self.palette.tag(">"))
            self.state.bracket = BracketState.CONTENT_OPEN

    def render_name(self, name: QName) -> str:
        return self.state.render_name(name)

    def render_attributes(self, token: StartTag) -> str:
        rendered = [
            self.render_name(attribute.name)
            + self.palette.attr('="' + self.escape_attribute(attribute.value) + '"')
            for attribute in token.attributes
        ]
        return " " + " ".join(rendered) if rendered else ""

    def escape_attribute(self, value: str) -> str:
        raise NotImplementedError

    def escape_text(self, text: str) -> str:
        raise NotImplementedError

    def normalize_text(self, text: str) -> str:
        raise NotImplementedError

    def breaks_before_end_tag(self) -> bool:
        raise NotImplementedError

    def is_void(self, token: StartTag) -> bool:
        return False

    def _write_start(self, token: StartTag) -> str:
        self._close_bracket()
        pending = self._take_pending_break()
        self._write(self._line_break() if self.state.depth > 0 else pending)

        for attribute in token.attributes:
            self.state.register_namespace(attribute)

        name = self.render_name(token.name)
        self._write(self.palette.tag("<" + name) + self.render_attributes(token))
        return name

    def _on_start_tag(self, token: StartTag) -> None:
        name = self._write_start(token)
        if self.is_void(token):
            self._write(self.palette.tag("/>"))
            return
        self.state.open_tag(name)

    def _on_end_tag(self, token: EndTag) -> None:
        name = self.render_name(token.name)
        if self.collapse_empty and self.state.should_collapse(name):
            self._write(self.palette.tag("/>"))
            self.state.close_tag(name)
            return

        break_line = self.breaks_before_end_tag()
        self._close_bracket()
        depth = max(self.state.depth - 1, 0)
        pending = self._take_pending_break()
        if pending:
            self._write(pending)
        elif break_line:
            self._write(self._line_break(depth))
        self._write(self.palette.tag("</" + name + ">"))
        self.state.close_tag(name)

    def _on_text(self, token: Text) -> None:
        self._flush_pending_break()
        text = self.normalize_text(token.data)
        self.state.content_seen = bool(text)
        if text:
            self._close_bracket()
            self._write(self.escape_text(self._split_pending_break(text)))

    def _write_comment_lines(self, open_mark: str, body: str, close_mark: str) -> None:
        self._close_bracket()
        self._flush_pending_break()
        reindent = not self.state.content_seen and self.state.depth > 0
        for index, line in enumerate(body.split("\n")):
            if reindent:
                self._write(self._line_break())
                if index > 0:
                    line = line.lstrip()
            if index == 0:
                self._write(self.palette.comment(open_mark))
            self._write(self.palette.comment(line))
        self._write(self.palette.comment(close_mark))

        if self.state.depth == 0:
            self._write(self.newline)

    def _on_comment(self, token: Comment) -> None:
        self._write_comment_lines("<!--", token.data, "-->")

    def _on_processing_instruction(self, token: ProcessingInstruction) -> None:
        raise NotImplementedError

    def _on_directive(self, token: Directive) -> None:
        self._close_bracket()
        self._flush_pending_break()
        self._write(self.palette.tag("<!"), token.data, self.palette.tag(">"))
        self._write(self._line_break())

    def _on_doctype(self, token: Doctype) -> None:
        self._close_bracket()
        self._flush_pending_break()
        self._write(self.palette.tag("<!doctype "), token.data, self.palette.tag(">"), self.newline)
