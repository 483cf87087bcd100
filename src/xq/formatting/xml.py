"""XML reconstruction pass."""

import re
from typing import Optional, TextIO

from xq.character.stream import Source, iter_text_chunks
from xq.formatting.engine import MarkupFormatter
from xq.formatting.text import escape_attribute, escape_xml_text, normalize_spaces
from xq.shared.colors import ColorMode, resolve_palette
from xq.tokenization.tokens import ProcessingInstruction
from xq.tokenization.xml_tokenizer import XMLTokenizer

# Pseudo-attributes of a processing instruction: name="value" or a bare word
_PSEUDO_ATTRIBUTE = re.compile(r"""([^\s=]+)(=(?:"[^"]*"|'[^']*'|\S*))?""")


class XMLFormatter(MarkupFormatter):
    """Pretty-prints an XML token stream.

    Empty elements collapse to ``<name/>``, text needing protection is
    wrapped in CDATA, and namespace URIs are rendered with the prefixes the
    document declared for them.
    """

    collapse_empty = True

    def escape_attribute(self, value: str) -> str:
        return escape_attribute(value)

    def escape_text(self, text: str) -> str:
        return escape_xml_text(text)

    def normalize_text(self, text: str) -> str:
        return normalize_spaces(text, self.indent, self.state.depth)

    def breaks_before_end_tag(self) -> bool:
        return not self.state.content_seen

    def _on_processing_instruction(self, token: ProcessingInstruction) -> None:
        self._close_bracket()
        pending = self._take_pending_break()
        self._write(self._line_break() if self.state.depth > 0 else pending)

        self._write(self.palette.tag("<?"), token.target)
        for match in _PSEUDO_ATTRIBUTE.finditer(token.instruction.strip()):
            name, value = match.group(1), match.group(2)
            self._write(" ", name, self.palette.attr(value) if value else "")
        self._write(self.palette.tag("?>"))

        if self.state.depth == 0:
            self._write(self.newline)


def format_xml(
    source: Source,
    writer: TextIO,
    indent: str = "  ",
    colors: ColorMode = ColorMode.DEFAULT,
    correlation_id: Optional[str] = None,
) -> None:
    """Pretty-print an XML document.

    Args:
        source: Document as text, bytes or a readable file object
        writer: Destination text stream
        indent: Indentation unit (empty string for single-line output)
        colors: Color mode, resolved against ``writer``
        correlation_id: Correlation ID for log records

    Raises:
        ParseError: If the document is malformed beyond recovery
    """
    formatter = XMLFormatter(writer, indent, resolve_palette(colors, writer), correlation_id)
    tokenizer = XMLTokenizer(correlation_id=correlation_id)
    formatter.format(tokenizer.tokenize(iter_text_chunks(source)))
