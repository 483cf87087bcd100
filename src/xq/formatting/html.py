"""HTML reconstruction pass."""

from typing import FrozenSet, Optional, TextIO

from xq.character.stream import Source, iter_text_chunks
from xq.formatting.engine import MarkupFormatter
from xq.formatting.text import escape_attribute, escape_text_content, normalize_spaces
from xq.shared.colors import ColorMode, Palette, resolve_palette
from xq.tokenization.html_tokenizer import VOID_ELEMENTS, HTMLTokenizer
from xq.tokenization.tokens import ProcessingInstruction, StartTag

# Elements whose text the tokenizer reports verbatim
RAW_TEXT_ELEMENTS: FrozenSet[str] = frozenset({"script", "style"})


class HTMLFormatter(MarkupFormatter):
    """Pretty-prints an HTML token stream.

    Only void elements and explicitly self-closed tags render as ``<name/>``;
    other empty elements keep their end tag. An end tag goes on its own line
    when it directly follows another end tag.
    """

    collapse_empty = False

    def __init__(
        self,
        writer: TextIO,
        indent: str = "  ",
        palette: Optional[Palette] = None,
        correlation_id: Optional[str] = None,
        void_elements: FrozenSet[str] = VOID_ELEMENTS,
    ) -> None:
        super().__init__(writer, indent, palette, correlation_id)
        self.void_elements = void_elements

    def is_void(self, token: StartTag) -> bool:
        return token.self_closing or token.name.local in self.void_elements

    def escape_attribute(self, value: str) -> str:
        return escape_attribute(value)

    def escape_text(self, text: str) -> str:
        open_elements = self.state.open_elements
        if open_elements and open_elements[-1] in RAW_TEXT_ELEMENTS:
            return text
        return escape_text_content(text)

    def normalize_text(self, text: str) -> str:
        return normalize_spaces(text, self.indent, self.state.depth)

    def breaks_before_end_tag(self) -> bool:
        return self.state.last_was_end

    def _on_processing_instruction(self, token: ProcessingInstruction) -> None:
        # html.parser reports "<?...>" bodies raw, including any trailing "?"
        self._write_comment_lines("<?", token.instruction, ">")


def format_html(
    source: Source,
    writer: TextIO,
    indent: str = "  ",
    colors: ColorMode = ColorMode.DEFAULT,
    correlation_id: Optional[str] = None,
) -> None:
    """Pretty-print an HTML document.

    Args:
        source: Document as text, bytes or a readable file object
        writer: Destination text stream
        indent: Indentation unit (empty string for single-line output)
        colors: Color mode, resolved against ``writer``
        correlation_id: Correlation ID for log records
    """
    formatter = HTMLFormatter(writer, indent, resolve_palette(colors, writer), correlation_id)
    tokenizer = HTMLTokenizer(correlation_id=correlation_id)
    formatter.format(tokenizer.tokenize(iter_text_chunks(source, declarations=False)))
