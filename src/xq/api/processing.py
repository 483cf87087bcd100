"""Single-document processing: choose a mode, pick a format, write output."""

import io
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import IO, Any, Optional, TextIO, Union

from xq.api.detection import ContentType, detect_format
from xq.character.stream import Source, iter_text_chunks
from xq.formatting.html import HTMLFormatter
from xq.formatting.json import JSONFormatter
from xq.formatting.xml import XMLFormatter
from xq.query.css import css_query
from xq.query.xpath import xpath_query
from xq.shared.colors import ColorMode, Palette, resolve_palette
from xq.shared.config import ConfigValidationError, FormatOptions
from xq.shared.logging import get_logger
from xq.tokenization.html_tokenizer import HTMLTokenizer
from xq.tokenization.json_tokenizer import JSONTokenizer
from xq.tokenization.xml_tokenizer import XMLTokenizer
from xq.tree.projection import UNLIMITED_DEPTH, project_document, write_json

TEXT_KEY = "text"


class ProcessingMode(Enum):
    """What is done with a document, in order of precedence."""

    XPATH = auto()   # -x / -e
    CSS = auto()     # -q
    JSON = auto()    # -j
    FORMAT = auto()  # plain pretty-printing


@dataclass
class ProcessingOptions:
    """Everything one document pass needs to know.

    Attributes:
        format_options: Indentation and color settings
        force_html: Treat the input as HTML without sniffing
        xpath: XPath expression to evaluate
        single_node: Print only the first XPath result
        css: CSS selector to evaluate
        attribute: Attribute to print for each CSS match
        with_tags: Print matched nodes as markup instead of text
        to_json: Convert the document to JSON
        compact: Single-line JSON output
        depth: Projection depth for JSON conversion, negative for unlimited
    """

    format_options: FormatOptions = field(default_factory=FormatOptions)
    force_html: bool = False
    xpath: Optional[str] = None
    single_node: bool = False
    css: Optional[str] = None
    attribute: Optional[str] = None
    with_tags: bool = False
    to_json: bool = False
    compact: bool = False
    depth: int = UNLIMITED_DEPTH

    def __post_init__(self) -> None:
        """Validate option combinations."""
        if self.attribute and not self.css:
            raise ConfigValidationError(
                "query option (-q) is missed for attribute selection",
                field_name="attribute",
                suggestions=["Pass a CSS selector with -q"],
            )

    @property
    def mode(self) -> ProcessingMode:
        if self.xpath:
            return ProcessingMode.XPATH
        if self.css:
            return ProcessingMode.CSS
        if self.to_json:
            return ProcessingMode.JSON
        return ProcessingMode.FORMAT

    @property
    def indent(self) -> str:
        return self.format_options.indent


def _as_stream(source: Source) -> IO[Any]:
    if isinstance(source, str):
        return io.StringIO(source)
    if isinstance(source, (bytes, bytearray)):
        return io.BytesIO(bytes(source))
    return source


def process_as_json(
    source: Source,
    writer: TextIO,
    content_type: ContentType,
    depth: int = UNLIMITED_DEPTH,
    compact: bool = False,
    indent: str = "  ",
    colors: ColorMode = ColorMode.DEFAULT,
    palette: Optional[Palette] = None,
    correlation_id: Optional[str] = None,
) -> None:
    """Write ``source`` as JSON.

    XML and HTML are projected into ordered JSON, JSON input is re-emitted,
    and anything else becomes ``{"text": ...}``.

    Raises:
        ParseError: If the document is malformed
    """
    if palette is None:
        palette = resolve_palette(colors, writer)
    if compact:
        indent = ""

    if content_type in (ContentType.XML, ContentType.HTML):
        value = project_document(
            source, html=content_type is ContentType.HTML, depth=depth,
            correlation_id=correlation_id,
        )
        write_json(value, writer, indent, palette, compact)
    elif content_type is ContentType.JSON:
        formatter = JSONFormatter(writer, indent, palette, compact, correlation_id)
        tokenizer = JSONTokenizer(correlation_id=correlation_id)
        formatter.format(tokenizer.tokenize(iter_text_chunks(source, declarations=False)))
    else:
        content = "".join(iter_text_chunks(source, declarations=False))
        write_json({TEXT_KEY: content.strip()}, writer, indent, palette, compact)


def format_document(
    source: Source,
    writer: TextIO,
    content_type: ContentType,
    indent: str = "  ",
    palette: Optional[Palette] = None,
    correlation_id: Optional[str] = None,
) -> None:
    """Pretty-print ``source`` with the formatter for ``content_type``.

    Plain text has no formatter and is copied through unchanged.
    """
    if content_type is ContentType.XML:
        formatter: Union[XMLFormatter, HTMLFormatter, JSONFormatter] = XMLFormatter(
            writer, indent, palette, correlation_id
        )
        tokens = XMLTokenizer(correlation_id=correlation_id).tokenize(iter_text_chunks(source))
    elif content_type is ContentType.HTML:
        formatter = HTMLFormatter(writer, indent, palette, correlation_id)
        tokens = HTMLTokenizer(correlation_id=correlation_id).tokenize(
            iter_text_chunks(source, declarations=False)
        )
    elif content_type is ContentType.JSON:
        formatter = JSONFormatter(writer, indent, palette, correlation_id=correlation_id)
        tokens = JSONTokenizer(correlation_id=correlation_id).tokenize(
            iter_text_chunks(source, declarations=False)
        )
    else:
        for chunk in iter_text_chunks(source, declarations=False):
            writer.write(chunk)
        return

    formatter.format(tokens)


def process_document(
    source: Source,
    writer: TextIO,
    options: ProcessingOptions,
    palette: Optional[Palette] = None,
    correlation_id: Optional[str] = None,
) -> ContentType:
    """Run one document through the mode selected by ``options``.

    Args:
        source: Document as text, bytes or a readable file object
        writer: Destination text stream
        options: Processing options
        palette: Colors resolved by the caller; resolved against ``writer``
            from ``options`` when omitted
        correlation_id: Correlation ID for log records

    Returns:
        Content type the document was handled as (XML for XPath queries and
        HTML for CSS queries)

    Raises:
        ParseError: If the document is malformed
        QueryError: If a selector is invalid
    """
    logger = get_logger(__name__, correlation_id, "processing")
    if palette is None:
        palette = resolve_palette(options.format_options.color_mode, writer)

    mode = options.mode
    logger.debug("Processing document", extra={"mode": mode.name})

    if mode is ProcessingMode.XPATH:
        xpath_query(
            source, writer, options.xpath,
            single=options.single_node, with_tags=options.with_tags,
            indent=options.indent, palette=palette, correlation_id=correlation_id,
        )
        return ContentType.XML

    if mode is ProcessingMode.CSS:
        css_query(
            source, writer, options.css,
            attribute=options.attribute, with_tags=options.with_tags,
            indent=options.indent, palette=palette, correlation_id=correlation_id,
        )
        return ContentType.HTML

    content_type, reader = detect_format(_as_stream(source), options.force_html)
    if mode is ProcessingMode.JSON:
        process_as_json(
            reader, writer, content_type,
            depth=options.depth, compact=options.compact, indent=options.indent,
            palette=palette, correlation_id=correlation_id,
        )
    else:
        format_document(reader, writer, content_type, options.indent, palette, correlation_id)
    return content_type
