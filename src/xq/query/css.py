"""CSS selector queries over HTML documents, evaluated by BeautifulSoup."""

import io
from typing import Any, List, Optional, TextIO

from bs4 import BeautifulSoup
from bs4.element import Tag

from xq.character.stream import Source, read_document
from xq.formatting.html import HTMLFormatter
from xq.formatting.text import escape_attribute
from xq.shared.colors import ColorMode, Palette, resolve_palette
from xq.shared.errors import QueryError
from xq.shared.logging import get_logger
from xq.tokenization.html_tokenizer import VOID_ELEMENTS, HTMLTokenizer

PARSER_NAME = "html.parser"


def select(source: Source, selector: str) -> List[Tag]:
    """Return the elements matching ``selector`` in document order.

    Raises:
        QueryError: If the selector cannot be parsed
    """
    soup = BeautifulSoup(read_document(source), PARSER_NAME)
    try:
        return soup.select(selector)
    except Exception as e:
        raise QueryError(f"CSS selector error: {e}") from e


def attribute_value(tag: Tag, name: str) -> str:
    value = tag.get(name, "")
    if isinstance(value, list):
        value = " ".join(value)
    return value.strip()


def rebuild_markup(tag: Tag) -> str:
    """Serialize ``tag`` with its attributes and inner markup."""
    attributes = []
    for name, value in tag.attrs.items():
        if isinstance(value, list):
            value = " ".join(value)
        attributes.append(f'{name}="{escape_attribute(value)}"')
    attrs = " " + " ".join(attributes) if attributes else ""

    if tag.name in VOID_ELEMENTS:
        return f"<{tag.name}{attrs}>"
    return f"<{tag.name}{attrs}>{tag.decode_contents()}</{tag.name}>"


def css_query(
    source: Source,
    writer: TextIO,
    selector: str,
    attribute: Optional[str] = None,
    with_tags: bool = False,
    indent: str = "  ",
    colors: ColorMode = ColorMode.DEFAULT,
    palette: Optional[Palette] = None,
    correlation_id: Optional[str] = None,
) -> int:
    """Select elements with a CSS selector and print them.

    Each match is printed as its trimmed text, as the trimmed value of
    ``attribute`` when one is given, or as formatted HTML with ``with_tags``.

    Returns:
        Number of matched elements

    Raises:
        QueryError: If the selector cannot be parsed
    """
    logger = get_logger(__name__, correlation_id, "css_query")
    if palette is None:
        palette = resolve_palette(colors, writer)

    matches = select(source, selector)
    logger.debug("CSS selector evaluated", extra={"selector": selector, "matches": len(matches)})

    for tag in matches:
        if attribute:
            writer.write(attribute_value(tag, attribute) + "\n")
        elif with_tags:
            formatter = HTMLFormatter(writer, indent, palette, correlation_id)
            tokenizer = HTMLTokenizer(correlation_id=correlation_id)
            formatter.format(tokenizer.tokenize([rebuild_markup(tag)]))
        else:
            writer.write(tag.get_text().strip() + "\n")
    return len(matches)


def css_query_string(source: Source, selector: str, **kwargs: Any) -> str:
    """Convenience wrapper returning the printed results as a string."""
    buffer = io.StringIO()
    kwargs.setdefault("colors", ColorMode.DISABLED)
    css_query(source, buffer, selector, **kwargs)
    return buffer.getvalue()
