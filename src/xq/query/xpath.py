"""XPath queries evaluated by lxml.

The document is decoded by the character layer and handed to lxml as UTF-8,
so charset handling matches the formatters. lxml's recovering parser is used
to mirror the formatter's tolerance of sloppy markup.
"""

import io
from typing import Any, Dict, Iterable, List, Optional, TextIO

from lxml import etree

from xq.character.stream import Source, iter_text_chunks
from xq.formatting.xml import XMLFormatter
from xq.shared.colors import ColorMode, Palette, resolve_palette
from xq.shared.errors import ParseError, QueryError
from xq.shared.logging import get_logger
from xq.tokenization.xml_tokenizer import XMLTokenizer


def parse_document(source: Source) -> etree._ElementTree:
    """Parse ``source`` into an lxml tree.

    Raises:
        ParseError: If lxml cannot recover a root element
    """
    data = "".join(iter_text_chunks(source)).encode("utf-8")
    parser = etree.XMLParser(
        recover=True,
        huge_tree=True,
        resolve_entities=False,
        no_network=True,
        encoding="utf-8",
    )
    try:
        root = etree.fromstring(data, parser)
    except etree.XMLSyntaxError as e:
        raise ParseError(str(e)) from e
    if root is None:
        raise ParseError("document has no root element")
    return root.getroottree()


def collect_namespaces(tree: etree._ElementTree) -> Dict[str, str]:
    """Prefix to URI map of every prefixed namespace declared in the document."""
    namespaces: Dict[str, str] = {}
    for element in tree.getroot().iter(tag=etree.Element):
        for prefix, uri in element.nsmap.items():
            if prefix and prefix not in namespaces:
                namespaces[prefix] = uri
    return namespaces


def string_value(item: Any) -> str:
    """Render one XPath result the way it is printed on its own line."""
    if isinstance(item, bool):
        return "true" if item else "false"
    if isinstance(item, float):
        return "%.0f" % item
    if isinstance(item, etree._Element):
        return item.xpath("string()").strip()
    return str(item).strip()


def evaluate(tree: etree._ElementTree, expression: str) -> List[Any]:
    """Evaluate ``expression`` and return its results as a list.

    Raises:
        QueryError: If the expression is invalid or fails to evaluate
    """
    try:
        result = tree.xpath(expression, namespaces=collect_namespaces(tree))
    except (etree.XPathError, ValueError, TypeError) as e:
        raise QueryError(f"XPath error: {e}") from e
    if isinstance(result, list):
        return result
    return [result]


class XPathPrinter:
    """Writes XPath results either as text or as re-formatted markup."""

    def __init__(
        self,
        writer: TextIO,
        indent: str = "  ",
        palette: Optional[Palette] = None,
        with_tags: bool = False,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.writer = writer
        self.indent = indent
        self.palette = palette or Palette.plain()
        self.with_tags = with_tags
        self.correlation_id = correlation_id

    def write_all(self, results: Iterable[Any]) -> None:
        for item in results:
            self.write(item)

    def write(self, item: Any) -> None:
        if self.with_tags and isinstance(item, etree._Element):
            self._write_markup(etree.tostring(item, encoding="unicode", with_tail=False))
        else:
            self.writer.write(string_value(item) + "\n")

    def _write_markup(self, markup: str) -> None:
        formatter = XMLFormatter(self.writer, self.indent, self.palette, self.correlation_id)
        tokenizer = XMLTokenizer(correlation_id=self.correlation_id)
        formatter.format(tokenizer.tokenize([markup]))


def xpath_query(
    source: Source,
    writer: TextIO,
    expression: str,
    single: bool = False,
    with_tags: bool = False,
    indent: str = "  ",
    colors: ColorMode = ColorMode.DEFAULT,
    palette: Optional[Palette] = None,
    correlation_id: Optional[str] = None,
) -> int:
    """Evaluate an XPath expression and print its results.

    Args:
        source: XML document as text, bytes or a readable file object
        writer: Destination text stream
        expression: XPath 1.0 expression
        single: Print only the first result
        with_tags: Print matched elements as formatted markup instead of text
        indent: Indentation unit for formatted markup
        colors: Color mode, used when no ``palette`` is given
        palette: Pre-resolved colors
        correlation_id: Correlation ID for log records

    Returns:
        Number of results printed

    Raises:
        ParseError: If the document has no recoverable root element
        QueryError: If the expression is invalid or fails to evaluate
    """
    logger = get_logger(__name__, correlation_id, "xpath_query")
    if palette is None:
        palette = resolve_palette(colors, writer)

    tree = parse_document(source)
    results = evaluate(tree, expression)
    if single:
        results = results[:1]
    logger.debug("XPath evaluated", extra={"expression": expression, "matches": len(results)})

    XPathPrinter(writer, indent, palette, with_tags, correlation_id).write_all(results)
    return len(results)


def xpath_query_string(source: Source, expression: str, **kwargs: Any) -> str:
    """Convenience wrapper returning the printed results as a string."""
    buffer = io.StringIO()
    kwargs.setdefault("colors", ColorMode.DISABLED)
    xpath_query(source, buffer, expression, **kwargs)
    return buffer.getvalue()
