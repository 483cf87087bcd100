"""Ordered projection of a document tree onto JSON values.

Attributes become ``@name`` keys, child elements are keyed by tag name and
repeated tags merge into a list, and loose text lands under ``#text``. An
element holding only text projects to the bare string; an element holding
nothing at all projects to ``None``. Insertion order of the resulting dicts
follows document order.
"""

import json
from typing import Any, Dict, List, Optional, TextIO, Union

from xq.character.stream import Source, iter_text_chunks
from xq.formatting.json import JSONFormatter
from xq.shared.colors import Palette
from xq.shared.errors import ProjectionInvariantError
from xq.tokenization.html_tokenizer import HTMLTokenizer
from xq.tokenization.json_tokenizer import JSONTokenizer
from xq.tokenization.xml_tokenizer import XMLTokenizer
from xq.tree.builder import DocumentNode, ElementNode, Node, NodeType, TreeBuilder

TEXT_KEY = "#text"
ATTRIBUTE_PREFIX = "@"
UNLIMITED_DEPTH = -1

# Present in the tree but never projected
_SKIPPED_NODE_TYPES = frozenset({
    NodeType.COMMENT,
    NodeType.PROCESSING_INSTRUCTION,
    NodeType.DIRECTIVE,
})

ProjectedValue = Union[None, str, Dict[str, Any], List[Any]]


def project(node: Node, depth: int = UNLIMITED_DEPTH) -> ProjectedValue:
    """Project ``node`` and up to ``depth`` levels of its children.

    Args:
        node: Document, element or text node
        depth: Levels of child structure to keep; 0 flattens to text and a
            negative value keeps everything

    Raises:
        ProjectionInvariantError: If the tree holds a node kind outside ``NodeType``
    """
    node_type = getattr(node, "node_type", None)
    if node_type is NodeType.DOCUMENT:
        return _project_document(node, depth)
    if node_type is NodeType.ELEMENT:
        return _project_element(node, depth)
    if node_type is NodeType.TEXT:
        return node.data.strip()
    if node_type in _SKIPPED_NODE_TYPES:
        return None
    raise ProjectionInvariantError(f"cannot project node of unknown type: {node!r}")


def _project_document(document: DocumentNode, depth: int) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    text_parts = _collect_children(document, depth, result)
    if text_parts:
        result[TEXT_KEY] = "\n".join(text_parts)
    return result


def _project_element(element: ElementNode, depth: int) -> ProjectedValue:
    if depth == 0:
        return element.text_content()

    result: Dict[str, Any] = {}
    for attribute in element.attributes:
        result[ATTRIBUTE_PREFIX + attribute.name.local] = attribute.value

    text_parts = _collect_children(element, depth - 1, result)
    if text_parts:
        joined = "\n".join(text_parts)
        if not result:
            return joined
        result[TEXT_KEY] = joined

    if not result:
        return None
    return result


def _collect_children(node: Node, child_depth: int, result: Dict[str, Any]) -> List[str]:
    """Merge projected child elements into ``result`` and return the loose text."""
    text_parts = []
    for child in node.iter_children():
        node_type = getattr(child, "node_type", None)
        if node_type is NodeType.TEXT:
            text = child.data.strip()
            if text:
                text_parts.append(text)
        elif node_type is NodeType.ELEMENT:
            _add_value(result, child.tag, _project_element(child, child_depth))
        elif node_type not in _SKIPPED_NODE_TYPES:
            raise ProjectionInvariantError(
                f"cannot project node of unknown type: {child!r}"
            )
    return text_parts


def _add_value(result: Dict[str, Any], key: str, value: ProjectedValue) -> None:
    if not key:
        return
    if key not in result:
        result[key] = value
        return

    existing = result[key]
    if isinstance(existing, list):
        existing.append(value)
    else:
        result[key] = [existing, value]


def write_json(
    value: Any,
    writer: TextIO,
    indent: str = "  ",
    palette: Optional[Palette] = None,
    compact: bool = False,
) -> None:
    """Serialize a projected value through the JSON re-emitter."""
    text = json.dumps(value, ensure_ascii=False)
    if compact:
        indent = ""
    formatter = JSONFormatter(writer, indent, palette, compact=compact)
    formatter.format(JSONTokenizer().tokenize([text]))


def build_tree(
    source: Source,
    html: bool = False,
    correlation_id: Optional[str] = None,
) -> DocumentNode:
    """Parse ``source`` into a document tree.

    XML is parsed strictly: a malformed document raises ``ParseError``
    instead of being repaired.
    """
    chunks = iter_text_chunks(source, declarations=not html)
    if html:
        tokens = HTMLTokenizer(correlation_id=correlation_id).tokenize(chunks)
    else:
        tokens = XMLTokenizer(strict=True, correlation_id=correlation_id).tokenize(chunks)
    return TreeBuilder(html=html, correlation_id=correlation_id).build(tokens)


def project_document(
    source: Source,
    html: bool = False,
    depth: int = UNLIMITED_DEPTH,
    correlation_id: Optional[str] = None,
) -> Dict[str, Any]:
    return _project_document(build_tree(source, html, correlation_id), depth)
