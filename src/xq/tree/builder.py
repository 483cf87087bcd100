"""Document tree built from markup token streams.

The tree is only needed where structure matters as a whole, such as the JSON
projection; pretty-printing works on the token stream directly.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import ClassVar, FrozenSet, Iterable, Iterator, List, Optional, Union

from xq.shared.logging import get_logger
from xq.tokenization.html_tokenizer import VOID_ELEMENTS
from xq.tokenization.tokens import (
    Attribute,
    EndTag,
    MarkupToken,
    QName,
    StartTag,
    Text,
    TokenType,
)


class NodeType(Enum):
    """Closed set of node kinds a tree can contain."""

    DOCUMENT = auto()
    ELEMENT = auto()
    TEXT = auto()
    COMMENT = auto()
    PROCESSING_INSTRUCTION = auto()
    DIRECTIVE = auto()


class Node:
    """Common interface of tree nodes."""

    node_type: ClassVar[NodeType]

    def iter_children(self) -> Iterator["Node"]:
        return iter(getattr(self, "children", ()))


@dataclass(eq=False)
class DocumentNode(Node):
    children: List[Node] = field(default_factory=list)

    node_type: ClassVar[NodeType] = NodeType.DOCUMENT

    def iter_elements(self) -> Iterator["ElementNode"]:
        """Depth-first iteration over every element in the document."""
        stack = [child for child in reversed(self.children)]
        while stack:
            node = stack.pop()
            if isinstance(node, ElementNode):
                yield node
                stack.extend(reversed(node.children))


@dataclass(eq=False)
class ElementNode(Node):
    name: QName
    attributes: List[Attribute] = field(default_factory=list)
    children: List[Node] = field(default_factory=list)

    node_type: ClassVar[NodeType] = NodeType.ELEMENT

    @property
    def tag(self) -> str:
        return self.name.local

    def text_content(self) -> str:
        """Trimmed text of this element and its descendants, one piece per line."""
        parts = []
        for child in self.children:
            if isinstance(child, TextNode):
                text = child.data.strip()
            elif isinstance(child, ElementNode):
                text = child.text_content()
            else:
                continue
            if text:
                parts.append(text)
        return "\n".join(parts)


@dataclass(eq=False)
class TextNode(Node):
    data: str

    node_type: ClassVar[NodeType] = NodeType.TEXT


@dataclass(eq=False)
class CommentNode(Node):
    data: str

    node_type: ClassVar[NodeType] = NodeType.COMMENT


@dataclass(eq=False)
class ProcessingInstructionNode(Node):
    target: str
    instruction: str = ""

    node_type: ClassVar[NodeType] = NodeType.PROCESSING_INSTRUCTION


@dataclass(eq=False)
class DirectiveNode(Node):
    data: str

    node_type: ClassVar[NodeType] = NodeType.DIRECTIVE


ContainerNode = Union[DocumentNode, ElementNode]


class TreeBuilder:
    """Folds a markup token stream into a ``DocumentNode``.

    Args:
        html: Close void elements immediately and tolerate end tags that do
            not match the innermost open element
        void_elements: Element names treated as void in HTML mode
        correlation_id: Correlation ID for log records
    """

    def __init__(
        self,
        html: bool = False,
        void_elements: FrozenSet[str] = VOID_ELEMENTS,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.html = html
        self.void_elements = void_elements
        self.logger = get_logger(__name__, correlation_id, "tree_builder")
        self.document = DocumentNode()
        self._stack: List[ContainerNode] = [self.document]

    def build(self, tokens: Iterable[MarkupToken]) -> DocumentNode:
        for token in tokens:
            self.feed(token)
        return self.finish()

    def feed(self, token: MarkupToken) -> None:
        token_type = token.type
        if token_type is TokenType.START_TAG:
            self._process_start_tag(token)
        elif token_type is TokenType.END_TAG:
            self._process_end_tag(token)
        elif token_type is TokenType.TEXT:
            self._process_text(token)
        elif token_type is TokenType.COMMENT:
            self._append(CommentNode(token.data))
        elif token_type is TokenType.PROCESSING_INSTRUCTION:
            self._append(ProcessingInstructionNode(token.target, token.instruction))
        elif token_type in (TokenType.DIRECTIVE, TokenType.DOCTYPE):
            self._append(DirectiveNode(token.data))
        else:
            raise ValueError(f"token cannot be placed in a markup tree: {token!r}")

    def finish(self) -> DocumentNode:
        if len(self._stack) > 1:
            self.logger.debug(
                "Elements left open at end of input",
                extra={"open_elements": [node.tag for node in self._stack[1:]]},
            )
        self._stack = [self.document]
        return self.document

    def _append(self, node: Node) -> None:
        self._stack[-1].children.append(node)

    def _process_start_tag(self, token: StartTag) -> None:
        element = ElementNode(token.name, list(token.attributes))
        self._append(element)
        if self.html and (token.self_closing or token.name.local in self.void_elements):
            return
        self._stack.append(element)

    def _process_end_tag(self, token: EndTag) -> None:
        for index in range(len(self._stack) - 1, 0, -1):
            node = self._stack[index]
            if node.name == token.name:
                del self._stack[index:]
                return
        self.logger.debug("Ignoring unmatched end tag", extra={"tag": str(token.name)})

    def _process_text(self, token: Text) -> None:
        children = self._stack[-1].children
        if children and isinstance(children[-1], TextNode):
            children[-1].data += token.data
        else:
            children.append(TextNode(token.data))
