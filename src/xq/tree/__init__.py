"""Document tree and its ordered JSON projection."""

from .builder import (
    CommentNode,
    DirectiveNode,
    DocumentNode,
    ElementNode,
    Node,
    NodeType,
    ProcessingInstructionNode,
    TextNode,
    TreeBuilder,
)
from .projection import (
    TEXT_KEY,
    UNLIMITED_DEPTH,
    build_tree,
    project,
    project_document,
    write_json,
)

__all__ = [
    "CommentNode",
    "DirectiveNode",
    "DocumentNode",
    "ElementNode",
    "Node",
    "NodeType",
    "ProcessingInstructionNode",
    "TextNode",
    "TreeBuilder",
    "TEXT_KEY",
    "UNLIMITED_DEPTH",
    "build_tree",
    "project",
    "project_document",
    "write_json",
]
