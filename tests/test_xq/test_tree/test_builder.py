"""Tests for the document tree builder."""

from xq.tokenization.html_tokenizer import tokenize_html
from xq.tokenization.xml_tokenizer import tokenize_xml
from xq.tree.builder import (
    CommentNode,
    DirectiveNode,
    ElementNode,
    NodeType,
    ProcessingInstructionNode,
    TextNode,
    TreeBuilder,
)


def xml_tree(text):
    return TreeBuilder().build(tokenize_xml([text]))


def html_tree(text):
    return TreeBuilder(html=True).build(tokenize_html([text]))


class TestTreeBuilder:
    """Test folding tokens into a tree."""

    def test_structure(self):
        """Test nesting of elements, text and other nodes."""
        document = xml_tree('<?pi x?><r a="1"><!--c--><b>t</b>tail</r>')
        pi, root = document.children
        assert isinstance(pi, ProcessingInstructionNode)
        assert pi.target == "pi"
        assert root.tag == "r"
        assert root.attributes[0].value == "1"
        comment, child, tail = root.children
        assert isinstance(comment, CommentNode)
        assert child.children[0].data == "t"
        assert isinstance(tail, TextNode)
        assert tail.data == "tail"

    def test_node_types(self):
        """Test the closed node type set."""
        document = xml_tree("<!DOCTYPE r><r/>")
        assert document.node_type is NodeType.DOCUMENT
        assert isinstance(document.children[0], DirectiveNode)
        assert document.children[1].node_type is NodeType.ELEMENT

    def test_iter_elements_depth_first(self):
        """Test document order iteration."""
        document = xml_tree("<a><b><c/></b><d/></a>")
        assert [element.tag for element in document.iter_elements()] == ["a", "b", "c", "d"]

    def test_text_content(self):
        """Test trimmed descendant text."""
        document = xml_tree("<a> x <b> y </b><c/> z </a>")
        assert document.children[0].text_content() == "x\ny\nz"

    def test_html_void_elements_are_leaves(self):
        """Test that void elements take no children."""
        document = html_tree("<p>a<br>b</p>")
        paragraph = document.children[0]
        assert [type(node) for node in paragraph.children] == [TextNode, ElementNode, TextNode]
        assert paragraph.children[1].children == []

    def test_html_unmatched_end_tag_ignored(self):
        """Test tolerance of stray end tags."""
        document = html_tree("<div><span>x</div></span>")
        div = document.children[0]
        assert div.children[0].tag == "span"
        assert len(document.children) == 1
