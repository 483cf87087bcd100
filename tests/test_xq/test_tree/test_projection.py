"""Tests for the ordered JSON projection."""

import io
import json

import pytest

from xq.shared.errors import ParseError, ProjectionInvariantError
from xq.tokenization.tokens import QName
from xq.tree.builder import DocumentNode, ElementNode, Node, TextNode
from xq.tree.projection import project, project_document, write_json

NESTED = "<root><child1><grandchild>value</grandchild></child1><child2>text</child2></root>"


def as_json(value):
    out = io.StringIO()
    write_json(value, out, compact=True)
    return out.getvalue()


class TestProjectDocument:
    """Test projection of parsed documents."""

    def test_unlimited_depth(self):
        """Test that full structure is kept."""
        assert as_json(project_document(NESTED)) == (
            '{"root":{"child1":{"grandchild":"value"},"child2":"text"}}\n'
        )

    def test_depth_one(self):
        """Test that children collapse to their text."""
        assert project_document(NESTED, depth=1) == {"root": {"child1": "value", "child2": "text"}}

    def test_depth_zero(self):
        """Test that the root collapses to its text."""
        assert project_document(NESTED, depth=0) == {"root": "value\ntext"}

    def test_sibling_order_preserved(self):
        """Test that keys keep document order in the output string."""
        output = as_json(project_document("<r><c>1</c><a>2</a><b>3</b></r>"))
        assert output.index('"c"') < output.index('"a"') < output.index('"b"')

    def test_repeated_tags_merge(self):
        """Test that repeated siblings become a list."""
        document = project_document("<r><i>1</i><x/><i>2</i><i>3</i></r>")
        assert document == {"r": {"i": ["1", "2", "3"], "x": None}}
        assert list(document["r"]) == ["i", "x"]

    def test_attributes_and_mixed_text(self):
        """Test attributes first and text as a sidecar key."""
        assert project_document('<a id="1" xml:lang="en">x<b/>y</a>') == {
            "a": {"@id": "1", "@lang": "en", "b": None, "#text": "x\ny"},
        }

    def test_empty_and_whitespace_only_are_null(self):
        """Test that blank elements project like self-closed ones."""
        assert project_document("<r><a/><b>   \n </b></r>") == {"r": {"a": None, "b": None}}

    def test_comments_and_pis_omitted(self):
        """Test that non-content nodes are dropped."""
        assert project_document("<?pi x?><r><!-- c --><?p y?>v</r>") == {"r": "v"}

    def test_text_around_root(self):
        """Test text outside the root element."""
        document = DocumentNode([TextNode(" lead "), ElementNode(QName("", "r"))])
        assert project(document) == {"r": None, "#text": "lead"}

    def test_html(self):
        """Test projection of an HTML document."""
        source = "<!DOCTYPE html><html><body><p>Hi</p><br><p>There</p></body></html>"
        assert project_document(source, html=True) == {
            "html": {"body": {"p": ["Hi", "There"], "br": None}},
        }

    def test_malformed_xml_is_rejected(self):
        """Test that projection does not repair input."""
        with pytest.raises(ParseError):
            project_document("<a><b></a>")

    def test_empty_document(self):
        """Test an empty input."""
        assert project_document("") == {}


class TestProjectNode:
    """Test projection of individual nodes."""

    def test_text_node(self):
        """Test a bare text node."""
        assert project(TextNode("  x  ")) == "x"

    def test_unknown_node_type(self):
        """Test that foreign nodes are an invariant violation."""
        class Foreign(Node):
            pass

        with pytest.raises(ProjectionInvariantError):
            project(Foreign())

    def test_unknown_child_node(self):
        """Test the invariant check below the root."""
        class Foreign(Node):
            pass

        element = ElementNode(QName("", "a"), children=[Foreign()])
        with pytest.raises(ProjectionInvariantError):
            project(DocumentNode([element]))


class TestWriteJSON:
    """Test serialization of projected values."""

    def test_indented(self):
        """Test pretty output through the re-emitter."""
        out = io.StringIO()
        write_json({"a": {"b": ["x", None]}}, out)
        assert out.getvalue() == (
            "{\n"
            '  "a": {\n'
            '    "b": [\n'
            '      "x",\n'
            "      null\n"
            "    ]\n"
            "  }\n"
            "}\n"
        )

    def test_round_trips_through_json(self):
        """Test that output is valid JSON."""
        value = {"k": 'quote " and \\ slash', "n": None}
        assert json.loads(as_json(value)) == value
