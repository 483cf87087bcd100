"""Token sources for XML, HTML and JSON input.

Each tokenizer consumes decoded text incrementally through ``feed``/``close``
and yields flat tokens in document order.
"""

from .html_tokenizer import VOID_ELEMENTS, HTMLTokenizer, tokenize_html
from .json_tokenizer import JSONTokenizer, tokenize_json
from .tokens import (
    XML_NAMESPACE,
    Attribute,
    Comment,
    Directive,
    Doctype,
    EndTag,
    JSONDelimiter,
    JSONLiteral,
    JSONNumber,
    JSONPosition,
    JSONString,
    JSONToken,
    MarkupToken,
    ProcessingInstruction,
    QName,
    StartTag,
    Text,
    TokenType,
)
from .xml_tokenizer import TokenizerState, XMLTokenizer, decode_entities, tokenize_xml

__all__ = [
    "HTMLTokenizer",
    "VOID_ELEMENTS",
    "JSONTokenizer",
    "XMLTokenizer",
    "TokenizerState",
    "decode_entities",
    "tokenize_html",
    "tokenize_json",
    "tokenize_xml",
    "XML_NAMESPACE",
    "Attribute",
    "Comment",
    "Directive",
    "Doctype",
    "EndTag",
    "JSONDelimiter",
    "JSONLiteral",
    "JSONNumber",
    "JSONPosition",
    "JSONString",
    "JSONToken",
    "MarkupToken",
    "ProcessingInstruction",
    "QName",
    "StartTag",
    "Text",
    "TokenType",
]
