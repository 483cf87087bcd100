"""Formatters that rebuild indentation from flat token streams."""

from .engine import BracketState, FormatterState, MarkupFormatter
from .html import RAW_TEXT_ELEMENTS, VOID_ELEMENTS, HTMLFormatter, format_html
from .json import JSONFormatter, format_json
from .text import (
    escape_attribute,
    escape_text_content,
    escape_xml_text,
    normalize_spaces,
    wrap_cdata,
)
from .xml import XMLFormatter, format_xml

__all__ = [
    "BracketState",
    "FormatterState",
    "MarkupFormatter",
    "HTMLFormatter",
    "JSONFormatter",
    "XMLFormatter",
    "RAW_TEXT_ELEMENTS",
    "VOID_ELEMENTS",
    "format_html",
    "format_json",
    "format_xml",
    "escape_attribute",
    "escape_text_content",
    "escape_xml_text",
    "normalize_spaces",
    "wrap_cdata",
]
