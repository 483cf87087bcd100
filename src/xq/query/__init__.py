"""Selector engines: XPath through lxml and CSS through BeautifulSoup."""

from .css import attribute_value, css_query, css_query_string, rebuild_markup, select
from .xpath import (
    XPathPrinter,
    collect_namespaces,
    evaluate,
    parse_document,
    string_value,
    xpath_query,
    xpath_query_string,
)

__all__ = [
    "attribute_value",
    "css_query",
    "css_query_string",
    "rebuild_markup",
    "select",
    "XPathPrinter",
    "collect_namespaces",
    "evaluate",
    "parse_document",
    "string_value",
    "xpath_query",
    "xpath_query_string",
]
