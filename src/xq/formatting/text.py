"""Whitespace normalization and escaping helpers for the formatters."""

import re

_HEAD_RUN = re.compile(r"^ *\n +")
_TAIL_RUN = re.compile(r"\n +$")

_ATTRIBUTE_ESCAPES = str.maketrans({
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&apos;",
    "\t": "&#x9;",
    "\n": "&#xA;",
    "\r": "&#xD;",
})
_TEXT_ESCAPES = str.maketrans({"&": "&amp;", "<": "&lt;", ">": "&gt;"})

CDATA_OPEN = "<![CDATA["
CDATA_CLOSE = "]]>"


def normalize_spaces(text: str, indent: str, depth: int) -> str:
    """Re-indent a text run for output at ``depth``.

    Whitespace-only text disappears. A run that starts with a newline and
    spaces is re-indented to ``depth``; one that ends with a newline and
    spaces is re-indented so the closing tag lines up at ``depth - 1``.
    Otherwise only trailing spaces are dropped. With an empty indent unit the
    re-indented runs collapse to nothing.
    """
    if not text.strip():
        return ""

    newline = "\n" if indent else ""
    if _HEAD_RUN.match(text):
        text = newline + indent * depth + text.lstrip(" \n")

    if _TAIL_RUN.search(text):
        text = text.rstrip(" \n") + newline + indent * max(depth - 1, 0)
    else:
        text = text.rstrip(" ")

    return text


def escape_attribute(value: str) -> str:
    """Escape an attribute value for a double-quoted XML or HTML attribute."""
    return value.translate(_ATTRIBUTE_ESCAPES)


def escape_text_content(text: str) -> str:
    """Entity-escape HTML text content."""
    return text.translate(_TEXT_ESCAPES)


def wrap_cdata(text: str) -> str:
    """Wrap text in a CDATA section, splitting any ``]]>`` it contains."""
    return CDATA_OPEN + text.replace(CDATA_CLOSE, "]]" + CDATA_CLOSE + CDATA_OPEN + ">") + CDATA_CLOSE


def escape_xml_text(text: str) -> str:
    """Protect XML text containing ``&``, ``<`` or ``]]>`` with a CDATA section.

    Surrounding whitespace stays outside the section so re-indentation keeps
    working when the output is formatted again.
    """
    if "&" not in text and "<" not in text and CDATA_CLOSE not in text:
        return text

    core = text.strip()
    start = text.index(core)
    return text[:start] + wrap_cdata(core) + text[start + len(core):]
