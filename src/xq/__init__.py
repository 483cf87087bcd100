"""xq: streaming XML, HTML and JSON pretty-printer and query tool.

Levels of use:
- Formatting functions - format_xml(), format_html(), format_json()
- Queries and conversion - xpath_query(), css_query(), process_as_json()
- Document processing - process_document(), run_batch()
"""

__version__ = "1.3.0"

from .api import (
    ContentType,
    ProcessingOptions,
    detect_format,
    process_as_json,
    process_document,
    run_batch,
)
from .formatting import format_html, format_json, format_xml
from .query import css_query, xpath_query
from .shared.colors import ColorMode
from .shared.config import FormatOptions, XQConfig
from .shared.errors import ParseError, ProjectionInvariantError, QueryError, XQError
from .tree import project, project_document

__all__ = [
    "__version__",

    # Formatting
    "format_html",
    "format_json",
    "format_xml",

    # Queries and conversion
    "css_query",
    "xpath_query",
    "process_as_json",
    "project",
    "project_document",

    # Document processing
    "ContentType",
    "ProcessingOptions",
    "detect_format",
    "process_document",
    "run_batch",

    # Configuration and errors
    "ColorMode",
    "FormatOptions",
    "XQConfig",
    "ParseError",
    "ProjectionInvariantError",
    "QueryError",
    "XQError",
]
