"""Document processing API: sniffing, single documents, batches and paging."""

from .detection import ContentType, detect_format, is_html, is_json
from .pager import open_sink, pager_command
from .pipeline import (
    BoundedPipe,
    DocumentPipeline,
    rewrite_in_place,
    run_batch,
)
from .processing import (
    ProcessingMode,
    ProcessingOptions,
    format_document,
    process_as_json,
    process_document,
)

__all__ = [
    "ContentType",
    "detect_format",
    "is_html",
    "is_json",
    "open_sink",
    "pager_command",
    "BoundedPipe",
    "DocumentPipeline",
    "rewrite_in_place",
    "run_batch",
    "ProcessingMode",
    "ProcessingOptions",
    "format_document",
    "process_as_json",
    "process_document",
]
