"""Shared utilities for xq.

This package provides the configuration objects, error hierarchy, result
types, color palettes and logging helpers used across all layers.
"""

from .colors import ColorMode, Palette, resolve_palette
from .config import (
    ConfigError,
    ConfigValidationError,
    FormatOptions,
    XQConfig,
    default_config_path,
)
from .errors import (
    ParseError,
    PipelineCancelledError,
    ProjectionInvariantError,
    QueryError,
    XQError,
)
from .logging import CorrelationLogger, get_logger
from .result import BatchResult, DocumentResult

__all__ = [
    "ColorMode",
    "Palette",
    "resolve_palette",
    "ConfigError",
    "ConfigValidationError",
    "FormatOptions",
    "XQConfig",
    "default_config_path",
    "ParseError",
    "PipelineCancelledError",
    "ProjectionInvariantError",
    "QueryError",
    "XQError",
    "CorrelationLogger",
    "get_logger",
    "BatchResult",
    "DocumentResult",
]
