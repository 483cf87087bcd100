"""Command-line interface for xq."""

from .main import create_argument_parser, main, run

__all__ = ["create_argument_parser", "main", "run"]
