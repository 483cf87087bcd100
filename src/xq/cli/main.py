"""Main CLI entry point for the xq command-line tool.

Pretty-prints XML, HTML and JSON, extracts content with XPath or CSS
selectors, and converts markup to JSON.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import IO, Any, List, Optional, Sequence, TextIO

from xq import __version__
from xq.api.pager import open_sink
from xq.api.pipeline import run_batch
from xq.api.processing import ProcessingOptions
from xq.shared.colors import Palette, resolve_palette
from xq.shared.config import XQConfig, default_config_path
from xq.shared.errors import XQError
from xq.shared.logging import get_logger
from xq.tree.projection import UNLIMITED_DEPTH

logger = get_logger(__name__, component="cli")


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser.

    Options that can also come from the config file default to ``None`` so
    that an absent flag falls back to the file's value.
    """
    parser = argparse.ArgumentParser(
        prog="xq",
        description="Command-line XML and HTML beautifier and content extractor",
    )

    parser.add_argument("--version", "-v", action="version", version=f"xq {__version__}")
    parser.add_argument(
        "files",
        nargs="*",
        type=Path,
        help="Files to process (default: standard input)"
    )

    query = parser.add_argument_group("queries")
    query.add_argument("--xpath", "-x", metavar="EXPR", help="Extract the node(s) from XML")
    query.add_argument("--extract", "-e", metavar="EXPR", help="Extract a single node from XML")
    query.add_argument("--query", "-q", metavar="SELECTOR",
                       help="Extract the node(s) using CSS selector")
    query.add_argument(
        "--attr", "-a",
        metavar="NAME",
        help="Extract an attribute value instead of node content for provided CSS query"
    )
    query.add_argument("--node", "-n", action="store_true", default=None,
                       help="Return the node content instead of text")

    output = parser.add_argument_group("output")
    output.add_argument("--html", "-m", action="store_true", default=None,
                        help="Use HTML formatter")
    output.add_argument("--json", "-j", action="store_true",
                        help="Output the result as JSON")
    output.add_argument("--compact", action="store_true",
                        help="Compact JSON output (no indentation)")
    output.add_argument(
        "--depth", "-d",
        type=int,
        default=UNLIMITED_DEPTH,
        help="Maximum nesting depth for JSON output (default: -1, unlimited)"
    )
    output.add_argument("--in-place", "-i", action="store_true",
                        help="Format the files in place instead of printing them")
    output.add_argument("--indent", type=int, default=None,
                        help="Use the given number of spaces for indentation")
    output.add_argument("--tab", action="store_true", default=None,
                        help="Use tabs for indentation")
    output.add_argument("--no-color", action="store_true", default=None,
                        help="Disable colorful output")
    output.add_argument("--color", "-c", action="store_true", default=None,
                        help="Force colorful output")

    general = parser.add_argument_group("general")
    general.add_argument("--config", type=Path, metavar="PATH",
                         help="Configuration file path (default: ~/.xq)")
    general.add_argument("--verbose", action="store_true", help="Enable debug logging")
    general.add_argument("--quiet", action="store_true", help="Only log errors")

    return parser


def _pick(flag: Optional[Any], default: Any) -> Any:
    return default if flag is None else flag


def load_config(args: argparse.Namespace) -> XQConfig:
    """Config file values overridden by the flags given on the command line."""
    config = XQConfig.from_file(args.config or default_config_path())
    color, no_color = config.color, config.no_color
    # A color flag on the command line replaces both color settings of the file
    if args.color or args.no_color:
        color, no_color = bool(args.color), bool(args.no_color)
    return XQConfig(
        indent=_pick(args.indent, config.indent),
        tab=_pick(args.tab, config.tab),
        no_color=no_color,
        color=color,
        html=_pick(args.html, config.html),
        node=_pick(args.node, config.node),
    )


def build_options(args: argparse.Namespace, config: XQConfig) -> ProcessingOptions:
    """Translate parsed arguments into processing options.

    Raises:
        ConfigValidationError: If the indentation or option combination is invalid
    """
    return ProcessingOptions(
        format_options=config.format_options(),
        force_html=config.html,
        xpath=args.xpath or args.extract,
        single_node=not args.xpath and bool(args.extract),
        css=args.query,
        attribute=args.attr,
        with_tags=config.node,
        to_json=args.json,
        compact=args.compact,
        depth=args.depth,
    )


def configure_logging(args: argparse.Namespace) -> None:
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    elif args.quiet:
        logging.basicConfig(level=logging.ERROR)
    else:
        logging.basicConfig(level=logging.WARNING)


def run_stream(
    sources: Sequence[Any],
    options: ProcessingOptions,
    stdout: TextIO,
) -> int:
    """Process ``sources`` to standard output, through the pager when configured."""
    palette = resolve_palette(options.format_options.color_mode, stdout)
    with open_sink(stdout) as sink:
        batch = run_batch(sources, options, sink, palette=palette)
    if not batch.success:
        print(f"Error: {batch.first_error}", file=sys.stderr)
        return 1
    return 0


def run_in_place(files: List[Path], options: ProcessingOptions) -> int:
    """Rewrite every file with its formatted output."""
    batch = run_batch(files, options, in_place=True, palette=Palette.plain())
    for result in batch.results:
        if result.success:
            logger.info(f"Formatted {result.source}", extra={"bytes_written": result.bytes_written})
    if not batch.success:
        print(f"Error: {batch.first_error}", file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[List[str]] = None, stdin: Optional[IO[Any]] = None,
         stdout: Optional[TextIO] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)
    configure_logging(args)

    stdin = stdin if stdin is not None else sys.stdin
    stdout = stdout if stdout is not None else sys.stdout

    try:
        config = load_config(args)
        options = build_options(args, config)

        if args.in_place:
            if not args.files:
                raise XQError("in-place mode requires at least one file")
            return run_in_place(args.files, options)

        if args.files:
            return run_stream(args.files, options, stdout)

        if stdin.isatty():
            parser.print_help(stdout)
            return 0
        return run_stream([getattr(stdin, "buffer", stdin)], options, stdout)

    except (XQError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


def run() -> None:
    """Console-script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
