"""Output sink that optionally pages through ``less``."""

import contextlib
import io
import os
import subprocess
from typing import Iterator, Mapping, Optional, TextIO

from xq.shared.logging import get_logger

PAGER_ENV = "PAGER"
SUPPORTED_PAGER = "less"
LESS_ARGS = ("--quit-if-one-screen", "--no-init", "--RAW-CONTROL-CHARS")

logger = get_logger(__name__, component="pager")


def pager_command(environ: Optional[Mapping[str, str]] = None) -> Optional[list]:
    """Command line for the pager, or None when output should go straight out.

    Only ``less`` is driven; the flags passed to it are ``less`` options.
    """
    env = os.environ if environ is None else environ
    if env.get(PAGER_ENV) != SUPPORTED_PAGER:
        return None
    return [SUPPORTED_PAGER, *LESS_ARGS]


@contextlib.contextmanager
def open_sink(
    stream: TextIO,
    environ: Optional[Mapping[str, str]] = None,
) -> Iterator[TextIO]:
    """Yield a writer whose output reaches ``stream``, through ``less`` when configured.

    Raises:
        OSError: If the pager cannot be started
    """
    command = pager_command(environ)
    if command is None:
        yield stream
        stream.flush()
        return

    stream.flush()
    logger.debug("Starting pager", extra={"command": command})
    process = subprocess.Popen(command, stdin=subprocess.PIPE, stdout=stream)
    writer = io.TextIOWrapper(process.stdin, encoding="utf-8", write_through=True)
    try:
        yield writer
    finally:
        with contextlib.suppress(BrokenPipeError):
            writer.close()
        process.wait()
