"""Concurrent document pipelines.

Each input document is produced on a worker thread into a bounded pipe while
the caller drains the pipes in input order, so output order never depends on
which document finishes first. A slow consumer stalls producers once their
pipe fills up. After the first fatal error every sibling pipeline is
cancelled.
"""

import contextlib
import os
import queue
import tempfile
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from pathlib import Path
from typing import IO, Any, Iterator, List, Optional, Sequence, TextIO, Tuple, Union

from xq.api.processing import ProcessingOptions, process_document
from xq.shared.colors import Palette, resolve_palette
from xq.shared.errors import PipelineCancelledError
from xq.shared.logging import get_logger, new_correlation_id
from xq.shared.result import BatchResult, DocumentResult

DEFAULT_PIPE_SIZE = 64
DEFAULT_FLUSH_SIZE = 8 * 1024
DEFAULT_MAX_WORKERS = 4
PUT_TIMEOUT = 0.05
STDIN_NAME = "<stdin>"

InputSource = Union[str, "os.PathLike[str]", IO[Any]]

logger = get_logger(__name__, component="pipeline")

_END = object()


class BoundedPipe:
    """Text writer backed by a bounded queue of chunks.

    Small writes are batched up to ``flush_size`` characters before they are
    queued. ``close`` marks the end of the stream, optionally with the error
    that ended it; iterating the pipe yields chunks and re-raises that error.
    """

    def __init__(
        self,
        maxsize: int = DEFAULT_PIPE_SIZE,
        flush_size: int = DEFAULT_FLUSH_SIZE,
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize)
        self._buffer: List[str] = []
        self._buffered = 0
        self.flush_size = flush_size
        self.cancel_event = cancel_event or threading.Event()
        self.closed = False

    def write(self, text: str) -> int:
        if self.closed:
            raise ValueError("write to closed pipe")
        if self.cancel_event.is_set():
            raise PipelineCancelledError("pipeline cancelled")
        if text:
            self._buffer.append(text)
            self._buffered += len(text)
            if self._buffered >= self.flush_size:
                self.flush()
        return len(text)

    def flush(self) -> None:
        if not self._buffer:
            return
        chunk = "".join(self._buffer)
        self._buffer = []
        self._buffered = 0
        self._put(chunk)

    def isatty(self) -> bool:
        return False

    def close(self, error: Optional[BaseException] = None) -> None:
        """End the stream, handing ``error`` to the consumer if given."""
        if self.closed:
            return
        try:
            if error is None:
                self.flush()
            self._put((_END, error))
        except PipelineCancelledError:
            logger.debug("Pipe closed after cancellation")
        self.closed = True

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def _put(self, item: Any) -> None:
        while True:
            try:
                self._queue.put(item, timeout=PUT_TIMEOUT)
                return
            except queue.Full:
                if self.cancel_event.is_set():
                    raise PipelineCancelledError("pipeline cancelled") from None

    def __iter__(self) -> Iterator[str]:
        while True:
            item = self._queue.get()
            if isinstance(item, tuple) and item and item[0] is _END:
                if item[1] is not None:
                    raise item[1]
                return
            yield item


def source_name(source: InputSource) -> str:
    if isinstance(source, (str, os.PathLike)):
        return os.fspath(source)
    return getattr(source, "name", None) or STDIN_NAME


def open_source(source: InputSource) -> Any:
    """Context manager yielding a binary (or already open) stream for ``source``."""
    if isinstance(source, (str, os.PathLike)):
        return open(source, "rb")
    return contextlib.nullcontext(source)


class DocumentPipeline:
    """One document produced on a worker thread into a ``BoundedPipe``."""

    def __init__(
        self,
        source: InputSource,
        options: ProcessingOptions,
        palette: Palette,
        cancel_event: threading.Event,
        pipe_size: int = DEFAULT_PIPE_SIZE,
    ) -> None:
        self.source = source
        self.name = source_name(source)
        self.options = options
        self.palette = palette
        self.correlation_id = new_correlation_id()
        self.pipe = BoundedPipe(pipe_size, cancel_event=cancel_event)
        self.logger = get_logger(__name__, self.correlation_id, "document_pipeline")

    def produce(self) -> DocumentResult:
        """Process the document into the pipe; runs on a worker thread."""
        start = time.perf_counter()
        try:
            if self.pipe.cancelled:
                raise PipelineCancelledError(f"{self.name}: cancelled before start")
            with open_source(self.source) as stream:
                process_document(
                    stream, self.pipe, self.options, self.palette, self.correlation_id
                )
        except Exception as e:
            # Forwarded to the consumer through the pipe
            self.pipe.close(e)
            return DocumentResult(
                self.name, success=False, error=e,
                processing_time_ms=_elapsed_ms(start), correlation_id=self.correlation_id,
            )

        self.pipe.close()
        return DocumentResult(
            self.name, processing_time_ms=_elapsed_ms(start), correlation_id=self.correlation_id
        )

    def drain(self, sink: TextIO) -> int:
        """Copy the pipe into ``sink`` and return the number of bytes written.

        Raises:
            Exception: Whatever ended the producer
        """
        written = 0
        for chunk in self.pipe:
            sink.write(chunk)
            written += len(chunk.encode("utf-8"))
        return written


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0


def rewrite_in_place(
    source: Union[str, "os.PathLike[str]"],
    options: ProcessingOptions,
    palette: Palette,
    cancel_event: threading.Event,
) -> DocumentResult:
    """Format ``source`` into a sibling temp file and swap it in atomically."""
    name = os.fspath(source)
    correlation_id = new_correlation_id()
    start = time.perf_counter()
    if cancel_event.is_set():
        return DocumentResult(
            name, success=False, error=PipelineCancelledError(f"{name}: cancelled before start"),
            correlation_id=correlation_id,
        )

    directory = Path(name).resolve().parent
    fd, temp_path = tempfile.mkstemp(prefix=".xq-", suffix=".tmp", dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as temp_file:
            with open(name, "rb") as stream:
                process_document(stream, temp_file, options, palette, correlation_id)
        written = os.path.getsize(temp_path)
        os.replace(temp_path, name)
    except Exception as e:
        cancel_event.set()
        with contextlib.suppress(FileNotFoundError):
            os.unlink(temp_path)
        return DocumentResult(
            name, success=False, error=e,
            processing_time_ms=_elapsed_ms(start), correlation_id=correlation_id,
        )

    return DocumentResult(
        name, bytes_written=written,
        processing_time_ms=_elapsed_ms(start), correlation_id=correlation_id,
    )


def _worker_count(count: int, max_workers: Optional[int]) -> int:
    return max(1, min(count, max_workers or DEFAULT_MAX_WORKERS))


def _run_streaming(
    sources: Sequence[InputSource],
    options: ProcessingOptions,
    sink: TextIO,
    palette: Palette,
    max_workers: Optional[int],
    cancel_event: threading.Event,
) -> List[DocumentResult]:
    pipelines = [DocumentPipeline(source, options, palette, cancel_event) for source in sources]
    drained: List[Tuple[bool, int, Optional[BaseException]]] = []

    with ThreadPoolExecutor(max_workers=_worker_count(len(sources), max_workers)) as executor:
        futures = [executor.submit(pipeline.produce) for pipeline in pipelines]
        for pipeline in pipelines:
            if cancel_event.is_set():
                drained.append((False, 0, None))
                continue
            try:
                drained.append((True, pipeline.drain(sink), None))
            except Exception as e:
                cancel_event.set()
                drained.append((True, 0, e))
        results = [future.result() for future in futures]

    final = []
    for result, (reached, written, error) in zip(results, drained):
        if not reached:
            # Never written out, even if the producer finished
            result = DocumentResult(
                result.source, success=False,
                error=result.error or PipelineCancelledError(f"{result.source}: cancelled"),
                processing_time_ms=result.processing_time_ms,
                correlation_id=result.correlation_id,
            )
        elif result.success and error is not None:
            # The sink failed while the producer succeeded
            result = replace(result, success=False, error=error)
        elif result.success:
            result = replace(result, bytes_written=written)
        final.append(result)
    return final


def run_batch(
    sources: Sequence[InputSource],
    options: ProcessingOptions,
    sink: Optional[TextIO] = None,
    in_place: bool = False,
    max_workers: Optional[int] = None,
    palette: Optional[Palette] = None,
) -> BatchResult:
    """Process several documents concurrently.

    Args:
        sources: File paths or open streams, in output order
        options: Processing options shared by every document
        sink: Destination for stream mode
        in_place: Rewrite each file with its own output instead of writing to ``sink``
        max_workers: Upper bound on worker threads
        palette: Colors resolved by the caller; resolved from ``options`` when omitted

    Returns:
        BatchResult with one result per source, in input order
    """
    if not in_place and sink is None:
        raise ValueError("sink is required unless rewriting files in place")
    if in_place:
        streams = [source for source in sources if not isinstance(source, (str, os.PathLike))]
        if streams:
            raise ValueError("in-place mode requires file paths")

    if palette is None:
        palette = resolve_palette(options.format_options.color_mode, None if in_place else sink)

    cancel_event = threading.Event()
    logger.debug(
        "Starting batch",
        extra={"documents": len(sources), "in_place": in_place, "max_workers": max_workers},
    )

    if in_place:
        with ThreadPoolExecutor(max_workers=_worker_count(len(sources), max_workers)) as executor:
            futures = [
                executor.submit(rewrite_in_place, source, options, palette, cancel_event)
                for source in sources
            ]
            results = [future.result() for future in futures]
    else:
        results = _run_streaming(sources, options, sink, palette, max_workers, cancel_event)

    batch = BatchResult(results)
    for failed in batch.failed:
        if not isinstance(failed.error, PipelineCancelledError):
            logger.bind(failed.correlation_id).debug(
                "Document failed", extra={"source": failed.source}
            )
    return batch
