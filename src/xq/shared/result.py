"""Result objects describing document pipeline outcomes."""

from dataclasses import dataclass, field
from typing import List, Optional

from xq.shared.errors import PipelineCancelledError


@dataclass
class DocumentResult:
    """Outcome of one document pipeline."""

    source: str
    success: bool = True
    error: Optional[BaseException] = None
    bytes_written: int = 0
    processing_time_ms: float = 0.0
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate result consistency."""
        if self.success and self.error is not None:
            raise ValueError("A successful result cannot carry an error")
        if self.bytes_written < 0:
            raise ValueError("bytes_written must be >= 0")


@dataclass
class BatchResult:
    """Outcome of a multi-document run, ordered as the inputs were given."""

    results: List[DocumentResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(result.success for result in self.results)

    @property
    def first_error(self) -> Optional[BaseException]:
        """The error that stopped the batch, preferring it over the cancellations it caused."""
        errors = [result.error for result in self.results if result.error is not None]
        for error in errors:
            if not isinstance(error, PipelineCancelledError):
                return error
        return errors[0] if errors else None

    @property
    def failed(self) -> List[DocumentResult]:
        return [result for result in self.results if not result.success]
