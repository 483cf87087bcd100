"""Structured logging utilities for xq.

Loggers carry a correlation ID and component name so that concurrent
document pipelines can be told apart in debug output. Library code only
creates loggers; handlers are configured by the CLI.
"""

import logging
import uuid
from typing import Any, Dict, Optional

CORRELATION_ID_LENGTH = 8


class CorrelationLogger:
    """Logger that adds the component and correlation ID to every record.

    Args:
        name: Logger name (typically __name__)
        correlation_id: ID of the document pipeline the records belong to
        component: Component name; defaults to the last part of ``name``
    """

    def __init__(
        self,
        name: str,
        correlation_id: Optional[str] = None,
        component: Optional[str] = None
    ) -> None:
        self.logger = logging.getLogger(name)
        self.correlation_id = correlation_id
        self.component = component or name.split(".")[-1]

    def bind(self, correlation_id: Optional[str]) -> "CorrelationLogger":
        """Same logger and component, tagged with another correlation ID."""
        return CorrelationLogger(self.logger.name, correlation_id, self.component)

    def _log(
        self,
        level: int,
        message: str,
        extra: Optional[Dict[str, Any]],
        exc_info: bool,
    ) -> None:
        if not self.logger.isEnabledFor(level):
            return
        record_extra = {"component": self.component, "correlation_id": self.correlation_id}
        if extra:
            record_extra.update(extra)
        self.logger.log(level, message, extra=record_extra, exc_info=exc_info)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None,
              exc_info: bool = False) -> None:
        self._log(logging.DEBUG, message, extra, exc_info)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None,
             exc_info: bool = False) -> None:
        self._log(logging.INFO, message, extra, exc_info)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None,
                exc_info: bool = False) -> None:
        self._log(logging.WARNING, message, extra, exc_info)

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None,
              exc_info: bool = True) -> None:
        """Log an error, with the active exception's traceback by default."""
        self._log(logging.ERROR, message, extra, exc_info)

    def critical(self, message: str, extra: Optional[Dict[str, Any]] = None,
                 exc_info: bool = True) -> None:
        self._log(logging.CRITICAL, message, extra, exc_info)


def new_correlation_id() -> str:
    """Return a short random identifier for one document pipeline."""
    return uuid.uuid4().hex[:CORRELATION_ID_LENGTH]


def get_logger(
    name: str,
    correlation_id: Optional[str] = None,
    component: Optional[str] = None
) -> CorrelationLogger:
    """Get a correlation-aware logger for ``name``."""
    return CorrelationLogger(name, correlation_id, component)
