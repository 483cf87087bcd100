"""Tests for errors, result objects and logging helpers."""

import logging

import pytest

from xq.shared.errors import ParseError, PipelineCancelledError, QueryError, XQError
from xq.shared.logging import CorrelationLogger, get_logger, new_correlation_id
from xq.shared.result import BatchResult, DocumentResult


class TestParseError:
    """Test parse error messages."""

    def test_message_with_line(self):
        """Test that the line number prefixes the message."""
        error = ParseError("unexpected EOF", 3)
        assert str(error) == "syntax error on line 3: unexpected EOF"
        assert error.message == "unexpected EOF"
        assert error.line == 3

    def test_message_without_line(self):
        """Test a parse error without position."""
        assert str(ParseError("bad charset")) == "bad charset"

    def test_hierarchy(self):
        """Test that every error derives from XQError."""
        for cls in (ParseError, QueryError, PipelineCancelledError):
            assert issubclass(cls, XQError)


class TestDocumentResult:
    """Test document result validation."""

    def test_success_cannot_carry_error(self):
        """Test result consistency check."""
        with pytest.raises(ValueError):
            DocumentResult("a.xml", success=True, error=ParseError("x"))

    def test_negative_bytes(self):
        """Test byte count validation."""
        with pytest.raises(ValueError):
            DocumentResult("a.xml", bytes_written=-1)


class TestBatchResult:
    """Test batch result aggregation."""

    def test_empty_batch_succeeds(self):
        """Test that nothing to do is success."""
        batch = BatchResult()
        assert batch.success is True
        assert batch.first_error is None

    def test_first_error_prefers_cause_over_cancellation(self):
        """Test that the error that stopped the batch is reported."""
        cause = ParseError("unexpected EOF", 1)
        batch = BatchResult([
            DocumentResult("a", success=False, error=PipelineCancelledError("a: cancelled")),
            DocumentResult("b", success=False, error=cause),
            DocumentResult("c"),
        ])
        assert batch.success is False
        assert batch.first_error is cause
        assert [result.source for result in batch.failed] == ["a", "b"]

    def test_only_cancellations(self):
        """Test that a cancellation is reported when nothing else failed."""
        cancelled = PipelineCancelledError("x")
        batch = BatchResult([DocumentResult("a", success=False, error=cancelled)])
        assert batch.first_error is cancelled


class TestCorrelationLogger:
    """Test structured logging helpers."""

    def test_extra_fields(self, caplog):
        """Test that component and correlation ID reach the record."""
        logger = get_logger("xq.test", "abc123", "unit")
        assert isinstance(logger, CorrelationLogger)
        with caplog.at_level(logging.DEBUG, logger="xq.test"):
            logger.debug("hello", extra={"key": "value"})

        record = caplog.records[-1]
        assert record.component == "unit"
        assert record.correlation_id == "abc123"
        assert record.key == "value"

    def test_component_defaults_to_module(self):
        """Test the default component name."""
        assert get_logger("xq.formatting.xml").component == "xml"

    def test_correlation_ids_are_short_and_unique(self):
        """Test correlation ID generation."""
        first, second = new_correlation_id(), new_correlation_id()
        assert len(first) == 8
        assert first != second

    def test_bind_keeps_component(self, caplog):
        """Test that a bound logger only swaps the correlation ID."""
        logger = get_logger("xq.test", "first", "unit").bind("second")
        with caplog.at_level(logging.DEBUG, logger="xq.test"):
            logger.debug("bound")

        record = caplog.records[-1]
        assert record.component == "unit"
        assert record.correlation_id == "second"

    def test_disabled_level_skipped(self, caplog):
        """Test that records below the logger level are not created."""
        logger = get_logger("xq.quiet")
        with caplog.at_level(logging.ERROR, logger="xq.quiet"):
            logger.debug("hidden")
        assert caplog.records == []
