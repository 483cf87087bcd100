"""Exception hierarchy shared by every xq component."""

from typing import Optional


class XQError(Exception):
    """Base class for all errors raised by xq."""


class ParseError(XQError):
    """Malformed input that the token source could not recover from."""

    def __init__(self, message: str, line: Optional[int] = None) -> None:
        self.message = message
        self.line = line
        if line is not None:
            super().__init__(f"syntax error on line {line}: {message}")
        else:
            super().__init__(message)


class QueryError(XQError):
    """Invalid selector syntax or a fault raised while evaluating a selector."""


class ProjectionInvariantError(XQError):
    """The tree projector met a node kind outside its closed vocabulary.

    This is never recoverable: it means a token source produced a node the
    projector has no rule for.
    """


class PipelineCancelledError(XQError):
    """A document pipeline was stopped because a sibling pipeline failed."""
