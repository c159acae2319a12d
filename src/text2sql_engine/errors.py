"""
Errors
======

Failure taxonomy of the SQL pipeline. Only ``ExecutionError`` and
``StructuralMismatchError`` are ever retried, each with a small fixed bound.
"""

from text2sql_engine.models import CheckOutcome


class SqlEngineError(Exception):
    """Base class for all pipeline errors."""


class UnsafeStatementError(SqlEngineError):
    """Destructive, non read-only or malformed statement. Never retried verbatim."""


class EmptyStatementError(UnsafeStatementError):
    """Blank statement."""


class MultiStatementError(UnsafeStatementError):
    """More than one statement, or a terminator that is not trailing."""


class StructuralMismatchError(SqlEngineError):
    """Question intent and SQL shape disagree."""

    def __init__(self, outcome: CheckOutcome) -> None:
        super().__init__(outcome.hint)
        self.outcome = outcome


class ExecutionError(SqlEngineError):
    """The backend rejected the statement."""


class TranslationUnsupportedError(SqlEngineError):
    """Statement is outside the subset the document store translator accepts."""


class GenerationUnavailableError(SqlEngineError):
    """The upstream generator failed or produced nothing."""


class BackendResolutionError(SqlEngineError):
    """No backend is known for a (domain, dialect) identity."""
