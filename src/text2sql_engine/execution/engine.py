"""
Execution Engine
================

Single execution entry point. Validates, caps and runs a statement on the
backend of an ``ExecutionTarget`` and encodes every outcome in a
``QueryResult``; it never raises.

Relational failures get a bounded number of error-driven repairs. Document
store statements are translated from the supported SQL subset.
"""

import time

from text2sql_engine.backends.base import DocumentBackend, SqlBackend
from text2sql_engine.backends.registry import BackendRegistry
from text2sql_engine.errors import (
    ExecutionError,
    TranslationUnsupportedError,
    UnsafeStatementError,
)
from text2sql_engine.execution.repair import repair_for_error
from text2sql_engine.execution.translator import build_filter, parse_mini_query
from text2sql_engine.models import ExecutionTarget, QueryResult
from text2sql_engine.observability.logging_config import get_logger
from text2sql_engine.observability.metrics import (
    REPAIRS_TOTAL,
    TRANSLATION_REJECTIONS,
    track_execution,
)
from text2sql_engine.observability.tracing import get_tracer, target_span
from text2sql_engine.routing import bound_target
from text2sql_engine.verifiers.guard import StatementGuard
from text2sql_engine.vocabulary import VocabularyTable

logger = get_logger(__name__)
tracer = get_tracer(__name__)

STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"
STATUS_REJECTED = "rejected"
STATUS_UNSUPPORTED = "unsupported"
STATUS_UNAVAILABLE = "unavailable"


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


class ExecutionEngine:
    """Runs read-only statements against the registered backends."""

    def __init__(
        self,
        backends: BackendRegistry,
        guard: StatementGuard | None = None,
        vocabulary: VocabularyTable | None = None,
        max_repairs: int = 1,
    ) -> None:
        """
        Initialize the engine.

        Args:
            backends: Target -> backend lookup
            guard: Statement guard (validation and row cap)
            vocabulary: Source of the table alias map used by repairs
            max_repairs: Repair-and-retry rounds after a backend error
        """
        self.backends = backends
        self.guard = guard or StatementGuard()
        self.vocabulary = vocabulary or VocabularyTable()
        self.max_repairs = max(0, max_repairs)

    def execute(self, sql: str, target: ExecutionTarget, max_rows: int) -> QueryResult:
        """
        Execute ``sql`` on ``target``.

        Args:
            sql: Statement to run
            target: Resolved backend identity
            max_rows: Row cap; values <= 0 disable capping

        Returns:
            QueryResult with status success, failed, rejected, unsupported
            or unavailable
        """
        start = time.perf_counter()
        with target_span(tracer, "execute", target) as span, bound_target(target):
            try:
                result = self._execute(sql, target, max_rows, start)
            except Exception:
                logger.exception("Unexpected execution failure")
                result = QueryResult.failure(
                    STATUS_FAILED, "Internal execution error", _elapsed_ms(start)
                )

            span.set_attribute("result.status", result.status)
            span.set_attribute("result.rows", result.row_count)
            track_execution(
                target.dialect.value.lower(), result.status, time.perf_counter() - start
            )
            logger.info(
                "Statement executed",
                status=result.status,
                rows=result.row_count,
                elapsed_ms=result.elapsed_ms,
            )
            return result

    def _execute(
        self, sql: str, target: ExecutionTarget, max_rows: int, start: float
    ) -> QueryResult:
        try:
            self.guard.validate(sql)
        except UnsafeStatementError as e:
            return QueryResult.failure(STATUS_REJECTED, str(e), _elapsed_ms(start))

        backend = self.backends.get(target)
        if target.dialect.is_relational and isinstance(backend, SqlBackend):
            return self._execute_relational(backend, sql, target, max_rows, start)
        if not target.dialect.is_relational and isinstance(backend, DocumentBackend):
            return self._execute_document(backend, sql, max_rows, start)

        return QueryResult.failure(
            STATUS_UNAVAILABLE, f"No backend configured for {target.key}", _elapsed_ms(start)
        )

    def _execute_relational(
        self,
        backend: SqlBackend,
        sql: str,
        target: ExecutionTarget,
        max_rows: int,
        start: float,
    ) -> QueryResult:
        dialect = target.dialect.sqlglot_dialect
        current = sql
        statement = self.guard.cap_rows(current, max_rows, dialect)
        repairs = 0

        while True:
            try:
                columns, rows = backend.run(statement, max_rows)
                return QueryResult(
                    success=True,
                    status=STATUS_SUCCESS,
                    elapsed_ms=_elapsed_ms(start),
                    columns=columns,
                    rows=rows,
                )
            except ExecutionError as e:
                error = str(e)
                if repairs >= self.max_repairs:
                    return QueryResult.failure(STATUS_FAILED, error, _elapsed_ms(start))

                repaired = repair_for_error(current, error, target.domain, self.vocabulary)
                if repaired == current:
                    REPAIRS_TOTAL.labels(outcome="unchanged").inc()
                    return QueryResult.failure(STATUS_FAILED, error, _elapsed_ms(start))

                try:
                    self.guard.validate(repaired)
                except UnsafeStatementError as unsafe:
                    return QueryResult.failure(STATUS_REJECTED, str(unsafe), _elapsed_ms(start))

                REPAIRS_TOTAL.labels(outcome="retried").inc()
                logger.info("Retrying repaired statement", attempt=repairs + 1, error=error)
                current = repaired
                statement = self.guard.cap_rows(current, max_rows, dialect)
                repairs += 1

    def _execute_document(
        self,
        backend: DocumentBackend,
        sql: str,
        max_rows: int,
        start: float,
    ) -> QueryResult:
        try:
            query = parse_mini_query(sql)
        except TranslationUnsupportedError as e:
            TRANSLATION_REJECTIONS.inc()
            return QueryResult.failure(STATUS_UNSUPPORTED, str(e), _elapsed_ms(start))

        limit = max_rows if max_rows > 0 else 0
        if query.limit is not None:
            limit = min(query.limit, limit) if limit else query.limit

        try:
            columns, rows = backend.find(
                query.collection, build_filter(query), list(query.columns), limit
            )
        except ExecutionError as e:
            return QueryResult.failure(STATUS_FAILED, str(e), _elapsed_ms(start))

        return QueryResult(
            success=True,
            status=STATUS_SUCCESS,
            elapsed_ms=_elapsed_ms(start),
            columns=columns,
            rows=rows,
        )
