"""
Rewrite Pipeline
================

Fixed-order sequence of deterministic SQL rewrites applied between the
intent check and validation. Every step is total and idempotent; a step
that raises is logged and skipped so the statement passes through as-is.
"""

from typing import Callable

from text2sql_engine.models import CheckOutcome, Dialect, ExecutionTarget
from text2sql_engine.observability.logging_config import get_logger
from text2sql_engine.observability.metrics import REWRITE_STEP_FAILURES
from text2sql_engine.rewrite.constraints import extract_constraints, should_inject
from text2sql_engine.rewrite.literals import normalize_boolean_literals
from text2sql_engine.rewrite.projection import enforce_default_projection
from text2sql_engine.rewrite.temporal import inject_year_month
from text2sql_engine.rewrite.vocabulary import normalize_enum_literals
from text2sql_engine.rewrite.where import add_condition_safely
from text2sql_engine.verifiers.intent import IntentPolicy
from text2sql_engine.vocabulary import VocabularyTable

logger = get_logger(__name__)

Step = Callable[[str], str]


class RewritePipeline:
    """Runs the rewrite steps for one statement."""

    STEP_NAMES = ("literals", "vocabulary", "temporal", "constraints", "projection")

    def __init__(
        self,
        vocabulary: VocabularyTable | None = None,
        policy: IntentPolicy | None = None,
    ) -> None:
        self.vocabulary = vocabulary or VocabularyTable()
        self.policy = policy or IntentPolicy.default()

    def apply(
        self,
        sql: str,
        question: str,
        target: ExecutionTarget,
        check: CheckOutcome | None = None,
    ) -> str:
        """
        Apply every step in order.

        Args:
            sql: Candidate statement
            question: Natural-language question it answers
            target: Backend the statement will run on
            check: Latest intent check outcome, used by the constraint gate

        Returns:
            The rewritten statement
        """
        if not sql or not sql.strip():
            return sql

        for name, step in self._steps(question, target, check):
            try:
                sql = step(sql)
            except Exception as e:
                REWRITE_STEP_FAILURES.labels(step=name).inc()
                logger.warning("Rewrite step failed, passing through", step=name, error=str(e))
        return sql

    def _steps(
        self,
        question: str,
        target: ExecutionTarget,
        check: CheckOutcome | None,
    ) -> list[tuple[str, Step]]:
        domain = target.domain
        dialect = target.dialect.sqlglot_dialect

        steps: list[tuple[str, Step]] = [
            ("literals", normalize_boolean_literals),
            ("vocabulary", lambda s: normalize_enum_literals(domain, s, self.vocabulary)),
        ]
        if target.dialect is Dialect.MONGO:
            return steps

        steps += [
            ("temporal", lambda s: inject_year_month(s, question, domain, target.dialect)),
            ("constraints", lambda s: self._inject_constraints(s, question, target, check)),
            ("projection", lambda s: enforce_default_projection(
                domain, question, s, dialect, self.policy)),
        ]
        return steps

    def _inject_constraints(
        self,
        sql: str,
        question: str,
        target: ExecutionTarget,
        check: CheckOutcome | None,
    ) -> str:
        if not should_inject(question, check):
            return sql
        for condition in extract_constraints(target.domain, question, self.vocabulary):
            sql = add_condition_safely(sql, condition, target.dialect.sqlglot_dialect)
        return sql
