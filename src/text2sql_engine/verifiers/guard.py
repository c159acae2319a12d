"""
Statement Guard
===============

Static read-only / single-statement validation and row-limit enforcement.
"""

import re

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

from text2sql_engine.errors import (
    EmptyStatementError,
    MultiStatementError,
    UnsafeStatementError,
)
from text2sql_engine.models import VerificationResult, VerificationStatus
from text2sql_engine.observability.logging_config import get_logger
from text2sql_engine.verifiers.base import Verifier

logger = get_logger(__name__)

READ_ONLY_PREFIX = re.compile(r"^\s*(select|with|explain)\b", re.IGNORECASE)

# Textual scan on purpose: it also catches keywords hidden in comments or in
# statements a parser would reject.
FORBIDDEN_KEYWORDS = re.compile(
    r"\b(insert|update|delete|drop|alter|truncate|create|grant|revoke|replace)\b",
    re.IGNORECASE,
)

LIMIT_KEYWORD = re.compile(r"\blimit\b", re.IGNORECASE)


def strip_terminator(sql: str) -> str:
    """Trim whitespace and a single trailing ``;``."""
    trimmed = sql.strip()
    if trimmed.endswith(";"):
        trimmed = trimmed[:-1].rstrip()
    return trimmed


class StatementGuard(Verifier):
    """Rejects anything that is not a single read-only statement."""

    @property
    def name(self) -> str:
        return "StatementGuard"

    def validate(self, sql: str) -> None:
        """
        Validate that ``sql`` is a single read-only statement.

        Raises:
            EmptyStatementError: blank input
            MultiStatementError: stacked statements
            UnsafeStatementError: non read-only prefix or modifying keyword
        """
        if sql is None or not sql.strip():
            raise EmptyStatementError("SQL statement is empty")

        text = sql.strip()

        terminators = text.count(";")
        if terminators > 1 or (terminators == 1 and not text.endswith(";")):
            raise MultiStatementError("Only a single statement is allowed")

        if not READ_ONLY_PREFIX.search(text):
            raise UnsafeStatementError("Only SELECT / WITH / EXPLAIN statements are allowed")

        match = FORBIDDEN_KEYWORDS.search(text)
        if match:
            raise UnsafeStatementError(
                f"Forbidden keyword detected: {match.group(1).upper()}"
            )

    def verify(self, sql: str, context: dict) -> VerificationResult:
        """
        Verify SQL is a single read-only statement.

        Args:
            sql: SQL statement to validate
            context: Additional context (unused for this verifier)

        Returns:
            VerificationResult with PASSED or FAILED status
        """
        try:
            self.validate(sql)
        except UnsafeStatementError as e:
            return VerificationResult(
                verifier_name=self.name,
                status=VerificationStatus.FAILED,
                message=f"Safety check failed: {e}",
                details={"error_type": type(e).__name__},
            )

        return VerificationResult(
            verifier_name=self.name,
            status=VerificationStatus.PASSED,
            message="Single read-only statement",
        )

    def cap_rows(self, sql: str, max_rows: int, dialect: str | None = None) -> str:
        """
        Make sure the statement returns at most ``max_rows`` rows.

        A plain SELECT gets a LIMIT injected, or an existing larger LIMIT
        lowered. Set operations and anything sqlglot cannot parse fall back
        to a textual append when no ``limit`` keyword is present at all.

        Args:
            sql: Validated SQL statement
            max_rows: Row cap; values <= 0 disable capping
            dialect: sqlglot dialect name used to parse and render

        Returns:
            The capped statement, without a trailing terminator
        """
        if max_rows <= 0 or sql is None or not sql.strip():
            return sql

        trimmed = strip_terminator(sql)

        try:
            parsed = sqlglot.parse_one(trimmed, read=dialect)
        except SqlglotError as e:
            logger.debug("cap_rows parse failed, using textual limit", error=str(e))
            return self._append_limit(trimmed, max_rows)

        if not isinstance(parsed, exp.Select):
            return self._append_limit(trimmed, max_rows)

        limit = parsed.args.get("limit")
        if limit is None:
            if parsed.args.get("fetch") is not None:
                return trimmed
            return parsed.limit(max_rows).sql(dialect=dialect)

        current = self._limit_value(limit)
        if current is not None and current <= max_rows:
            return trimmed

        limit.set("expression", exp.Literal.number(max_rows))
        return parsed.sql(dialect=dialect)

    @staticmethod
    def _limit_value(limit: exp.Expression) -> int | None:
        value = limit.args.get("expression")
        if isinstance(value, exp.Literal) and value.is_int:
            return int(value.this)
        return None

    @staticmethod
    def _append_limit(sql: str, max_rows: int) -> str:
        if LIMIT_KEYWORD.search(sql):
            return sql
        return f"{sql} LIMIT {max_rows}"
