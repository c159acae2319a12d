"""
Predicate Injection
===================

AND a condition into the WHERE clause of a single plain SELECT. Anything
else (set operations, DML that slipped through, text sqlglot rejects) is
returned untouched.
"""

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

from text2sql_engine.observability.logging_config import get_logger

logger = get_logger(__name__)


def _normalized(node: exp.Expression | None) -> str:
    return node.sql().lower().replace(" ", "") if node is not None else ""


def conjuncts(node: exp.Expression) -> list[exp.Expression]:
    if isinstance(node, exp.And):
        return list(node.flatten())
    return [node]


def has_condition(select: exp.Select, condition: exp.Expression) -> bool:
    """True when ``condition`` already appears as a conjunct of the WHERE."""
    where = select.args.get("where")
    if where is None:
        return False
    target = _normalized(condition)
    return any(_normalized(part) == target for part in conjuncts(where.this))


def add_condition_safely(sql: str, condition: str, dialect: str | None = None) -> str:
    """
    Conjoin ``condition`` into the statement's WHERE clause.

    Args:
        sql: Statement to patch
        condition: Boolean SQL expression, e.g. ``YEAR(trade_date) = 2024``
        dialect: sqlglot dialect name used to parse and render

    Returns:
        The patched statement, or ``sql`` unchanged when it is not a single
        plain SELECT or already carries the condition
    """
    if not sql or not sql.strip() or not condition or not condition.strip():
        return sql

    try:
        parsed = sqlglot.parse_one(sql.strip().rstrip(";"), read=dialect)
        predicate = sqlglot.condition(condition, dialect=dialect)
    except SqlglotError as e:
        logger.debug("predicate injection skipped, parse failed", error=str(e))
        return sql

    if not isinstance(parsed, exp.Select):
        return sql

    missing = [c for c in conjuncts(predicate) if not has_condition(parsed, c)]
    if not missing:
        return sql

    for part in missing:
        parsed = parsed.where(part.copy(), copy=False)
    return parsed.sql(dialect=dialect)
