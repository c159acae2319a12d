"""
Temporal Predicate Injection
============================

Questions that name a year (and optionally a month) get a matching date
predicate when the SQL does not filter on a date yet.
"""

import re

from text2sql_engine.models import Dialect, Domain
from text2sql_engine.rewrite.where import add_condition_safely

YEAR_MONTH_PATTERNS = (
    re.compile(r"(20\d{2})\s*年\s*(1[0-2]|0?[1-9])\s*月"),
    re.compile(r"\b(20\d{2})[-/](1[0-2]|0?[1-9])\b"),
)
YEAR_PATTERNS = (
    re.compile(r"(20\d{2})\s*年"),
    re.compile(r"\b(?:in|during|of|for|year)\s+(20\d{2})\b", re.IGNORECASE),
)
MONTH_NAMES = {
    "january": 1, "february": 2, "march": 3, "april": 4, "may": 5, "june": 6,
    "july": 7, "august": 8, "september": 9, "october": 10, "november": 11,
    "december": 12,
}
ENGLISH_MONTH_YEAR = re.compile(
    r"\b(" + "|".join(MONTH_NAMES) + r")\s+(20\d{2})\b", re.IGNORECASE
)

EXISTING_DATE_FILTER = re.compile(
    r"\b(year|month|extract|date_format|to_char|date_trunc)\s*\("
    r"|'\d{4}-\d{2}"
    r"|\bbetween\b",
    re.IGNORECASE,
)
WHERE_CLAUSE = re.compile(
    r"\bwhere\b(.*?)(?:\bgroup\s+by\b|\border\s+by\b|\blimit\b|$)",
    re.IGNORECASE | re.DOTALL,
)


def extract_year_month(question: str) -> tuple[int | None, int | None]:
    """Return ``(year, month)`` mentioned in the question; either may be None."""
    if not question:
        return None, None
    for pattern in YEAR_MONTH_PATTERNS:
        match = pattern.search(question)
        if match:
            return int(match.group(1)), int(match.group(2))
    match = ENGLISH_MONTH_YEAR.search(question)
    if match:
        return int(match.group(2)), MONTH_NAMES[match.group(1).lower()]
    for pattern in YEAR_PATTERNS:
        match = pattern.search(question)
        if match:
            return int(match.group(1)), None
    return None, None


def choose_date_column(domain: Domain, question: str) -> str:
    """Pick the date column a question most likely filters on."""
    if domain is Domain.FINANCE:
        if "成立" in question or "创建" in question:
            return "inception_date"
        if "交易" in question or "成交" in question:
            return "trade_date"
        return "create_time"
    if any(k in question for k in ("就诊", "门诊", "住院")):
        return "encounter_date"
    if any(k in question for k in ("医嘱", "开立", "下单")):
        return "start_datetime"
    return "create_time"


def year_month_condition(dialect: Dialect, column: str, year: int, month: int | None) -> str:
    if dialect is Dialect.MYSQL:
        condition = f"YEAR({column}) = {year}"
        if month is not None:
            condition += f" AND MONTH({column}) = {month}"
        return condition

    condition = f"EXTRACT(YEAR FROM {column}) = {year}"
    if month is not None:
        condition += f" AND EXTRACT(MONTH FROM {column}) = {month}"
    return condition


def has_date_filter(sql: str, column: str) -> bool:
    if EXISTING_DATE_FILTER.search(sql):
        return True
    where = WHERE_CLAUSE.search(sql)
    return bool(where) and re.search(rf"\b{re.escape(column)}\b", where.group(1), re.IGNORECASE) is not None


def inject_year_month(sql: str, question: str, domain: Domain, dialect: Dialect) -> str:
    """
    Add a year/month predicate for the date mentioned in the question.

    Args:
        sql: Relational statement
        question: Natural-language question
        domain: Drives the default date column
        dialect: Picks the MySQL or PostgreSQL extraction template

    Returns:
        The statement with the predicate AND-ed in, or unchanged
    """
    if not sql or not sql.strip() or not dialect.is_relational:
        return sql

    year, month = extract_year_month(question)
    if year is None:
        return sql

    column = choose_date_column(domain, question)
    if has_date_filter(sql, column):
        return sql

    condition = year_month_condition(dialect, column, year, month)
    return add_condition_safely(sql, condition, dialect.sqlglot_dialect)
