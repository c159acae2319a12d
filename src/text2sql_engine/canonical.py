"""
Result Canonicalization
=======================

Order-independent, type-normalized representation of result sets for
comparison, plus the short display rendering of an answer.
"""

import re
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any

from text2sql_engine.models import CanonicalForm, QueryResult

NULL = "NULL"
DATE_FORMAT = "%Y-%m-%d"
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

RENDER_MAX_CHARS = 180
RENDER_MAX_ROWS = 12
RENDER_MAX_COLUMNS = 4
SINGLE_ROW_MAX_COLUMNS = 6

NUMERIC_TEXT = re.compile(r"[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?")
ISO_DATETIME_TEXT = re.compile(
    r"\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?"
)


def _format_decimal(value: Decimal) -> str:
    if not value.is_finite():
        return str(value)
    text = format(value.normalize(), "f")
    return "0" if text in ("-0", "+0") else text


def _normalize_text(text: str) -> str:
    if NUMERIC_TEXT.fullmatch(text):
        try:
            return _format_decimal(Decimal(text))
        except InvalidOperation:
            return text
    if ISO_DATETIME_TEXT.fullmatch(text):
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return text
        return parsed.replace(tzinfo=None).strftime(DATETIME_FORMAT)
    return text


def normalize_value(value: Any) -> str:
    """
    Render one value in its canonical textual form.

    Decimals lose trailing zeros, integral floats lose the decimal point,
    dates and datetimes use one fixed format (timezone dropped), None is
    ``NULL`` and booleans are ``true`` / ``false``.
    """
    if value is None:
        return NULL
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        return _format_decimal(value)
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return str(value)
        if value.is_integer():
            return str(int(value))
        return _format_decimal(Decimal(repr(value)))
    if isinstance(value, int):
        return str(value)
    if isinstance(value, datetime):
        return value.replace(tzinfo=None).strftime(DATETIME_FORMAT)
    if isinstance(value, date):
        return value.strftime(DATE_FORMAT)
    if isinstance(value, time):
        return value.replace(tzinfo=None).strftime("%H:%M:%S")
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    return _normalize_text(str(value).strip())


def canonicalize(result: QueryResult) -> CanonicalForm:
    """
    Build the canonical form of a result set.

    Columns are ordered case-insensitively by name and rows sorted by their
    own text, so column and row permutations canonicalize identically.
    """
    order = sorted(
        range(len(result.columns)),
        key=lambda i: (result.columns[i].lower(), result.columns[i]),
    )
    columns = tuple(result.columns[i] for i in order)
    rows = sorted(
        "|".join(f"{result.columns[i]}={normalize_value(row[i])}" for i in order)
        for row in result.rows
    )
    return CanonicalForm(columns=columns, rows=tuple(rows))


def results_match(left: QueryResult, right: QueryResult) -> bool:
    return canonicalize(left) == canonicalize(right)


def _clip(text: str, limit: int = RENDER_MAX_CHARS) -> str:
    text = " ".join(text.split())
    return text[:limit]


def render(result: QueryResult) -> str:
    """
    Short human-readable answer.

    A single value renders bare, a single row of up to six columns as
    ``col=value; col=value``, anything else as up to twelve rows of up to
    four comma-joined values separated by ``; ``. Output is clipped to 180
    characters. Failed or empty results render as an empty string.
    """
    if not result.success or result.is_empty or not result.columns:
        return ""

    columns, rows = result.columns, result.rows

    if len(rows) == 1 and len(columns) == 1:
        return _clip(normalize_value(rows[0][0]))

    if len(rows) == 1 and len(columns) <= SINGLE_ROW_MAX_COLUMNS:
        return _clip("; ".join(
            f"{column}={normalize_value(value)}" for column, value in zip(columns, rows[0])
        ))

    width = min(len(columns), RENDER_MAX_COLUMNS)
    lines = [
        ",".join(normalize_value(value) for value in row[:width])
        for row in rows[:RENDER_MAX_ROWS]
    ]
    return _clip("; ".join(lines))
