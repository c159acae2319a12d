"""
Document Query Translator
=========================

Translates the narrow SQL subset the document store supports::

    SELECT <cols | *> FROM <collection>
        [WHERE <field> = <literal> (AND <field> = <literal>)*]
        [LIMIT <n>]

into a collection name, a projection and a conjunctive equality filter.
Anything outside the subset raises ``TranslationUnsupportedError`` rather
than being approximated.
"""

import re
from typing import Any

from text2sql_engine.errors import TranslationUnsupportedError
from text2sql_engine.models import ParsedMiniQuery

QUOTED = re.compile(r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"")
PLACEHOLDER = re.compile(r"__lit(\d+)__", re.IGNORECASE)

UNSUPPORTED_WORDS = {
    "join": "joins",
    "or": "OR predicates",
    "like": "LIKE predicates",
    "in": "IN predicates",
    "between": "BETWEEN predicates",
    "not": "negation",
    "is": "IS [NOT] NULL predicates",
    "distinct": "DISTINCT",
    "union": "set operations",
    "intersect": "set operations",
    "except": "set operations",
    "having": "HAVING",
    "offset": "OFFSET",
}
UNSUPPORTED_PHRASES = (
    (re.compile(r"\border\s+by\b", re.IGNORECASE), "ORDER BY"),
    (re.compile(r"\bgroup\s+by\b", re.IGNORECASE), "GROUP BY"),
    (re.compile(r"[<>!]"), "comparison operators other than ="),
    (re.compile(r"\("), "functions and subqueries"),
)

STATEMENT = re.compile(
    r"^\s*select\s+(?P<columns>.+?)\s+from\s+(?P<collection>[A-Za-z_][\w.]*)"
    r"(?:\s+where\s+(?P<where>.+?))?"
    r"(?:\s+limit\s+(?P<limit>\d+))?\s*;?\s*$",
    re.IGNORECASE | re.DOTALL,
)
FIELD = re.compile(r"[A-Za-z_][\w.]*")
EQUALITY = re.compile(r"^\s*(?P<field>[A-Za-z_][\w.]*)\s*=\s*(?P<value>\S+)\s*$", re.DOTALL)
AND_SPLIT = re.compile(r"\s+and\s+", re.IGNORECASE)
INTEGER = re.compile(r"[-+]?\d+")
DECIMAL = re.compile(r"[-+]?(\d+\.\d*|\.\d+)")


def _mask_literals(sql: str) -> tuple[str, list[str]]:
    literals: list[str] = []

    def keep(match: re.Match) -> str:
        literals.append(match.group(0))
        return f"__lit{len(literals) - 1}__"

    return QUOTED.sub(keep, sql), literals


def parse_literal(token: str, literals: list[str] | None = None) -> Any:
    """
    Convert a literal token to a Python value.

    Quoted -> str, NULL -> None, TRUE/FALSE -> bool, integer -> int,
    decimal -> float, anything else -> the bare text.
    """
    text = token.strip()
    placeholder = PLACEHOLDER.fullmatch(text)
    if placeholder and literals is not None:
        text = literals[int(placeholder.group(1))]

    if len(text) >= 2 and text[0] == text[-1] and text[0] in "'\"":
        quote = text[0]
        return text[1:-1].replace(quote * 2, quote)
    upper = text.upper()
    if upper == "NULL":
        return None
    if upper in ("TRUE", "FALSE"):
        return upper == "TRUE"
    if INTEGER.fullmatch(text):
        return int(text)
    if DECIMAL.fullmatch(text):
        return float(text)
    return text


def _reject_unsupported(masked: str) -> None:
    words = {w.lower() for w in re.findall(r"[A-Za-z_]+", masked)}
    for word, construct in UNSUPPORTED_WORDS.items():
        if word in words:
            raise TranslationUnsupportedError(
                f"Document store queries do not support {construct}"
            )
    for pattern, construct in UNSUPPORTED_PHRASES:
        if pattern.search(masked):
            raise TranslationUnsupportedError(
                f"Document store queries do not support {construct}"
            )


def parse_mini_query(sql: str) -> ParsedMiniQuery:
    """
    Parse a statement of the supported subset.

    Args:
        sql: Statement to translate

    Returns:
        ParsedMiniQuery with collection, columns, equality conditions and limit

    Raises:
        TranslationUnsupportedError: the statement is outside the subset
    """
    if sql is None or not sql.strip():
        raise TranslationUnsupportedError("Empty statement")

    masked, literals = _mask_literals(sql.strip())
    _reject_unsupported(masked)

    match = STATEMENT.match(masked)
    if not match:
        raise TranslationUnsupportedError(
            "Only SELECT <columns> FROM <collection> [WHERE a = v AND ...] [LIMIT n] "
            "is supported for the document store"
        )

    columns = _parse_columns(match.group("columns"))
    conditions = _parse_conditions(match.group("where"), literals)
    limit = int(match.group("limit")) if match.group("limit") else None

    return ParsedMiniQuery(
        collection=match.group("collection"),
        columns=columns,
        equals_conditions=conditions,
        limit=limit,
    )


def _parse_columns(text: str) -> tuple[str, ...]:
    if text.strip() == "*":
        return ()
    columns = []
    for part in text.split(","):
        name = part.strip()
        if not FIELD.fullmatch(name):
            raise TranslationUnsupportedError(
                f"Unsupported projection {name!r}: only plain field names or *"
            )
        columns.append(name)
    return tuple(dict.fromkeys(columns))


def _parse_conditions(text: str | None, literals: list[str]) -> dict[str, Any]:
    conditions: dict[str, Any] = {}
    if text is None:
        return conditions

    for part in AND_SPLIT.split(text.strip()):
        match = EQUALITY.match(part)
        if not match:
            raise TranslationUnsupportedError(
                f"Unsupported predicate {PLACEHOLDER.sub('?', part.strip())!r}: "
                "only field = literal"
            )
        field, value = match.group("field"), parse_literal(match.group("value"), literals)
        if field in conditions and conditions[field] != value:
            raise TranslationUnsupportedError(
                f"Conflicting conditions on {field!r}"
            )
        conditions[field] = value
    return conditions


def build_filter(query: ParsedMiniQuery) -> dict[str, Any]:
    """Conjunctive equality filter for ``find``."""
    return dict(query.equals_conditions)
