"""
Error-Driven SQL Repair
=======================

Deterministic one-shot fixes keyed by the backend error text. Each rule is
a pure function of ``(sql, error)``; a rule that does not apply returns the
statement unchanged, and an unchanged statement means "give up".
"""

import re

from text2sql_engine.models import Domain
from text2sql_engine.vocabulary import VocabularyTable

AMBIGUOUS_COLUMN = (
    re.compile(r"column '([^']+)' in [\w ]+ is ambiguous", re.IGNORECASE),  # MySQL
    re.compile(r'column reference "([^"]+)" is ambiguous', re.IGNORECASE),  # PostgreSQL
    re.compile(r"ambiguous column name:\s*([\w.]+)", re.IGNORECASE),  # SQLite
)
FIRST_FROM = re.compile(
    r"\bfrom\s+([A-Za-z_]\w*)(?:\s+(?:as\s+)?([A-Za-z_]\w*))?", re.IGNORECASE
)
_NOT_ALIASES = {
    "where", "join", "inner", "left", "right", "full", "cross", "on", "group",
    "order", "limit", "having", "union", "natural",
}

UNKNOWN_TABLE_MARKERS = ("doesn't exist", "no such table", "unknown table")
UNCLOSED_QUOTE_MARKERS = (
    "unclosed quotation mark",
    "unterminated quoted string",
    "unrecognized token",
)
SYNTAX_MARKERS = ("syntax error", "you have an error in your sql syntax")

KNOWN_MISSPELLINGS = {
    "is_acitve": "is_active",
}

BARE_DATE = re.compile(r"(?<!['\d-])\b(\d{4}-\d{2}-\d{2})\b(?!['\d-])")
QUOTED_NUMBER = re.compile(r"(=|<>|!=|<=|>=|<|>)\s*'(-?\d+(?:\.\d+)?)'")
DOUBLE_EQUALS = re.compile(r"=\s*=")


def _first_from_qualifier(sql: str) -> str | None:
    match = FIRST_FROM.search(sql)
    if not match:
        return None
    table, alias = match.group(1), match.group(2)
    if alias and alias.lower() not in _NOT_ALIASES:
        return alias
    return table


def qualify_ambiguous_column(sql: str, error: str) -> str:
    """Prefix every bare use of the ambiguous column with the first FROM alias."""
    column = None
    for pattern in AMBIGUOUS_COLUMN:
        match = pattern.search(error)
        if match:
            column = match.group(1).split(".")[-1]
            break
    if not column:
        return sql

    qualifier = _first_from_qualifier(sql)
    if not qualifier:
        return sql

    bare = re.compile(rf"(?<![\w.]){re.escape(column)}\b(?!\s*\()")
    return bare.sub(f"{qualifier}.{column}", sql)


def is_unknown_table(error: str) -> bool:
    text = error.lower()
    if any(marker in text for marker in UNKNOWN_TABLE_MARKERS):
        return True
    return "relation" in text and "does not exist" in text


def apply_table_aliases(sql: str, aliases: dict[str, str]) -> str:
    """Replace alternate table names that follow FROM / JOIN."""
    for alternate, canonical in aliases.items():
        pattern = re.compile(rf"\b(from|join)(\s+){re.escape(alternate)}\b", re.IGNORECASE)
        sql = pattern.sub(lambda m: f"{m.group(1)}{m.group(2)}{canonical}", sql)
    return sql


def close_unbalanced_quote(sql: str) -> str:
    if sql.count("'") % 2 == 1:
        return sql + "'"
    return sql


def fix_literal_syntax(sql: str) -> str:
    """Quote bare dates, unquote quoted numbers and collapse ``= =``."""
    sql = DOUBLE_EQUALS.sub("=", sql)
    sql = BARE_DATE.sub(r"'\1'", sql)
    return QUOTED_NUMBER.sub(r"\1 \2", sql)


def fix_misspellings(sql: str, error: str) -> str:
    text = error.lower()
    for wrong, right in KNOWN_MISSPELLINGS.items():
        if wrong in text:
            sql = re.sub(rf"\b{wrong}\b", right, sql, flags=re.IGNORECASE)
    return sql


def repair_for_error(
    sql: str,
    error: str,
    domain: Domain,
    vocabulary: VocabularyTable,
) -> str:
    """
    Apply the repair rule matching the error text.

    Args:
        sql: Statement that failed
        error: Backend error message
        domain: Selects the table alias map
        vocabulary: Source of the table alias map

    Returns:
        The repaired statement, or ``sql`` unchanged when no rule applies
    """
    if not sql or not error:
        return sql
    text = error.lower()

    repaired = fix_misspellings(sql, error)
    if repaired != sql:
        return repaired

    if "ambiguous" in text:
        return qualify_ambiguous_column(sql, error)

    if is_unknown_table(error):
        return apply_table_aliases(sql, vocabulary.table_alias_map(domain))

    if any(marker in text for marker in UNCLOSED_QUOTE_MARKERS):
        return close_unbalanced_quote(sql)

    if any(marker in text for marker in SYNTAX_MARKERS):
        return fix_literal_syntax(sql)

    return sql
