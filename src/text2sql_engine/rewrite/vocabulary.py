"""
Enum Literal Normalization
==========================

Rewrites ``column = 'literal'`` predicates to the stored codes of the
vocabulary table, with a small English fallback dictionary.
"""

import re

from text2sql_engine.models import Domain
from text2sql_engine.vocabulary import VocabularyTable

EQ_STRING = re.compile(
    r"(?:\b([A-Za-z_]\w*)\.)?\b([A-Za-z_]\w*)\s*=\s*(['\"])([^'\"]+)\3"
)
FROM_JOIN = re.compile(
    r"\b(from|join)\s+([A-Za-z_]\w*)(?:\s+(?:as\s+)?([A-Za-z_]\w*))?",
    re.IGNORECASE,
)
FIRST_FROM = re.compile(r"\bfrom\s+([A-Za-z_]\w*)", re.IGNORECASE)
NUMBER = re.compile(r"[-+]?\d+(\.\d+)?")

# Words that follow a table name but are never its alias
_NOT_ALIASES = {
    "where", "join", "inner", "left", "right", "full", "cross", "on", "group",
    "order", "limit", "having", "union", "as", "natural", "using", "offset",
}

HEURISTIC_CODES = {
    "bank": "银行",
    "broker": "券商",
    "securities": "券商",
    "insurance": "保险",
    "sell": "卖出",
    "buy": "买入",
    "confirmed": "已成",
}

BOOLEAN_WORDS = {
    "y": "TRUE", "yes": "TRUE", "true": "TRUE", "ture": "TRUE",
    "n": "FALSE", "no": "FALSE", "false": "FALSE",
}


def alias_to_table(sql: str) -> dict[str, str]:
    """Map each FROM/JOIN table and its alias to the table name."""
    mapping: dict[str, str] = {}
    for match in FROM_JOIN.finditer(sql):
        table, alias = match.group(2), match.group(3)
        mapping[table.lower()] = table
        if alias and alias.lower() not in _NOT_ALIASES:
            mapping[alias.lower()] = table
    return mapping


def _render_literal(value: str, quote: str) -> str:
    text = value.strip()
    if text.upper() in ("TRUE", "FALSE"):
        return text.upper()
    if NUMBER.fullmatch(text):
        return text
    return quote + text.replace("'", "''") + quote


def normalize_enum_literals(domain: Domain, sql: str, vocabulary: VocabularyTable) -> str:
    """
    Replace natural-language enum values with their stored codes.

    Args:
        domain: Vocabulary domain
        sql: Statement to rewrite
        vocabulary: Enum lookup table

    Returns:
        The rewritten statement; predicates without a mapping are left as written
    """
    if not sql or not sql.strip():
        return sql

    tables = alias_to_table(sql)
    first_from = FIRST_FROM.search(sql)
    default_table = first_from.group(1) if first_from else ""

    def replace(match: re.Match) -> str:
        qualifier, column, quote, value = match.groups()
        table = tables.get(qualifier.lower()) if qualifier else None
        table = table or default_table
        full_column = f"{table}.{column}" if table else column

        code = vocabulary.lookup_enum(domain, full_column, value)
        if code is None:
            code = BOOLEAN_WORDS.get(value.strip().lower())
        if code is None:
            code = HEURISTIC_CODES.get(value.strip().lower(), value)
        if code == value:
            return match.group(0)

        prefix = f"{qualifier}." if qualifier else ""
        return f"{prefix}{column} = {_render_literal(code, quote)}"

    return EQ_STRING.sub(replace, sql)
