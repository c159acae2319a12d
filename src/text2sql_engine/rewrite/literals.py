"""
Boolean Literal Normalization
=============================

``flag = 'Y'`` and friends become canonical ``TRUE`` / ``FALSE``. Only
equality right-hand sides are touched; unquoted ``1`` / ``0`` are left alone
since they are usually numeric comparisons.
"""

import re

_EQ = r"(?<![<>!=])=\s*"

_RULES: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(_EQ + r"'(?:y|1)'", re.IGNORECASE), "= TRUE"),
    (re.compile(_EQ + r"'(?:n|0)'", re.IGNORECASE), "= FALSE"),
    (re.compile(_EQ + r"true\b", re.IGNORECASE), "= TRUE"),
    (re.compile(_EQ + r"false\b", re.IGNORECASE), "= FALSE"),
)


def normalize_boolean_literals(sql: str) -> str:
    if not sql or not sql.strip():
        return sql
    for pattern, replacement in _RULES:
        sql = pattern.sub(replacement, sql)
    return sql
