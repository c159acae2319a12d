"""
Question Constraint Extraction
==============================

Pulls unambiguous filters ("姓王", "风险等级为稳健", "年龄大于60") out of the
question so they can be injected when the generated SQL forgot them.
"""

import re

from text2sql_engine.models import CheckOutcome, Domain
from text2sql_engine.vocabulary import VocabularyTable

RISK_LEVEL = re.compile(r"风险等级\s*为\s*[\"'“”]?([一-龥]+?)[\"'“”]?(?=的|客户|[，,。\s]|$)")
SURNAME = re.compile(r"姓([一-龥])")
AGE_COMPARISON = re.compile(r"年龄.*?(大于|小于)(\d+)")

# Particles the risk-level pattern can swallow instead of a value
BAD_VALUES = {"为", "的", "和", "或", "且"}

CONSTRAINT_WORDS = (
    "为", "等于", "是", "包含", "姓", "大于", "小于", "介于", "之前", "之后",
)


def _valid_value(value: str) -> bool:
    return bool(value) and value not in BAD_VALUES and len(value) <= 6


def _code(vocabulary: VocabularyTable | None, domain: Domain, column: str, value: str) -> str:
    if vocabulary is None:
        return value
    return vocabulary.lookup_enum(domain, column, value) or value


def extract_constraints(
    domain: Domain,
    question: str,
    vocabulary: VocabularyTable | None = None,
) -> list[str]:
    """
    Derive WHERE conditions stated literally in the question.

    Args:
        domain: Selects the rule set
        question: Natural-language question
        vocabulary: Used to turn values into stored codes

    Returns:
        Conditions in question order, possibly empty
    """
    if not question:
        return []
    text = question.strip()
    conditions: list[str] = []

    if domain is Domain.FINANCE:
        match = RISK_LEVEL.search(text)
        if match and _valid_value(match.group(1)):
            level = _code(vocabulary, domain, "clients.risk_level", match.group(1))
            conditions.append(f"risk_level = '{level}'")

        match = SURNAME.search(text)
        if match:
            conditions.append(f"client_name LIKE '{match.group(1)}%'")

        if "活跃" in text or "有效" in text:
            conditions.append("is_active = TRUE")

    elif domain is Domain.HEALTHCARE:
        if "男性" in text:
            conditions.append(f"gender = '{_code(vocabulary, domain, 'patients.gender', '男')}'")
        if "女性" in text:
            conditions.append(f"gender = '{_code(vocabulary, domain, 'patients.gender', '女')}'")

        match = AGE_COMPARISON.search(text)
        if match:
            operator = ">" if "大" in match.group(1) else "<"
            conditions.append(f"age {operator} {match.group(2)}")

    return conditions


def should_inject(question: str, check: CheckOutcome | None = None) -> bool:
    """
    Gate for constraint injection.

    Fires when the intent check complained about a missing WHERE, or when
    the question is phrased as a filter at all.
    """
    if check is not None and check.hint:
        hint = check.hint.lower()
        if "missing where" in hint or "no where" in hint:
            return True
    if not question:
        return False
    return any(word in question for word in CONSTRAINT_WORDS)
