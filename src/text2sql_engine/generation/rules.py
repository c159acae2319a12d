"""
Rule-Based SQL Generator
========================

Deterministic templates for the most common question shapes. Used as the
fallback when the primary generator is blank or unavailable, or as the
primary generator when no model is configured.
"""

import re

from text2sql_engine.generation.base import SqlGenerator
from text2sql_engine.models import Domain, SqlCandidate

CLIENT_COLUMNS = "client_id, client_name, risk_level, total_assets"
PATIENT_COLUMNS = "patient_id, name, gender, age"

SURNAME = re.compile(r"姓([一-龥])")
RISK_LEVEL = re.compile(r"风险等级为?([一-龥]+)")
TOP_N = re.compile(r"(?:前|top)\s*(\d+)", re.IGNORECASE)

LISTING_WORDS = ("列出", "查看", "查询", "显示", "所有", "list", "show", "all")
COUNT_WORDS = ("数量", "多少", "统计", "how many", "number of")
DEFAULT_TOP_N = 10


def _contains_any(text: str, keys: tuple[str, ...]) -> bool:
    return any(k in text for k in keys)


def finance_surname_clients(q: str) -> str:
    if "姓" not in q or "客户" not in q:
        return ""
    match = SURNAME.search(q)
    if not match:
        return ""
    return f"SELECT {CLIENT_COLUMNS} FROM clients WHERE client_name LIKE '{match.group(1)}%'"


def finance_risk_level_clients(q: str) -> str:
    if "风险" not in q or "客户" not in q:
        return ""
    match = RISK_LEVEL.search(q)
    if not match:
        return ""
    level = match.group(1)
    # "风险等级为稳健的客户" captures "稳健的客户"
    level = level.split("的")[0]
    if not level:
        return ""
    return f"SELECT {CLIENT_COLUMNS} FROM clients WHERE risk_level = '{level}'"


def finance_client_count(q: str) -> str:
    if not _contains_any(q, ("客户", "client")) or not _contains_any(q, COUNT_WORDS):
        return ""
    return "SELECT COUNT(*) AS cnt FROM clients"


def finance_top_clients(q: str) -> str:
    if not _contains_any(q, ("客户", "client")):
        return ""
    match = TOP_N.search(q)
    if not match:
        return ""
    n = int(match.group(1))
    if n <= 0 or n > 1000:
        n = DEFAULT_TOP_N
    return f"SELECT {CLIENT_COLUMNS} FROM clients ORDER BY total_assets DESC LIMIT {n}"


def finance_client_listing(q: str) -> str:
    if _contains_any(q, ("客户", "client")) and _contains_any(q, LISTING_WORDS):
        return f"SELECT {CLIENT_COLUMNS} FROM clients"
    return ""


def healthcare_patient_count(q: str) -> str:
    if not _contains_any(q, ("患者", "病人", "patient")) or not _contains_any(q, COUNT_WORDS):
        return ""
    return "SELECT COUNT(*) AS cnt FROM patients"


def healthcare_patient_listing(q: str) -> str:
    if _contains_any(q, ("患者", "病人", "patient")) and _contains_any(q, LISTING_WORDS):
        return f"SELECT {PATIENT_COLUMNS} FROM patients"
    return ""


RULES = {
    Domain.FINANCE: (
        finance_surname_clients,
        finance_risk_level_clients,
        finance_client_count,
        finance_top_clients,
        finance_client_listing,
    ),
    Domain.HEALTHCARE: (
        healthcare_patient_count,
        healthcare_patient_listing,
    ),
}


def build_rule_sql(domain: Domain, question: str) -> str:
    """Return the first matching template, or "" when none applies."""
    if not question or not question.strip():
        return ""
    q = question.strip().lower()
    for rule in RULES.get(domain, ()):
        sql = rule(q)
        if sql:
            return sql
    return ""


class RuleBasedSqlGenerator(SqlGenerator):
    """Template matcher keyed on question patterns. Never raises."""

    @property
    def name(self) -> str:
        return "rules"

    def generate(self, domain: Domain, question: str) -> SqlCandidate:
        return SqlCandidate(domain, build_rule_sql(domain, question), source=self.name)

    def regenerate_with_hint(
        self,
        domain: Domain,
        question: str,
        bad_sql: str,
        hint: str,
    ) -> SqlCandidate:
        # Templates do not take hints; an identical candidate means no progress
        return self.generate(domain, question)
