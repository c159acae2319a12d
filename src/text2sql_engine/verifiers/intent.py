"""
Intent Checker
==============

Heuristic alignment check between question wording and SQL shape.

Keyword sets are deployment policy, not contract: pass a custom
``IntentPolicy`` to swap them per domain or language.
"""

import re
from dataclasses import dataclass, field
from functools import lru_cache

from text2sql_engine.models import (
    CheckOutcome,
    Domain,
    VerificationResult,
    VerificationStatus,
)
from text2sql_engine.verifiers.base import Verifier

AGGREGATE_CALL = re.compile(r"\b(count|sum|avg|min|max)\s*\(", re.IGNORECASE)
GROUP_BY = re.compile(r"\bgroup\s+by\b", re.IGNORECASE)
ORDER_BY = re.compile(r"\border\s+by\b", re.IGNORECASE)


@dataclass(frozen=True)
class ListingRule:
    """A "show me the <entity>" question must return the entity's key columns."""

    domain: Domain
    nouns: tuple[str, ...]
    table: str
    required_columns: tuple[str, ...]
    suggested_columns: tuple[str, ...]


@dataclass(frozen=True)
class IntentPolicy:
    """Keyword sets driving the intent rules."""

    aggregate_words: tuple[str, ...]
    group_words: tuple[str, ...]
    ranking_words: tuple[str, ...]
    ranking_patterns: tuple[str, ...]
    listing_verbs: tuple[str, ...]
    listing_rules: tuple[ListingRule, ...] = field(default_factory=tuple)

    @classmethod
    def default(cls) -> "IntentPolicy":
        return cls(
            aggregate_words=(
                "多少", "数量", "总数", "统计", "次数", "总和", "平均",
                "how many", "number of", "count of", "in total", "total number",
                "average", "sum of",
            ),
            group_words=(
                "每个", "各", "按", "分别", "分组",
                "each", "per ", "grouped", "broken down by",
            ),
            ranking_words=(
                "top", "最高", "最大", "最小", "最多", "最少",
                "highest", "lowest", "the most", "the least", "largest", "smallest",
            ),
            ranking_patterns=(r"前\s*[0-9一二三四五六七八九十百]+",),
            listing_verbs=(
                "查看", "查询", "列出", "显示", "获取", "找出",
                "show", "list", "find", "display",
            ),
            listing_rules=(
                ListingRule(
                    domain=Domain.FINANCE,
                    nouns=("客户", "client"),
                    table="clients",
                    required_columns=("client_id", "client_name", "risk_level"),
                    suggested_columns=(
                        "client_id", "client_name", "risk_level", "total_assets",
                    ),
                ),
                ListingRule(
                    domain=Domain.HEALTHCARE,
                    nouns=("患者", "病人", "patient"),
                    table="patients",
                    required_columns=("patient_id", "name"),
                    suggested_columns=("patient_id", "name", "gender", "age"),
                ),
            ),
        )


@lru_cache(maxsize=512)
def _word_pattern(key: str) -> re.Pattern:
    # Whole words only, with an optional plural ending.
    return re.compile(rf"\b{re.escape(key.strip())}(?:e?s)?\b")


def contains_any(text: str, keys: tuple[str, ...]) -> bool:
    """
    True when any key occurs in ``text``.

    ASCII keys match whole words ("top" is not found in "stop"); CJK keys
    have no word boundaries and match as substrings.
    """
    for k in keys:
        if not k.strip():
            continue
        if k.isascii():
            if _word_pattern(k).search(text):
                return True
        elif k in text:
            return True
    return False


def has_aggregate(sql: str) -> bool:
    return bool(AGGREGATE_CALL.search(sql or "")) or bool(GROUP_BY.search(sql or ""))


def is_listing_question(question: str, policy: IntentPolicy, nouns: tuple[str, ...] = ()) -> bool:
    """True when the question asks to show/list records, optionally of ``nouns``."""
    q = (question or "").lower()
    if not contains_any(q, policy.listing_verbs):
        return False
    return not nouns or contains_any(q, nouns)


def wants_aggregate(question: str, policy: IntentPolicy) -> bool:
    return contains_any((question or "").lower(), policy.aggregate_words)


class IntentChecker(Verifier):
    """Rule-based, state-free question/SQL alignment check."""

    def __init__(self, policy: IntentPolicy | None = None) -> None:
        self.policy = policy or IntentPolicy.default()

    @property
    def name(self) -> str:
        return "IntentChecker"

    def check(self, question: str, sql: str) -> CheckOutcome:
        """
        Check that the SQL shape matches what the question asks for.

        Rules run in order (aggregation, grouping, ranking, listing); the first
        failing rule's hint is returned.
        """
        if not question or not sql:
            return CheckOutcome.passed()

        q = question.lower()
        s = sql.lower()
        policy = self.policy

        if contains_any(q, policy.aggregate_words) and not AGGREGATE_CALL.search(s):
            return CheckOutcome.failed(
                "The question asks for a count or statistic, but the SQL has no "
                "aggregate function (COUNT/SUM/AVG/MIN/MAX)"
            )

        if contains_any(q, policy.group_words) and not GROUP_BY.search(s):
            return CheckOutcome.failed(
                "The question asks for a per-group breakdown, but the SQL has no GROUP BY"
            )

        ranking = contains_any(q, policy.ranking_words) or any(
            re.search(p, q) for p in policy.ranking_patterns
        )
        if ranking and not ORDER_BY.search(s):
            return CheckOutcome.failed(
                "The question asks for a ranking or extreme value, but the SQL has no ORDER BY"
            )

        for rule in policy.listing_rules:
            if not self._is_listing(q, s, rule):
                continue
            if not all(col in s for col in rule.required_columns):
                return CheckOutcome.failed(
                    f"Listing {rule.table} must return "
                    f"{', '.join(rule.suggested_columns)} (not a single column)"
                )

        return CheckOutcome.passed()

    def _is_listing(self, q: str, s: str, rule: ListingRule) -> bool:
        if not is_listing_question(q, self.policy, rule.nouns):
            return False
        from_table = re.search(rf"\bfrom\s+{re.escape(rule.table)}\b", s)
        return bool(from_table) and not has_aggregate(s)

    def verify(self, sql: str, context: dict) -> VerificationResult:
        """
        Verify SQL matches the intent of ``context["original_query"]``.

        Args:
            sql: SQL statement to check
            context: Must contain 'original_query' key

        Returns:
            VerificationResult with PASSED or FAILED status
        """
        outcome = self.check(context.get("original_query", ""), sql)
        if not outcome.ok:
            return VerificationResult(
                verifier_name=self.name,
                status=VerificationStatus.FAILED,
                message=f"Intent mismatch: {outcome.hint}",
                details={"hint": outcome.hint},
            )

        return VerificationResult(
            verifier_name=self.name,
            status=VerificationStatus.PASSED,
            message="SQL appears to match question intent",
        )
