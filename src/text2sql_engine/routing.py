"""
Domain and Backend Routing
==========================

Classifies a question into a business domain and resolves a
(domain, dialect) pair to an ``ExecutionTarget``.

The target is always passed explicitly. The only ambient copy is the
structlog context binding made by ``bound_target`` so log lines emitted
during one execution carry it.
"""

import re
from contextlib import contextmanager
from typing import Iterable, Iterator

from text2sql_engine.errors import BackendResolutionError
from text2sql_engine.models import Dialect, Domain, ExecutionTarget
from text2sql_engine.observability.logging_config import bind_context, unbind_context

DRUG_NAMES = (
    "阿莫西林", "阿司匹林", "布洛芬", "头孢", "奥美拉唑", "二甲双胍", "甲硝唑",
    "左氧氟沙星", "诺氟沙星", "青霉素", "红霉素", "维生素", "葡萄糖", "胰岛素",
)

DOSAGE_FORM_SUFFIX = re.compile(
    r"(片|胶囊|注射液|针剂|颗粒|滴丸|缓释片|控释片|口服液|混悬液|乳膏|栓|喷雾)"
)

MEDICAL_TERMS = (
    "患者", "病人", "诊断", "处方", "用药", "剂量", "给药", "禁忌", "不良反应",
    "过敏", "适应症", "门诊", "住院", "手术", "检验", "检查", "病历", "医保",
    "科室", "库存", "药房", "就诊", "医嘱", "医生", "医师", "医院", "药品", "护士",
    "挂号", "病房", "床位", "patient", "diagnosis", "prescription", "hospital",
    "doctor", "nurse",
)

FINANCE_TERMS = (
    "客户", "账户", "资金", "余额", "交易", "持仓", "基金", "股票", "债券", "产品",
    "净值", "收益", "风险", "申购", "赎回", "对手方", "结算", "保证金", "投资组合",
    "client", "portfolio", "trade", "fund",
)

DIALECT_SYNONYMS = {
    "MYSQL": Dialect.MYSQL,
    "MARIADB": Dialect.MYSQL,
    "PGSQL": Dialect.PGSQL,
    "POSTGRES": Dialect.PGSQL,
    "POSTGRESQL": Dialect.PGSQL,
    "PG": Dialect.PGSQL,
    "MONGO": Dialect.MONGO,
    "MONGODB": Dialect.MONGO,
}

_PUNCTUATION = re.compile(r"[\s，。！？,.!?]+")


class DomainClassifier:
    """Keyword classifier; the first rule in priority order wins."""

    def __init__(self, default: Domain = Domain.FINANCE) -> None:
        self.default = default

    def classify(self, question: str) -> Domain:
        if not question or not question.strip():
            return self.default

        q = _PUNCTUATION.sub("", question).lower()

        if any(drug in q for drug in DRUG_NAMES):
            return Domain.HEALTHCARE
        if DOSAGE_FORM_SUFFIX.search(q):
            return Domain.HEALTHCARE
        if any(term in q for term in MEDICAL_TERMS):
            return Domain.HEALTHCARE
        if any(term in q for term in FINANCE_TERMS):
            return Domain.FINANCE
        return self.default


def parse_dialect(value: "str | Dialect") -> Dialect:
    """Fold a dialect name or synonym to a ``Dialect``."""
    if isinstance(value, Dialect):
        return value
    token = (value or "").strip().upper()
    if token not in DIALECT_SYNONYMS:
        raise BackendResolutionError(f"Unknown dialect: {value!r}")
    return DIALECT_SYNONYMS[token]


def _name(value: "str | Domain | Dialect") -> str:
    return value.value if isinstance(value, (Domain, Dialect)) else str(value)


class BackendRouter:
    """Resolves (domain, dialect hint) to an execution target."""

    def __init__(
        self,
        default_dialect: "str | Dialect" = Dialect.MYSQL,
        available: Iterable[ExecutionTarget] | None = None,
    ) -> None:
        """
        Initialize the router.

        Args:
            default_dialect: Used when a caller gives no hint
            available: Targets that have a backend; when given, anything else
                is rejected at resolution time
        """
        self.default_dialect = parse_dialect(default_dialect)
        self.available = frozenset(available) if available is not None else None

    def resolve(
        self,
        domain: "str | Domain",
        dialect_hint: "str | Dialect | None" = None,
    ) -> ExecutionTarget:
        """
        Resolve a backend identity.

        ``domain`` may also be a combined name such as ``FINANCE_PGSQL``, in
        which case ``dialect_hint`` must be omitted.

        Raises:
            BackendResolutionError: unknown domain, dialect or combination
        """
        if isinstance(domain, str) and "_" in domain and dialect_hint is None:
            domain, _, dialect_hint = domain.partition("_")

        identity = f"{_name(domain)}_{_name(dialect_hint or self.default_dialect)}".upper()
        try:
            resolved_domain = Domain.parse(domain)
        except ValueError:
            raise BackendResolutionError(f"Unknown backend identity: {identity}") from None
        try:
            dialect = parse_dialect(dialect_hint) if dialect_hint else self.default_dialect
        except BackendResolutionError:
            raise BackendResolutionError(f"Unknown backend identity: {identity}") from None

        target = ExecutionTarget(resolved_domain, dialect)
        if self.available is not None and target not in self.available:
            raise BackendResolutionError(f"No backend configured for {target.key}")
        return target


@contextmanager
def bound_target(target: ExecutionTarget) -> Iterator[ExecutionTarget]:
    """Bind ``target`` into the logging context for the duration of the block."""
    bind_context(target=target.key)
    try:
        yield target
    finally:
        unbind_context("target")
