"""
Default Projection
==================

Listing questions answered with ``SELECT *`` or a single column get the
table's default column list instead.
"""

import sqlglot
from sqlglot import exp
from sqlglot.errors import SqlglotError

from text2sql_engine.models import Domain
from text2sql_engine.observability.logging_config import get_logger
from text2sql_engine.verifiers.intent import IntentPolicy, is_listing_question

logger = get_logger(__name__)

DEFAULT_COLUMNS: dict[Domain, dict[str, tuple[str, ...]]] = {
    Domain.FINANCE: {
        "clients": ("client_id", "client_name", "risk_level", "total_assets"),
        "products": ("product_id", "product_name", "product_type", "risk_rating", "currency"),
        "portfolios": (
            "portfolio_id", "portfolio_code", "client_id", "portfolio_type",
            "current_value", "contribution_amount",
        ),
        "transactions": (
            "transaction_id", "portfolio_id", "product_id", "trade_date",
            "transaction_type", "transaction_amount",
        ),
    },
    Domain.HEALTHCARE: {
        "patients": ("patient_id", "name", "gender", "age"),
        "medical_encounters": ("encounter_id", "patient_id", "department_id", "encounter_date"),
        "departments_wards": ("dept_ward_id", "name", "parent_id"),
        "medical_orders": ("order_id", "patient_id", "order_type", "order_date"),
        "billing_transactions": ("billing_id", "patient_id", "amount", "billing_date"),
    },
}

LISTING_NOUNS: dict[Domain, tuple[str, ...]] = {
    Domain.FINANCE: (
        "客户", "产品", "组合", "交易",
        "client", "product", "portfolio", "transaction", "trade",
    ),
    Domain.HEALTHCARE: (
        "患者", "就诊", "科室", "医嘱", "账单",
        "patient", "encounter", "visit", "department", "order", "bill",
    ),
}


def _is_simple_projection(select: exp.Select) -> bool:
    projections = select.expressions
    if len(projections) != 1:
        return False
    only = projections[0]
    return isinstance(only, exp.Star) or (
        isinstance(only, exp.Column) and isinstance(only.this, (exp.Identifier, exp.Star))
    )


def enforce_default_projection(
    domain: Domain,
    question: str,
    sql: str,
    dialect: str | None = None,
    policy: IntentPolicy | None = None,
) -> str:
    """
    Replace a ``*`` / single-column projection with the table defaults.

    Args:
        domain: Selects the default column table
        question: Natural-language question
        sql: Statement to rewrite
        dialect: sqlglot dialect name
        policy: Supplies the listing verbs

    Returns:
        The rewritten statement, or ``sql`` unchanged
    """
    if not sql or not sql.strip():
        return sql
    if not is_listing_question(question, policy or IntentPolicy.default(), LISTING_NOUNS[domain]):
        return sql

    try:
        select = sqlglot.parse_one(sql.strip().rstrip(";"), read=dialect)
    except SqlglotError as e:
        logger.debug("projection skipped, parse failed", error=str(e))
        return sql

    if not isinstance(select, exp.Select):
        return sql
    if select.args.get("joins") or select.args.get("group") or select.args.get("distinct"):
        return sql
    if select.find(exp.AggFunc) is not None:
        return sql

    tables = list(select.find_all(exp.Table))
    if len(tables) != 1:
        return sql
    table = tables[0]

    columns = DEFAULT_COLUMNS[domain].get(table.name.lower())
    if not columns or not _is_simple_projection(select):
        return sql

    return select.select(*columns, append=False, dialect=dialect).sql(dialect=dialect)
