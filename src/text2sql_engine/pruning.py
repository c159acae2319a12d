"""
Result Pruning
==============

Drops columns the question did not ask for before rendering: statistic
questions keep the aggregate column, "what is the name / amount of ..."
questions keep the named fields. Always returns a new ``QueryResult``.
"""

from text2sql_engine.models import Domain, QueryResult
from text2sql_engine.verifiers.intent import IntentPolicy, contains_any, wants_aggregate

AGGREGATE_NAMES = {
    "cnt", "count", "total", "sum", "avg", "min", "max", "num", "number",
    "amount", "value",
}
AGGREGATE_PREFIXES = ("count", "sum", "avg", "min", "max", "total")

FIELD_WORDS: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (("姓名",), ("client_name", "name")),
    (("名称", "名字"), ("product_name", "name", "client_name")),
    (("编号",), (
        "client_id", "patient_id", "product_id", "portfolio_id",
        "transaction_id", "encounter_id",
    )),
    (("金额", "交易额", "费用"), ("transaction_amount", "amount")),
    (("资产",), ("total_assets",)),
)

ENTITY_KEYS: dict[Domain, tuple[tuple[str, tuple[str, ...]], ...]] = {
    Domain.FINANCE: (("客户", ("client_id", "client_name")),),
    Domain.HEALTHCARE: (("患者", ("patient_id", "name")),),
}


def _keep(result: QueryResult, keep: list[str]) -> QueryResult:
    wanted = {name.lower() for name in keep}
    indexes = [i for i, c in enumerate(result.columns) if c.lower() in wanted]
    if not indexes:
        indexes = list(range(len(result.columns)))
    return QueryResult(
        success=result.success,
        status=result.status,
        error_message=result.error_message,
        elapsed_ms=result.elapsed_ms,
        columns=[result.columns[i] for i in indexes],
        rows=[[row[i] for i in indexes] for row in result.rows],
    )


def _aggregate_columns(columns: tuple[str, ...]) -> list[str]:
    found = [
        c for c in columns
        if c.lower() in AGGREGATE_NAMES or c.lower().startswith(AGGREGATE_PREFIXES)
    ]
    return found or [columns[0]]


def _requested_fields(domain: Domain, question: str) -> list[str]:
    fields: list[str] = []
    for words, columns in FIELD_WORDS:
        if contains_any(question, words):
            fields.extend(columns)
    if fields:
        for noun, keys in ENTITY_KEYS.get(domain, ()):
            if noun in question:
                fields.extend(keys)
    return fields


def prune_by_intent(
    domain: Domain,
    question: str,
    result: QueryResult,
    policy: IntentPolicy | None = None,
) -> QueryResult:
    """
    Keep only the columns the question asks for.

    Grouped statistics ("每个部门的数量") are left whole, since the group key
    is part of the answer. Unmatched pruning keeps every column.

    Args:
        domain: Domain of the question
        question: Natural-language question
        result: Successful query result
        policy: Supplies the aggregate and grouping words

    Returns:
        A new QueryResult
    """
    policy = policy or IntentPolicy.default()
    q = (question or "").lower()

    if not result.success or len(result.columns) <= 1:
        return _keep(result, list(result.columns))

    if wants_aggregate(q, policy) and not contains_any(q, policy.group_words):
        return _keep(result, _aggregate_columns(result.columns))

    fields = _requested_fields(domain, q)
    if fields:
        return _keep(result, fields)

    return _keep(result, list(result.columns))
