"""
Vocabulary Table
================

Per-domain enum-value mapping (``table.column`` -> natural-language value ->
stored code) and table-name aliases. Injected wherever it is needed; the
built-in default covers the stock finance and healthcare schemas and can be
replaced with a JSON or YAML document of the same shape::

    {
      "finance": {
        "value_mapping": {"clients.risk_level": {"low": "低", ...}},
        "table_alias": {"trades": "transactions", ...}
      },
      "healthcare": {...}
    }
"""

import json
from pathlib import Path
from typing import Any

import yaml

from text2sql_engine.models import Domain

DEFAULT_MAPPING: dict[str, dict[str, Any]] = {
    "finance": {
        "value_mapping": {
            "clients.risk_level": {
                "low": "低", "medium": "中", "high": "高",
                "保守": "低", "稳健": "中", "激进": "高",
            },
            "clients.is_active": {
                "active": "TRUE", "inactive": "FALSE",
                "活跃": "TRUE", "有效": "TRUE", "无效": "FALSE",
            },
            "counterparties.counterparty_type": {
                "bank": "银行", "broker": "券商", "securities": "券商",
                "insurance": "保险",
            },
            "transactions.transaction_type": {
                "buy": "买入", "purchase": "买入", "sell": "卖出",
                "redeem": "赎回", "dividend": "分红",
            },
            "transactions.status": {
                "confirmed": "已成", "filled": "已成", "pending": "待成",
                "cancelled": "已撤", "canceled": "已撤",
            },
        },
        "table_alias": {
            "trades": "transactions",
            "trade": "transactions",
            "portfolio": "portfolios",
            "counterparty": "counterparties",
            "client": "clients",
            "product": "products",
        },
    },
    "healthcare": {
        "value_mapping": {
            "patients.gender": {
                "male": "M", "man": "M", "男": "M", "男性": "M",
                "female": "F", "woman": "F", "女": "F", "女性": "F",
            },
            "medical_orders.order_type": {
                "medication": "药品", "drug": "药品",
                "lab": "检验", "exam": "检查", "surgery": "手术",
            },
            "medical_encounters.encounter_type": {
                "outpatient": "门诊", "inpatient": "住院", "emergency": "急诊",
            },
            "billing_transactions.status": {
                "paid": "已结算", "unpaid": "未结算", "refunded": "已退费",
            },
        },
        "table_alias": {
            "patient": "patients",
            "visits": "medical_encounters",
            "encounters": "medical_encounters",
            "departments": "departments_wards",
            "wards": "departments_wards",
            "orders": "medical_orders",
            "equipment_usage": "medical_equipment_usage",
            "staff": "medical_staff",
            "pharmacy": "pharmacy_inventory",
        },
    },
}


def _normalize_column(full_column: str) -> str:
    """``public.clients.status`` -> ``clients.status``, lower-cased."""
    text = (full_column or "").strip()
    if text.count(".") >= 2:
        text = text[text.index(".") + 1:]
    return text.lower()


class VocabularyTable:
    """Read-only enum and table-alias lookups, keyed by domain."""

    def __init__(self, mapping: dict[str, dict[str, Any]] | None = None) -> None:
        """
        Initialize the table.

        Args:
            mapping: Domain name (any casing) -> {"value_mapping", "table_alias"}.
                Defaults to the built-in finance/healthcare vocabulary.
        """
        source = DEFAULT_MAPPING if mapping is None else mapping
        self._domains: dict[str, dict[str, Any]] = {
            name.lower(): body for name, body in source.items()
        }

    @classmethod
    def from_json(cls, path: str | Path) -> "VocabularyTable":
        with open(path, encoding="utf-8") as f:
            return cls(json.load(f))

    @classmethod
    def from_yaml(cls, path: str | Path) -> "VocabularyTable":
        """Load a mapping document written in YAML; an empty file yields an empty table."""
        with open(path, encoding="utf-8") as f:
            return cls(yaml.safe_load(f) or {})

    def _domain(self, domain: Domain) -> dict[str, Any]:
        return self._domains.get(domain.value.lower(), {})

    def _value_mapping(self, domain: Domain) -> dict[str, dict[str, Any]]:
        mapping = self._domain(domain).get("value_mapping") or {}
        return {_normalize_column(col): values for col, values in mapping.items()}

    def lookup_enum(self, domain: Domain, full_column: str, literal: str) -> str | None:
        """
        Map a natural-language value to the stored code.

        A literal that is already one of the column's codes maps to itself,
        so a second pass over rewritten SQL changes nothing.

        Args:
            domain: Domain whose vocabulary is consulted
            full_column: ``table.column`` (a schema prefix is ignored)
            literal: Value as written in the SQL

        Returns:
            The stored code, or None when the column or value is unknown
        """
        if literal is None:
            return None
        values = self._value_mapping(domain).get(_normalize_column(full_column))
        if not values:
            return None

        key = literal.strip()
        for candidate in (key, key.lower(), key.upper()):
            if candidate in values:
                return str(values[candidate])

        codes = {str(v) for v in values.values()}
        if key in codes:
            return key
        return None

    def table_alias_map(self, domain: Domain) -> dict[str, str]:
        """Alternate table name -> canonical table name."""
        aliases = self._domain(domain).get("table_alias") or {}
        return {str(k): str(v) for k, v in aliases.items()}

    def enum_constraint_prompt(self, domain: Domain) -> str:
        """Prompt section listing the allowed codes of every mapped column."""
        mapping = self._domain(domain).get("value_mapping") or {}
        if not mapping:
            return ""

        lines = ["Enum value constraints (must be followed exactly):"]
        for column, values in mapping.items():
            codes = list(dict.fromkeys(str(v) for v in values.values()))
            lines.append(f"- {column} only accepts the codes: {', '.join(codes)}")
            for word, code in values.items():
                lines.append(f"  - {word} -> '{code}'")
        lines.append(
            "- Never put natural-language values (e.g. Female / Male / 女 / 男) "
            "in the SQL; use the codes above"
        )
        return "\n".join(lines)
