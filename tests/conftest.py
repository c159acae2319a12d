"""
Pytest Fixtures
===============

Shared fixtures for text-to-SQL engine tests. Relational backends run on an
in-memory SQLite database; the document store is a small in-process fake.
"""

import sys
from pathlib import Path
from typing import Any

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from text2sql_engine.backends.base import DocumentBackend
from text2sql_engine.backends.registry import BackendRegistry
from text2sql_engine.backends.relational import SqlAlchemyBackend
from text2sql_engine.config import Settings
from text2sql_engine.execution.engine import ExecutionEngine
from text2sql_engine.llm.base import LLMInterface
from text2sql_engine.llm.mock import MockLLM
from text2sql_engine.models import (
    Dialect,
    Domain,
    ExecutionTarget,
    LLMResponse,
    VerificationStatus,
)
from text2sql_engine.rewrite.pipeline import RewritePipeline
from text2sql_engine.routing import BackendRouter
from text2sql_engine.verifiers.guard import StatementGuard
from text2sql_engine.verifiers.intent import IntentChecker
from text2sql_engine.vocabulary import VocabularyTable

FINANCE_MYSQL = ExecutionTarget(Domain.FINANCE, Dialect.MYSQL)
FINANCE_PGSQL = ExecutionTarget(Domain.FINANCE, Dialect.PGSQL)
FINANCE_MONGO = ExecutionTarget(Domain.FINANCE, Dialect.MONGO)
HEALTHCARE_MYSQL = ExecutionTarget(Domain.HEALTHCARE, Dialect.MYSQL)
HEALTHCARE_MONGO = ExecutionTarget(Domain.HEALTHCARE, Dialect.MONGO)

SAMPLE_DDL = [
    """CREATE TABLE clients (
        client_id INTEGER PRIMARY KEY,
        client_name TEXT,
        risk_level TEXT,
        total_assets NUMERIC,
        is_active BOOLEAN
    )""",
    """CREATE TABLE portfolios (
        portfolio_id INTEGER PRIMARY KEY,
        client_id INTEGER,
        current_value NUMERIC
    )""",
    """CREATE TABLE transactions (
        transaction_id INTEGER PRIMARY KEY,
        portfolio_id INTEGER,
        transaction_type TEXT,
        transaction_amount NUMERIC
    )""",
    """CREATE TABLE patients (
        patient_id INTEGER PRIMARY KEY,
        name TEXT,
        gender TEXT,
        age INTEGER
    )""",
]

SAMPLE_ROWS = [
    "INSERT INTO clients VALUES (1, '王伟', '高', 1500000, 1)",
    "INSERT INTO clients VALUES (2, '李娜', '中', 800000, 1)",
    "INSERT INTO clients VALUES (3, '王芳', '低', 120000, 0)",
    "INSERT INTO portfolios VALUES (10, 1, 900000)",
    "INSERT INTO portfolios VALUES (11, 2, 400000)",
    "INSERT INTO transactions VALUES (100, 10, '买入', 50000)",
    "INSERT INTO transactions VALUES (101, 11, '卖出', 20000)",
    "INSERT INTO patients VALUES (1, '张三', 'M', 65)",
    "INSERT INTO patients VALUES (2, '李四', 'F', 34)",
    "INSERT INTO patients VALUES (3, '王五', 'M', 52)",
]


class FakeCursor:
    """Iterable stand-in for a pymongo cursor."""

    def __init__(self, documents: list[dict]) -> None:
        self.documents = documents

    def limit(self, n: int) -> "FakeCursor":
        return FakeCursor(self.documents[:n])

    def __iter__(self):
        return iter(self.documents)


class FakeCollection:
    """Equality-only ``find`` over a list of documents."""

    def __init__(self, documents: list[dict]) -> None:
        self.documents = documents
        self.calls: list[tuple[dict, dict]] = []

    def find(self, filter: dict, projection: dict) -> FakeCursor:
        self.calls.append((filter, projection))
        matched = [
            doc for doc in self.documents
            if all(doc.get(k) == v for k, v in filter.items())
        ]
        fields = [k for k, v in projection.items() if v and k != "_id"]
        if fields:
            matched = [{k: doc[k] for k in fields if k in doc} for doc in matched]
        return FakeCursor([dict(doc) for doc in matched])


class FakeDatabase(dict):
    """``database[collection]`` lookup, like a pymongo ``Database``."""


class RecordingDocumentBackend(DocumentBackend):
    """Document backend that records the translated query it receives."""

    def __init__(self, columns: list[str], rows: list[tuple[Any, ...]]) -> None:
        self.columns = columns
        self.rows = rows
        self.calls: list[tuple[str, dict, list[str], int]] = []

    def find(self, collection, filter, columns, limit):
        self.calls.append((collection, filter, columns, limit))
        rows = self.rows[:limit] if limit > 0 else self.rows
        return list(self.columns), list(rows)


@pytest.fixture
def sqlite_engine():
    """In-memory SQLite engine shared across connections."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    with engine.begin() as conn:
        for statement in SAMPLE_DDL + SAMPLE_ROWS:
            conn.execute(text(statement))
    yield engine
    engine.dispose()


@pytest.fixture
def sql_backend(sqlite_engine) -> SqlAlchemyBackend:
    """Relational backend over the sample database."""
    return SqlAlchemyBackend(sqlite_engine)


@pytest.fixture
def document_backend() -> RecordingDocumentBackend:
    """Document backend returning two patient documents."""
    return RecordingDocumentBackend(
        columns=["name", "gender"],
        rows=[("李四", "F"), ("赵六", "F")],
    )


@pytest.fixture
def registry(
    sql_backend: SqlAlchemyBackend,
    document_backend: RecordingDocumentBackend,
) -> BackendRegistry:
    """Registry with SQLite standing in for every relational target."""
    return BackendRegistry({
        FINANCE_MYSQL: sql_backend,
        FINANCE_PGSQL: sql_backend,
        HEALTHCARE_MYSQL: sql_backend,
        HEALTHCARE_MONGO: document_backend,
    })


@pytest.fixture
def vocabulary() -> VocabularyTable:
    """Default finance/healthcare vocabulary."""
    return VocabularyTable()


@pytest.fixture
def guard() -> StatementGuard:
    """Create a StatementGuard instance."""
    return StatementGuard()


@pytest.fixture
def intent_checker() -> IntentChecker:
    """Create an IntentChecker with the default policy."""
    return IntentChecker()


@pytest.fixture
def pipeline(vocabulary: VocabularyTable) -> RewritePipeline:
    """Create a rewrite pipeline with the default vocabulary."""
    return RewritePipeline(vocabulary)


@pytest.fixture
def engine(registry: BackendRegistry, vocabulary: VocabularyTable) -> ExecutionEngine:
    """Execution engine with one repair round."""
    return ExecutionEngine(registry, vocabulary=vocabulary, max_repairs=1)


@pytest.fixture
def router() -> BackendRouter:
    """Router defaulting to MySQL."""
    return BackendRouter(default_dialect=Dialect.MYSQL)


@pytest.fixture
def rules_settings() -> Settings:
    """Settings with the rule-based primary generator and no retry delay."""
    return Settings(
        generator_mode="rules",
        default_dialect="mysql",
        generation_backoff_seconds=0,
        generation_max_retries=2,
    )


@pytest.fixture
def mock_llm_simple() -> MockLLM:
    """Create a simple mock LLM with basic responses."""
    return MockLLM(
        responses={
            "high risk clients": [
                "```sql\nSELECT client_id, client_name FROM clients WHERE risk_level = 'high'\n```"
            ],
            "portfolio values": ["SELECT portfolio_id, current_value FROM portfolios"],
        }
    )


@pytest.fixture
def mock_llm_with_correction() -> MockLLM:
    """Create a mock LLM whose first answer misses the aggregate."""
    return MockLLM(
        responses={
            "how many clients": [
                "SELECT client_id FROM clients",
                "SELECT COUNT(*) AS cnt FROM clients",
            ],
        }
    )


def assert_verification_passed(result) -> None:
    """Helper assertion for verification results."""
    assert result.status == VerificationStatus.PASSED, f"Expected PASSED, got: {result.message}"


def assert_verification_failed(result) -> None:
    """Helper assertion for verification failures."""
    assert result.status == VerificationStatus.FAILED, f"Expected FAILED, got: {result.message}"


class FailingLLM(LLMInterface):
    """LLM that always raises, counting calls."""

    def __init__(self) -> None:
        self.calls = 0

    def generate(self, prompt: str, system_prompt: str | None = None) -> LLMResponse:
        self.calls += 1
        raise ConnectionError("model endpoint unreachable")
