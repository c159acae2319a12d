"""
Data Models
===========

Core data structures shared by the guard, rewrite, execution and
orchestration layers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class Domain(Enum):
    """Business vertical a question belongs to."""

    FINANCE = "FINANCE"
    HEALTHCARE = "HEALTHCARE"

    @classmethod
    def parse(cls, value: "str | Domain") -> "Domain":
        """Accept an enum member or any casing of its name."""
        if isinstance(value, cls):
            return value
        text = (value or "").strip().upper()
        try:
            return cls(text)
        except ValueError:
            raise ValueError(f"Unknown domain: {value!r}") from None


class Dialect(Enum):
    """Query language of a backend."""

    MYSQL = "MYSQL"
    PGSQL = "PGSQL"
    MONGO = "MONGO"

    @property
    def is_relational(self) -> bool:
        return self is not Dialect.MONGO

    @property
    def sqlglot_dialect(self) -> Optional[str]:
        """Dialect name understood by sqlglot (None for the document store)."""
        return {Dialect.MYSQL: "mysql", Dialect.PGSQL: "postgres"}.get(self)


class VerificationStatus(Enum):
    """Status of a verification check."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class VerificationResult:
    """Result of a single verification step."""

    verifier_name: str
    status: VerificationStatus
    message: str
    details: dict = field(default_factory=dict)


@dataclass(frozen=True)
class SqlCandidate:
    """A generated statement paired with its target domain."""

    domain: Domain
    sql: str
    source: str = "llm"

    @property
    def is_blank(self) -> bool:
        return not (self.sql or "").strip()


@dataclass(frozen=True)
class CheckOutcome:
    """Result of the intent alignment check."""

    ok: bool
    hint: str = ""

    @classmethod
    def passed(cls) -> "CheckOutcome":
        return cls(ok=True, hint="")

    @classmethod
    def failed(cls, hint: str) -> "CheckOutcome":
        return cls(ok=False, hint=hint)


@dataclass(frozen=True)
class ExecutionTarget:
    """A resolved backend identity. Holds no connection state."""

    domain: Domain
    dialect: Dialect

    @property
    def key(self) -> str:
        return f"{self.domain.value}_{self.dialect.value}"

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class QueryResult:
    """Outcome of executing a statement. Never mutated after creation."""

    success: bool
    status: str
    error_message: str = ""
    elapsed_ms: int = 0
    columns: tuple[str, ...] = ()
    rows: tuple[tuple[Any, ...], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "columns", tuple(self.columns))
        object.__setattr__(self, "rows", tuple(tuple(row) for row in self.rows))
        if len(set(self.columns)) != len(self.columns):
            raise ValueError(f"Duplicate column names: {list(self.columns)}")
        width = len(self.columns)
        for index, row in enumerate(self.rows):
            if len(row) != width:
                raise ValueError(
                    f"Row {index} has {len(row)} values, expected {width}"
                )

    @classmethod
    def failure(
        cls, status: str, error_message: str, elapsed_ms: int = 0
    ) -> "QueryResult":
        return cls(
            success=False,
            status=status,
            error_message=error_message,
            elapsed_ms=elapsed_ms,
        )

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.rows

    @property
    def first_value(self) -> Any:
        if not self.rows or not self.columns:
            return None
        return self.rows[0][0]

    def as_dicts(self) -> list[dict[str, Any]]:
        return [dict(zip(self.columns, row)) for row in self.rows]


@dataclass(frozen=True)
class CanonicalForm:
    """Order-independent, type-normalized representation of a result set."""

    columns: tuple[str, ...]
    rows: tuple[str, ...]

    @property
    def text(self) -> str:
        return "[" + ", ".join(self.rows) + "]"


@dataclass(frozen=True)
class ParsedMiniQuery:
    """Minimal decomposition of a statement for document-store translation."""

    collection: str
    columns: tuple[str, ...] = ()
    equals_conditions: dict[str, Any] = field(default_factory=dict)
    limit: Optional[int] = None


@dataclass
class AuditEntry:
    """Single entry in the audit trail."""

    timestamp: str
    step: str
    input_data: dict
    output_data: dict
    verification_results: list[VerificationResult] = field(default_factory=list)


@dataclass
class AnswerResult:
    """Final result of an orchestrated answer."""

    success: bool
    sql: str
    result: QueryResult
    rendered: str
    question: str
    domain: Domain
    attempts: int
    audit_trail: list[AuditEntry]
    final_message: str


@dataclass
class LLMResponse:
    """Response from an LLM call."""

    content: str
    model: str
    tokens_used: int = 0
