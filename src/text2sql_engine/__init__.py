"""
Text-to-SQL Engine
==================

Natural-language questions to verified, read-only SQL over finance and
healthcare backends (MySQL, PostgreSQL, MongoDB).
"""

__version__ = "0.1.0"

from text2sql_engine.models import (  # noqa: E402
    AnswerResult,
    AuditEntry,
    CheckOutcome,
    Dialect,
    Domain,
    ExecutionTarget,
    LLMResponse,
    QueryResult,
    SqlCandidate,
    VerificationResult,
    VerificationStatus,
)
from text2sql_engine.orchestrator import AnswerOrchestrator  # noqa: E402
from text2sql_engine.service import Text2SqlService  # noqa: E402
from text2sql_engine.verifiers import (  # noqa: E402
    IntentChecker,
    StatementGuard,
    VerificationChain,
    Verifier,
)
from text2sql_engine.llm import LLMInterface, MockLLM  # noqa: E402

__all__ = [
    # Models
    "AnswerResult",
    "AuditEntry",
    "CheckOutcome",
    "Dialect",
    "Domain",
    "ExecutionTarget",
    "LLMResponse",
    "QueryResult",
    "SqlCandidate",
    "VerificationResult",
    "VerificationStatus",
    # Orchestration
    "AnswerOrchestrator",
    "Text2SqlService",
    # Verifiers
    "Verifier",
    "VerificationChain",
    "StatementGuard",
    "IntentChecker",
    # LLM
    "LLMInterface",
    "MockLLM",
]
