"""
Text-to-SQL Service
===================

Wires settings, backends, generators and the orchestrator together and
exposes the two public operations: answering a question and running a
caller-supplied read-only statement.
"""

from text2sql_engine import __version__
from text2sql_engine.backends.registry import BackendRegistry
from text2sql_engine.config import Settings, get_settings
from text2sql_engine.execution.engine import ExecutionEngine
from text2sql_engine.generation import build_generator
from text2sql_engine.generation.rules import RuleBasedSqlGenerator
from text2sql_engine.generation.schema import SchemaTextProvider
from text2sql_engine.llm.base import LLMInterface
from text2sql_engine.models import AnswerResult, Dialect, Domain, QueryResult
from text2sql_engine.observability.logging_config import get_logger, setup_logging
from text2sql_engine.observability.metrics import set_app_info
from text2sql_engine.observability.tracing import setup_tracing
from text2sql_engine.orchestrator import AnswerOrchestrator
from text2sql_engine.rewrite.pipeline import RewritePipeline
from text2sql_engine.routing import BackendRouter, DomainClassifier
from text2sql_engine.verifiers.intent import IntentChecker, IntentPolicy
from text2sql_engine.vocabulary import VocabularyTable

logger = get_logger(__name__)


class Text2SqlService:
    """Public entry point of the engine."""

    def __init__(
        self,
        settings: Settings,
        backends: BackendRegistry,
        llm: LLMInterface | None = None,
        vocabulary: VocabularyTable | None = None,
        schema_provider: SchemaTextProvider | None = None,
        policy: IntentPolicy | None = None,
    ) -> None:
        self.settings = settings
        self.backends = backends
        self.vocabulary = vocabulary or VocabularyTable()
        self.router = BackendRouter(default_dialect=settings.default_dialect)
        self.engine = ExecutionEngine(
            backends,
            vocabulary=self.vocabulary,
            max_repairs=settings.execution_max_repairs,
        )
        checker = IntentChecker(policy)
        self.orchestrator = AnswerOrchestrator(
            generator=build_generator(
                settings, llm, schema_provider=schema_provider, vocabulary=self.vocabulary
            ),
            engine=self.engine,
            router=self.router,
            fallback=RuleBasedSqlGenerator(),
            classifier=DomainClassifier(),
            checker=checker,
            pipeline=RewritePipeline(self.vocabulary, checker.policy),
            max_attempts=settings.max_attempts,
            max_rows=settings.default_max_rows,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        llm: LLMInterface | None = None,
        backends: BackendRegistry | None = None,
        configure_observability: bool = False,
    ) -> "Text2SqlService":
        """
        Build a service from configuration.

        Args:
            settings: Defaults to the process-wide ``get_settings()``
            llm: Chat client for the LLM generator; rules mode when omitted
            backends: Defaults to a registry built from the settings URLs
            configure_observability: Install logging and tracing for the process
        """
        settings = settings or get_settings()
        if configure_observability:
            setup_logging(settings.log_level)
            setup_tracing(otlp_endpoint=settings.otlp_endpoint)
        set_app_info(version=__version__, environment=settings.environment)
        return cls(settings, backends or BackendRegistry.from_settings(settings), llm=llm)

    def execute_read_only(
        self,
        domain: "str | Domain",
        dialect: "str | Dialect | None",
        sql: str,
        max_rows: int | None = None,
    ) -> QueryResult:
        """
        Run a caller-supplied statement through the guard and the engine.

        Raises:
            BackendResolutionError: unknown domain/dialect combination
        """
        target = self.router.resolve(domain, dialect)
        limit = self.settings.default_max_rows if max_rows is None else max_rows
        return self.engine.execute(sql, target, limit)

    def answer(
        self,
        question: str,
        domain: "str | Domain | None" = None,
        dialect: "str | Dialect | None" = None,
    ) -> AnswerResult:
        """Answer a natural-language question end to end."""
        resolved = Domain.parse(domain) if domain is not None else None
        return self.orchestrator.answer(question, domain=resolved, dialect=dialect)

    def close(self) -> None:
        self.backends.close()
        logger.info("Service closed")
