"""
Answer Orchestrator
===================

Turns a question into an executed, rendered answer:

    generate -> check -> rewrite -> validate -> execute -> prune/render

Each question gets up to ``max_attempts`` attempts. Blank or unavailable
primary generation falls back to the rule templates; an intent mismatch gets
exactly one hinted regeneration; an unsafe candidate is discarded; backend
errors are repaired inside the execution engine only. All state lives in
the call, so one orchestrator serves concurrent requests.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from text2sql_engine.canonical import render
from text2sql_engine.errors import GenerationUnavailableError
from text2sql_engine.execution.engine import STATUS_FAILED, ExecutionEngine
from text2sql_engine.generation.base import SqlGenerator
from text2sql_engine.generation.rules import RuleBasedSqlGenerator
from text2sql_engine.models import (
    AnswerResult,
    AuditEntry,
    CheckOutcome,
    Dialect,
    Domain,
    ExecutionTarget,
    QueryResult,
    SqlCandidate,
    VerificationResult,
)
from text2sql_engine.observability.logging_config import get_logger
from text2sql_engine.observability.metrics import (
    GENERATOR_FALLBACKS,
    INTENT_FAILURES,
    track_answer_metrics,
)
from text2sql_engine.observability.tracing import get_tracer, target_span
from text2sql_engine.pruning import prune_by_intent
from text2sql_engine.rewrite.pipeline import RewritePipeline
from text2sql_engine.routing import BackendRouter, DomainClassifier
from text2sql_engine.verifiers.base import VerificationChain
from text2sql_engine.verifiers.guard import StatementGuard
from text2sql_engine.verifiers.intent import IntentChecker

logger = get_logger(__name__)
tracer = get_tracer(__name__)

GENERIC_FAILURE = "The question could not be answered"


@dataclass
class _Run:
    """Per-call state of one ``answer`` invocation."""

    question: str
    domain: Domain
    target: ExecutionTarget
    audit_trail: list[AuditEntry] = field(default_factory=list)
    failed_verifiers: list[str] = field(default_factory=list)
    tried: set[str] = field(default_factory=set)
    best_sql: str = ""
    best_result: QueryResult | None = None

    def log(
        self,
        step: str,
        input_data: dict,
        output_data: dict,
        verification_results: list[VerificationResult] | None = None,
    ) -> None:
        """Add entry to audit trail."""
        self.audit_trail.append(AuditEntry(
            timestamp=datetime.now(timezone.utc).isoformat(),
            step=step,
            input_data=input_data,
            output_data=output_data,
            verification_results=verification_results or [],
        ))

    def remember(self, sql: str, result: QueryResult) -> None:
        """Keep the latest executed candidate; unvalidated ones are never kept."""
        if sql and sql.strip():
            self.best_sql = sql
            self.best_result = result


class AnswerOrchestrator:
    """Bounded generate/check/repair/validate/execute loop."""

    def __init__(
        self,
        generator: SqlGenerator,
        engine: ExecutionEngine,
        router: BackendRouter,
        fallback: SqlGenerator | None = None,
        classifier: DomainClassifier | None = None,
        checker: IntentChecker | None = None,
        pipeline: RewritePipeline | None = None,
        verification_chain: VerificationChain | None = None,
        max_attempts: int = 3,
        max_rows: int = 200,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            generator: Primary SQL generator
            engine: Execution engine
            router: Resolves the execution target
            fallback: Generator used when the primary one is blank or unavailable
            classifier: Picks the domain when the caller does not
            checker: Intent alignment check
            pipeline: Rewrite steps
            verification_chain: Validation run before execution
            max_attempts: Attempts per question
            max_rows: Row cap passed to the engine
        """
        self.generator = generator
        self.engine = engine
        self.router = router
        self.fallback = fallback or RuleBasedSqlGenerator()
        self.classifier = classifier or DomainClassifier()
        self.checker = checker or IntentChecker()
        self.pipeline = pipeline or RewritePipeline(policy=self.checker.policy)
        self.verification_chain = verification_chain or VerificationChain([StatementGuard()])
        self.max_attempts = max(1, max_attempts)
        self.max_rows = max_rows

    def answer(
        self,
        question: str,
        domain: Domain | None = None,
        dialect: "str | Dialect | None" = None,
    ) -> AnswerResult:
        """
        Answer a natural-language question.

        Args:
            question: The user's question
            domain: Business domain; classified from the question when omitted
            dialect: Backend dialect hint; the router default when omitted

        Returns:
            AnswerResult with the SQL, its result, the rendered answer and the
            audit trail

        Raises:
            BackendResolutionError: the (domain, dialect) pair has no backend identity
        """
        start = time.perf_counter()
        resolved_domain = domain or self.classifier.classify(question)
        target = self.router.resolve(resolved_domain, dialect)
        run = _Run(question=question, domain=resolved_domain, target=target)

        with target_span(tracer, "answer", target) as span:
            result = self._loop(run)

            span.set_attribute("answer.success", result.success)
            span.set_attribute("answer.attempts", result.attempts)

        track_answer_metrics(
            success=result.success,
            attempts=result.attempts,
            duration_seconds=time.perf_counter() - start,
            failed_verifiers=run.failed_verifiers,
        )
        logger.info(
            "Question answered",
            success=result.success,
            attempts=result.attempts,
            domain=resolved_domain.value,
            target=target.key,
        )
        return result

    def _loop(self, run: _Run) -> AnswerResult:
        attempts = 0
        for attempt in range(1, self.max_attempts + 1):
            attempts = attempt

            candidate = self._generate(run, attempt)
            if candidate.is_blank:
                run.log(f"stopped_{attempt}", {}, {"reason": "no candidate from any generator"})
                break

            candidate, outcome = self._check(run, attempt, candidate)

            sql = self.pipeline.apply(candidate.sql, run.question, run.target, check=outcome)
            run.log(f"rewrite_{attempt}", {"sql": candidate.sql}, {"sql": sql})

            if sql in run.tried:
                run.log(f"stopped_{attempt}", {"sql": sql}, {"reason": "candidate already tried"})
                break
            run.tried.add(sql)

            passed, results = self.verification_chain.run(
                sql, {"original_query": run.question, "domain": run.domain, "target": run.target}
            )
            run.log(f"validation_{attempt}", {"sql": sql}, {"passed": passed}, results)
            if not passed:
                run.failed_verifiers.extend(VerificationChain.failures(results))
                continue

            result = self.engine.execute(sql, run.target, self.max_rows)
            run.log(
                f"execution_{attempt}",
                {"sql": sql, "target": run.target.key},
                {"status": result.status, "rows": result.row_count, "error": result.error_message},
            )
            run.remember(sql, result)

            if result.success:
                pruned = prune_by_intent(run.domain, run.question, result, self.checker.policy)
                return AnswerResult(
                    success=True,
                    sql=sql,
                    result=pruned,
                    rendered=render(pruned),
                    question=run.question,
                    domain=run.domain,
                    attempts=attempt,
                    audit_trail=run.audit_trail,
                    final_message=f"Answered after {attempt} attempt(s)",
                )

        best = run.best_result
        if best is None or best.success:
            best = QueryResult.failure(STATUS_FAILED, GENERIC_FAILURE)
        else:
            best = QueryResult.failure(best.status, GENERIC_FAILURE, best.elapsed_ms)

        return AnswerResult(
            success=False,
            sql=run.best_sql,
            result=best,
            rendered="",
            question=run.question,
            domain=run.domain,
            attempts=attempts,
            audit_trail=run.audit_trail,
            final_message=f"Failed to answer after {attempts} attempt(s)",
        )

    def _generate(self, run: _Run, attempt: int) -> SqlCandidate:
        """Primary generation, falling back to the rule templates."""
        try:
            candidate = self.generator.generate(run.domain, run.question)
        except GenerationUnavailableError as e:
            run.log(f"generation_{attempt}", {"generator": self.generator.name}, {"error": str(e)})
            candidate = SqlCandidate(run.domain, "", source=self.generator.name)
        else:
            run.log(
                f"generation_{attempt}",
                {"generator": self.generator.name},
                {"sql": candidate.sql},
            )

        if not candidate.is_blank or self.fallback is self.generator:
            return candidate

        GENERATOR_FALLBACKS.inc()
        fallback = self.fallback.generate(run.domain, run.question)
        run.log(f"fallback_{attempt}", {"generator": self.fallback.name}, {"sql": fallback.sql})
        return fallback

    def _check(
        self,
        run: _Run,
        attempt: int,
        candidate: SqlCandidate,
    ) -> tuple[SqlCandidate, CheckOutcome]:
        """Intent check with exactly one hinted regeneration on failure."""
        outcome = self.checker.check(run.question, candidate.sql)
        run.log(f"intent_check_{attempt}", {"sql": candidate.sql}, {"ok": outcome.ok, "hint": outcome.hint})
        if outcome.ok:
            return candidate, outcome

        INTENT_FAILURES.inc()
        generator = self.fallback if candidate.source == self.fallback.name else self.generator
        try:
            regenerated = generator.regenerate_with_hint(
                run.domain, run.question, candidate.sql, outcome.hint
            )
        except GenerationUnavailableError as e:
            run.log(f"regeneration_{attempt}", {"hint": outcome.hint}, {"error": str(e)})
            return candidate, outcome

        run.log(f"regeneration_{attempt}", {"hint": outcome.hint}, {"sql": regenerated.sql})
        if regenerated.is_blank:
            return candidate, outcome

        recheck = self.checker.check(run.question, regenerated.sql)
        run.log(
            f"intent_recheck_{attempt}",
            {"sql": regenerated.sql},
            {"ok": recheck.ok, "hint": recheck.hint},
        )
        return regenerated, recheck
