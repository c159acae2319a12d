"""
Prometheus Metrics
==================

Pipeline metrics for monitoring and alerting.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    Info,
    generate_latest,
)

# Create a custom registry for this application
REGISTRY = CollectorRegistry()

APP_INFO = Info(
    "text2sql",
    "text2sql engine information",
    registry=REGISTRY,
)

# Answer metrics
ANSWERS_TOTAL = Counter(
    "text2sql_answers_total",
    "Total number of questions answered",
    ["status"],  # success, failure
    registry=REGISTRY,
)

ANSWER_DURATION = Histogram(
    "text2sql_answer_duration_seconds",
    "Question answering duration in seconds",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=REGISTRY,
)

ANSWER_ATTEMPTS = Histogram(
    "text2sql_answer_attempts",
    "Number of attempts per question",
    buckets=[1, 2, 3, 4, 5],
    registry=REGISTRY,
)

GENERATOR_FALLBACKS = Counter(
    "text2sql_generator_fallbacks_total",
    "Primary generation blank or unavailable, rule fallback used",
    registry=REGISTRY,
)

# Checks and rewrites
INTENT_FAILURES = Counter(
    "text2sql_intent_failures_total",
    "Intent check failures",
    registry=REGISTRY,
)

VERIFICATION_FAILURES = Counter(
    "text2sql_verification_failures_total",
    "Total verification failures by verifier",
    ["verifier"],
    registry=REGISTRY,
)

REWRITE_STEP_FAILURES = Counter(
    "text2sql_rewrite_step_failures_total",
    "Rewrite steps that raised and were skipped",
    ["step"],
    registry=REGISTRY,
)

# Execution metrics
EXECUTIONS_TOTAL = Counter(
    "text2sql_executions_total",
    "Statements executed by dialect and outcome status",
    ["dialect", "status"],
    registry=REGISTRY,
)

EXECUTION_DURATION = Histogram(
    "text2sql_execution_duration_seconds",
    "Backend execution duration in seconds",
    ["dialect"],
    buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
    registry=REGISTRY,
)

REPAIRS_TOTAL = Counter(
    "text2sql_repairs_total",
    "Heuristic repairs attempted after a backend error",
    ["outcome"],  # retried, unchanged
    registry=REGISTRY,
)

TRANSLATION_REJECTIONS = Counter(
    "text2sql_translation_rejections_total",
    "Statements outside the document-store subset",
    registry=REGISTRY,
)


def track_answer_metrics(
    success: bool,
    attempts: int,
    duration_seconds: float,
    failed_verifiers: list[str] | None = None,
) -> None:
    """
    Track metrics for a completed question.

    Args:
        success: Whether an answer was produced
        attempts: Number of attempts made
        duration_seconds: Total processing time
        failed_verifiers: List of verifier names that failed
    """
    ANSWERS_TOTAL.labels(status="success" if success else "failure").inc()
    ANSWER_DURATION.observe(duration_seconds)
    ANSWER_ATTEMPTS.observe(attempts)

    if failed_verifiers:
        for verifier in failed_verifiers:
            VERIFICATION_FAILURES.labels(verifier=verifier).inc()


def track_execution(dialect: str, status: str, duration_seconds: float) -> None:
    """Record one backend execution."""
    EXECUTIONS_TOTAL.labels(dialect=dialect, status=status).inc()
    EXECUTION_DURATION.labels(dialect=dialect).observe(duration_seconds)


def set_app_info(version: str, environment: str) -> None:
    APP_INFO.info({"version": version, "environment": environment})


def render_metrics() -> tuple[bytes, str]:
    """
    Render the registry in Prometheus text format.

    Returns:
        Tuple of (payload, content type) for whatever serves the scrape
    """
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
