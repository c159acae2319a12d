"""
LLM SQL Generator
=================

Prompt-driven generation on top of an ``LLMInterface``, with a per-call
timeout and bounded exponential-backoff retries.
"""

import re
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

from tenacity import (
    RetryError,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from text2sql_engine.errors import GenerationUnavailableError
from text2sql_engine.generation.base import SqlGenerator
from text2sql_engine.generation.schema import SchemaTextProvider, StaticSchemaText
from text2sql_engine.llm.base import LLMInterface
from text2sql_engine.models import Dialect, Domain, SqlCandidate
from text2sql_engine.observability.logging_config import get_logger
from text2sql_engine.vocabulary import VocabularyTable

logger = get_logger(__name__)

FENCE = re.compile(r"```(?:sql)?\s*(.*?)```", re.IGNORECASE | re.DOTALL)

DIALECT_NAMES = {
    Dialect.MYSQL: "MySQL",
    Dialect.PGSQL: "PostgreSQL",
    Dialect.MONGO: "MySQL-compatible SQL (a single-collection SELECT with equality filters only)",
}


def clean_sql_text(text: str | None) -> str:
    """
    Pull the SQL out of a model reply.

    Handles fenced code blocks, literal ``\\n`` escapes and a statement
    wrapped in quotes.
    """
    if not text:
        return ""
    sql = text.strip()

    fenced = FENCE.search(sql)
    if fenced:
        sql = fenced.group(1)
    elif sql.startswith("```"):
        lines = sql.split("\n")
        sql = "\n".join(lines[1:-1] if lines[-1].strip() == "```" else lines[1:])

    sql = sql.replace("\\r\\n", "\n").replace("\\n", "\n").replace("\\t", " ").strip()

    if len(sql) >= 2 and sql[0] == sql[-1] and sql[0] in "\"`":
        sql = sql[1:-1].strip()
    return sql


class LLMSqlGenerator(SqlGenerator):
    """Generates SQL by prompting a language model."""

    SYSTEM_PROMPT = """You are a Text-to-SQL generator. Convert natural language
questions into one SQL query for the {dialect} database described below.

Rules:
- Generate a single read-only SELECT statement, nothing else
- Use only the tables and columns listed in the schema
- Quote string and date literals; never quote numbers
- Use IS NULL / IS NOT NULL instead of = NULL
- Use aggregation functions (COUNT, SUM, AVG) when quantities are requested
- Use GROUP BY when a per-group breakdown is requested
- Add ORDER BY and LIMIT when ranking or "top N" is requested
- Return meaningful columns instead of *

Return ONLY the SQL query wrapped in ```sql ... ```, no explanations."""

    PROMPT_TEMPLATE = """Domain: {domain}

Schema:
{schema}

{constraints}

Question: {question}"""

    CORRECTION_PROMPT_TEMPLATE = """The previous SQL query does not match the question.

Original question: {question}
Previous SQL: {bad_sql}
Problem: {hint}

Schema:
{schema}

{constraints}

Please generate a corrected SQL query that fixes this issue.
Return ONLY the SQL query wrapped in ```sql ... ```, no explanations."""

    def __init__(
        self,
        llm: LLMInterface,
        schema_provider: SchemaTextProvider | None = None,
        vocabulary: VocabularyTable | None = None,
        dialect: Dialect = Dialect.MYSQL,
        timeout_seconds: float = 60.0,
        max_retries: int = 3,
        backoff_seconds: float = 1.0,
        backoff_max_seconds: float = 8.0,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        """
        Initialize the generator.

        Args:
            llm: Model client
            schema_provider: Source of the per-domain schema text
            vocabulary: Source of the enum constraint section
            dialect: SQL dialect the prompt asks for
            timeout_seconds: Per-call timeout
            max_retries: Attempts per generation before giving up
            backoff_seconds: Initial exponential backoff between attempts
            backoff_max_seconds: Backoff ceiling
            executor: Pool the calls run on (a private one by default)
        """
        self.llm = llm
        self.schema_provider = schema_provider or StaticSchemaText()
        self.vocabulary = vocabulary or VocabularyTable()
        self.dialect = dialect
        self.timeout_seconds = timeout_seconds
        self.max_retries = max(1, max_retries)
        self.backoff_seconds = backoff_seconds
        self.backoff_max_seconds = backoff_max_seconds
        self._executor = executor or ThreadPoolExecutor(
            max_workers=4, thread_name_prefix="sql-generation"
        )

    @property
    def name(self) -> str:
        return "llm"

    def generate(self, domain: Domain, question: str) -> SqlCandidate:
        prompt = self.PROMPT_TEMPLATE.format(
            domain=domain.value,
            schema=self.schema_provider.schema_text(domain),
            constraints=self.vocabulary.enum_constraint_prompt(domain),
            question=question,
        )
        return SqlCandidate(domain, self._complete(prompt), source=self.name)

    def regenerate_with_hint(
        self,
        domain: Domain,
        question: str,
        bad_sql: str,
        hint: str,
    ) -> SqlCandidate:
        prompt = self.CORRECTION_PROMPT_TEMPLATE.format(
            question=question,
            bad_sql=bad_sql,
            hint=hint,
            schema=self.schema_provider.schema_text(domain),
            constraints=self.vocabulary.enum_constraint_prompt(domain),
        )
        return SqlCandidate(domain, self._complete(prompt), source=self.name)

    def _complete(self, prompt: str) -> str:
        system_prompt = self.SYSTEM_PROMPT.format(dialect=DIALECT_NAMES[self.dialect])
        retrying = Retrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(
                multiplier=self.backoff_seconds, max=self.backoff_max_seconds
            ),
            retry=retry_if_exception_type(Exception),
            reraise=False,
        )
        try:
            for attempt in retrying:
                with attempt:
                    content = self._call_with_timeout(prompt, system_prompt)
        except RetryError as e:
            cause = e.last_attempt.exception()
            logger.warning(
                "Generation unavailable",
                attempts=self.max_retries,
                error=str(cause),
            )
            raise GenerationUnavailableError(
                f"Generator failed after {self.max_retries} attempt(s): {cause}"
            ) from cause

        sql = clean_sql_text(content)
        logger.debug("Generated SQL", sql=sql)
        return sql

    def _call_with_timeout(self, prompt: str, system_prompt: str) -> str:
        future = self._executor.submit(self.llm.generate, prompt, system_prompt)
        try:
            response = future.result(timeout=self.timeout_seconds)
        except FutureTimeoutError:
            future.cancel()
            raise TimeoutError(
                f"Generation timed out after {self.timeout_seconds}s"
            ) from None
        logger.debug("Model replied", model=response.model or self.llm.model_name)
        return response.content
