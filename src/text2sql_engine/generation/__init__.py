"""
Generation Module
=================

SQL generators and the configuration-driven factory.
"""

from text2sql_engine.config import Settings
from text2sql_engine.generation.base import SqlGenerator
from text2sql_engine.generation.llm import LLMSqlGenerator, clean_sql_text
from text2sql_engine.generation.rules import RuleBasedSqlGenerator, build_rule_sql
from text2sql_engine.generation.schema import SchemaTextProvider, StaticSchemaText
from text2sql_engine.llm.base import LLMInterface
from text2sql_engine.routing import parse_dialect
from text2sql_engine.vocabulary import VocabularyTable


def build_generator(
    settings: Settings,
    llm: LLMInterface | None = None,
    schema_provider: SchemaTextProvider | None = None,
    vocabulary: VocabularyTable | None = None,
) -> SqlGenerator:
    """
    Pick the primary generator from ``settings.generator_mode``.

    ``llm`` mode without an ``llm`` client falls back to the rule templates.

    Raises:
        ValueError: unknown generator mode
    """
    mode = settings.generator_mode.strip().lower()
    if mode == "rules" or (mode == "llm" and llm is None):
        return RuleBasedSqlGenerator()
    if mode == "llm":
        return LLMSqlGenerator(
            llm,
            schema_provider=schema_provider,
            vocabulary=vocabulary,
            dialect=parse_dialect(settings.default_dialect),
            timeout_seconds=settings.generation_timeout_seconds,
            max_retries=settings.generation_max_retries,
            backoff_seconds=settings.generation_backoff_seconds,
            backoff_max_seconds=settings.generation_backoff_max_seconds,
        )
    raise ValueError(f"Unknown generator mode: {settings.generator_mode!r}")


__all__ = [
    "LLMSqlGenerator",
    "RuleBasedSqlGenerator",
    "SchemaTextProvider",
    "SqlGenerator",
    "StaticSchemaText",
    "build_generator",
    "build_rule_sql",
    "clean_sql_text",
]
