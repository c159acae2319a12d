"""
LLM Module
==========

Pluggable LLM interfaces for SQL generation.
"""

from text2sql_engine.llm.base import LLMInterface
from text2sql_engine.llm.langchain_llm import LangChainLLM
from text2sql_engine.llm.mock import MockLLM

__all__ = [
    "LLMInterface",
    "LangChainLLM",
    "MockLLM",
]
