"""
Execution Module
================

Backend execution with error-driven repair and document-store translation.
"""

from text2sql_engine.execution.engine import ExecutionEngine
from text2sql_engine.execution.repair import repair_for_error
from text2sql_engine.execution.translator import build_filter, parse_mini_query

__all__ = [
    "ExecutionEngine",
    "build_filter",
    "parse_mini_query",
    "repair_for_error",
]
