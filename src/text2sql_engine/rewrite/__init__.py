"""
Rewrite Module
==============

Deterministic SQL repairs applied before validation.
"""

from text2sql_engine.rewrite.literals import normalize_boolean_literals
from text2sql_engine.rewrite.pipeline import RewritePipeline
from text2sql_engine.rewrite.where import add_condition_safely

__all__ = [
    "RewritePipeline",
    "add_condition_safely",
    "normalize_boolean_literals",
]
