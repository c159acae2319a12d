"""
Verifiers Module
================

Statement guard, intent checker and the verification chain.
"""

from text2sql_engine.verifiers.base import Verifier, VerificationChain
from text2sql_engine.verifiers.guard import StatementGuard, strip_terminator
from text2sql_engine.verifiers.intent import IntentChecker, IntentPolicy, ListingRule

__all__ = [
    "Verifier",
    "VerificationChain",
    "StatementGuard",
    "IntentChecker",
    "IntentPolicy",
    "ListingRule",
    "strip_terminator",
]
