"""
Verifier Base
=============

A verifier inspects one candidate statement and reports pass/fail without
touching any backend. ``VerificationChain`` runs them in order before
execution.
"""

from abc import ABC, abstractmethod

from text2sql_engine.models import Dialect, VerificationResult, VerificationStatus


class Verifier(ABC):
    """Pre-execution check on a candidate statement."""

    # Dialects this verifier applies to; None means all of them
    dialects: frozenset[Dialect] | None = None

    @property
    @abstractmethod
    def name(self) -> str:
        """Name recorded in results and metrics."""

    @abstractmethod
    def verify(self, sql: str, context: dict) -> VerificationResult:
        """
        Check one candidate.

        Args:
            sql: Candidate statement
            context: ``original_query``, ``domain`` and ``target`` when known

        Returns:
            VerificationResult; FAILED results carry a user-safe message
        """

    def applies_to(self, dialect: Dialect | None) -> bool:
        return self.dialects is None or dialect is None or dialect in self.dialects


class VerificationChain:
    """Ordered verifiers; the first failure ends the run."""

    def __init__(self, verifiers: list[Verifier] | None = None) -> None:
        if verifiers is None:
            # Deferred: guard.py imports this module
            from text2sql_engine.verifiers.guard import StatementGuard

            verifiers = [StatementGuard()]
        self.verifiers = verifiers

    def run(self, sql: str, context: dict) -> tuple[bool, list[VerificationResult]]:
        """
        Run the chain against ``sql``.

        Verifiers that do not apply to ``context["target"]``'s dialect are
        recorded as SKIPPED.

        Returns:
            (all_passed, results in run order)
        """
        target = context.get("target")
        dialect = target.dialect if target is not None else None

        results: list[VerificationResult] = []
        for verifier in self.verifiers:
            if not verifier.applies_to(dialect):
                results.append(VerificationResult(
                    verifier_name=verifier.name,
                    status=VerificationStatus.SKIPPED,
                    message=f"Not applicable to {dialect.value}",
                ))
                continue

            result = verifier.verify(sql, context)
            results.append(result)
            if result.status == VerificationStatus.FAILED:
                return False, results

        return True, results

    @staticmethod
    def failures(results: list[VerificationResult]) -> list[str]:
        """Names of the verifiers that failed."""
        return [r.verifier_name for r in results if r.status == VerificationStatus.FAILED]
