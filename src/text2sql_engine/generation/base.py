"""
Generator Interface
===================

Capability interface for anything that turns a question into SQL. The
implementation is chosen once from configuration.
"""

from abc import ABC, abstractmethod

from text2sql_engine.models import Domain, SqlCandidate


class SqlGenerator(ABC):
    """Base class for SQL generators."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier recorded as the candidate source."""
        pass

    @abstractmethod
    def generate(self, domain: Domain, question: str) -> SqlCandidate:
        """
        Produce a candidate statement for the question.

        Returns:
            SqlCandidate, possibly blank

        Raises:
            GenerationUnavailableError: the generator could not be reached
        """
        pass

    @abstractmethod
    def regenerate_with_hint(
        self,
        domain: Domain,
        question: str,
        bad_sql: str,
        hint: str,
    ) -> SqlCandidate:
        """
        Produce a new candidate after a failed intent check.

        Args:
            domain: Domain of the question
            question: Natural-language question
            bad_sql: Candidate that failed the check
            hint: Checker hint describing what is missing

        Raises:
            GenerationUnavailableError: the generator could not be reached
        """
        pass
