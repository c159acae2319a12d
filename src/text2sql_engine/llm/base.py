"""
Chat Model Interface
====================

The one call the SQL generator makes against a model. Implementations are
invoked from a worker thread (for the per-call timeout) and may be called by
several questions at once.
"""

from abc import ABC, abstractmethod

from text2sql_engine.models import LLMResponse


class LLMInterface(ABC):
    """Chat model client used by ``LLMSqlGenerator``."""

    @property
    def model_name(self) -> str:
        """Identifier recorded on responses and in logs."""
        return type(self).__name__

    @abstractmethod
    def generate(self, prompt: str, system_prompt: str | None = None) -> LLMResponse:
        """
        Send one prompt and return the raw reply.

        Transport or provider errors should propagate; the generator retries
        them with backoff and reports exhaustion as unavailable.

        Args:
            prompt: Schema, question and (on regeneration) the correction hint
            system_prompt: Dialect and output-format instructions

        Returns:
            LLMResponse whose ``content`` may still carry code fences
        """
