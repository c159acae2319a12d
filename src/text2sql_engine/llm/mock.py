"""
Mock LLM
========

Canned-response LLM for tests and offline runs.
"""

import threading

from text2sql_engine.llm.base import LLMInterface
from text2sql_engine.models import LLMResponse


class MockLLM(LLMInterface):
    """
    Mock LLM returning scripted replies.

    Replies are matched by prompt substring; each key yields its replies in
    sequence so a test can script a bad first answer and a corrected second
    one.
    """

    def __init__(
        self,
        responses: dict[str, list[str]] | None = None,
        default: str = "",
    ) -> None:
        """
        Initialize with canned responses.

        Args:
            responses: Dict mapping prompt substrings to successive replies.
            default: Reply when no key matches (blank by default).
        """
        self.responses = responses or {}
        self.default = default
        self.call_counts: dict[str, int] = {}
        self.prompts: list[str] = []
        self._lock = threading.Lock()

    @property
    def model_name(self) -> str:
        return "mock-llm-v1"

    def generate(self, prompt: str, system_prompt: str | None = None) -> LLMResponse:
        with self._lock:
            self.prompts.append(prompt)
            for key, replies in self.responses.items():
                if key.lower() in prompt.lower():
                    count = self.call_counts.get(key, 0)
                    self.call_counts[key] = count + 1
                    reply = replies[min(count, len(replies) - 1)]
                    return LLMResponse(content=reply, model=self.model_name)

        return LLMResponse(content=self.default, model=self.model_name)

    def reset(self) -> None:
        """Reset call counts for fresh test runs."""
        with self._lock:
            self.call_counts = {}
            self.prompts = []
