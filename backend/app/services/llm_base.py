"""
FinSight Backend — Abstract LLM Service Interface
===================================================

What:  Abstract base class for text completion providers.
Why:   The advisor endpoints only need "prompt in, text out". Hiding the
       provider behind this contract lets OpenRouter and Gemini be swapped by
       configuration, and lets tests substitute a fake.
How:   Concrete implementations inherit from LLMService and implement
       complete() and health_check().
Who:   Called by AdvisorService; probed by the /health route.
"""

from abc import ABC, abstractmethod


class LLMService(ABC):
    """
    Abstract interface for single-turn text completion.

    Contract:
        - complete() sends ONE request; there is no retry or backoff
        - Transport errors, timeouts, error statuses and empty completions are
          all raised as UpstreamError
        - The returned text is non-empty
    """

    #: Short provider label reported by /health
    name: str = "llm"

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """
        Send `prompt` as a single user message and return the completion text.

        Raises:
            UpstreamError: reason="timeout", "request_failed" or "empty".
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Lightweight reachability check (does NOT consume completion quota).

        Returns:
            True if the provider is reachable and authenticated, False otherwise.
        """
        ...

    async def aclose(self) -> None:
        """Release network resources. Called once on application shutdown."""
        return None
