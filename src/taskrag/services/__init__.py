"""External provider services."""

from taskrag.services.llm import CompletionService

__all__ = ["CompletionService"]
