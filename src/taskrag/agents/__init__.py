"""Context assembly and response orchestration."""

from taskrag.agents.context import ContextAssembler
from taskrag.agents.orchestrator import (
    NO_CONTEXT_MESSAGE,
    PROCESSING_ERROR_MESSAGE,
    ResponseOrchestrator,
)


__all__ = [
    "ContextAssembler",
    "NO_CONTEXT_MESSAGE",
    "PROCESSING_ERROR_MESSAGE",
    "ResponseOrchestrator",
]
