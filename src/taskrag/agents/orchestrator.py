"""Response orchestrator.

One pass per query: validate -> embed -> retrieve -> assemble -> complete.
Each stage returns either its value or a PipelineFailure, and the first
failure ends the pass. The public entry point maps the outcome to an answer
or to one of two sentinel strings and never raises.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Protocol

from taskrag.agents.context import ContextAssembler
from taskrag.config import get_settings
from taskrag.memory.retrieval import MAX_RESULTS
from taskrag.schemas import (
    CanonicalRecord,
    ErrorCodes,
    PipelineFailure,
    RefinedResponse,
)


if TYPE_CHECKING:
    from taskrag.schemas.base import Outcome


logger = logging.getLogger(__name__)

NO_CONTEXT_MESSAGE = "No relevant context found to answer your query."
PROCESSING_ERROR_MESSAGE = "An error occurred while processing your request."

SYSTEM_PROMPT = "You are a helpful, context-aware assistant."


class EmbedderProtocol(Protocol):
    async def encode(self, text: Any) -> bytes | PipelineFailure:
        ...


class RetrieverProtocol(Protocol):
    async def retrieve(
        self, query_vector: bytes, top_n: int = MAX_RESULTS
    ) -> list[CanonicalRecord]:
        ...


class CompletionProtocol(Protocol):
    async def generate(
        self,
        prompt: str,
        system: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str | PipelineFailure:
        ...


class ResponseOrchestrator:
    """Coordinates the task context pipeline for a single query."""

    def __init__(
        self,
        *,
        embedder: EmbedderProtocol,
        retriever: RetrieverProtocol,
        completion: CompletionProtocol,
        assembler: ContextAssembler | None = None,
        max_records: int | None = None,
        max_output_tokens: int | None = None,
    ) -> None:
        settings = get_settings()
        self._embedder = embedder
        self._retriever = retriever
        self._completion = completion
        self._max_records = max_records or settings.max_context_records
        self._assembler = assembler or ContextAssembler(max_records=self._max_records)
        self._max_output_tokens = max_output_tokens or settings.completion_max_tokens

    async def generate_refined_response(self, query: Any) -> str:
        """Answer ``query`` or return a sentinel; never raises."""
        try:
            result = await self.run(query)
        except Exception:
            logger.exception("Orchestrator crashed", extra={"stage": "orchestrator"})
            return PROCESSING_ERROR_MESSAGE
        return self.render(result)

    @staticmethod
    def render(result: RefinedResponse | PipelineFailure) -> str:
        """Map a pipeline outcome to the user-facing string."""
        if isinstance(result, RefinedResponse):
            return result.answer
        if result.error_code == ErrorCodes.NO_CONTEXT:
            return NO_CONTEXT_MESSAGE
        return PROCESSING_ERROR_MESSAGE

    @staticmethod
    def outcome(result: RefinedResponse | PipelineFailure) -> Outcome:
        """Classify a pipeline outcome."""
        if isinstance(result, RefinedResponse):
            return "answered"
        if result.error_code == ErrorCodes.NO_CONTEXT:
            return "no_context"
        return "error"

    async def run(self, query: Any) -> RefinedResponse | PipelineFailure:
        """Execute every stage, stopping at the first PipelineFailure."""

        start = time.perf_counter()

        text = self._validate_query(query)
        if isinstance(text, PipelineFailure):
            return text

        vector = await self._embed(text)
        if isinstance(vector, PipelineFailure):
            return vector

        records = await self._retrieve(vector)
        if isinstance(records, PipelineFailure):
            return records

        context = self._assemble(records)
        if isinstance(context, PipelineFailure):
            return context

        answer = await self._complete(text, context)
        if isinstance(answer, PipelineFailure):
            return answer

        return RefinedResponse(
            answer=answer,
            context_records=records,
            processing_time_ms=round((time.perf_counter() - start) * 1000, 2),
        )

    def _validate_query(self, query: Any) -> str | PipelineFailure:
        # Whitespace-only text is a valid query; only "" is rejected.
        if not isinstance(query, str) or query == "":
            logger.warning(
                "Invalid user query",
                extra={"stage": "validate", "query_type": type(query).__name__},
            )
            return PipelineFailure(
                stage="validate",
                error_code=ErrorCodes.INVALID_QUERY,
                message="Query must be a non-empty string.",
            )
        return query

    async def _embed(self, text: str) -> bytes | PipelineFailure:
        try:
            vector = await self._embedder.encode(text)
        except Exception as exc:
            logger.exception("Embedding stage raised", extra={"stage": "embedding"})
            return _stage_failure("embedding", ErrorCodes.EMBEDDING_FAILED, exc)
        if isinstance(vector, PipelineFailure):
            logger.warning(
                "Failed to generate embedding for user query",
                extra={"stage": "embedding", "error_code": vector.error_code},
            )
            return vector
        if not isinstance(vector, (bytes, bytearray)):
            return PipelineFailure(
                stage="embedding",
                error_code=ErrorCodes.EMBEDDING_INVALID,
                message="Embedding stage returned no serialized vector.",
            )
        return bytes(vector)

    async def _retrieve(self, vector: bytes) -> list[CanonicalRecord] | PipelineFailure:
        try:
            records = await self._retriever.retrieve(vector, self._max_records)
        except Exception as exc:
            logger.exception("Retrieval stage raised", extra={"stage": "retrieval"})
            return _stage_failure("retrieval", ErrorCodes.INDEX_UNAVAILABLE, exc)
        if not records:
            logger.info("No relevant context for query", extra={"stage": "retrieval"})
            return _no_context()
        return list(records)

    def _assemble(self, records: list[CanonicalRecord]) -> str | PipelineFailure:
        context = self._assembler.assemble(records)
        if context is None:
            return _no_context()
        return context

    async def _complete(self, query: str, context: str) -> str | PipelineFailure:
        try:
            result = await self._completion.generate(
                prompt=build_user_prompt(query, context),
                system=SYSTEM_PROMPT,
                max_tokens=self._max_output_tokens,
            )
        except Exception as exc:
            logger.exception("Completion stage raised", extra={"stage": "completion"})
            return _stage_failure("completion", ErrorCodes.COMPLETION_FAILED, exc)
        if isinstance(result, PipelineFailure):
            logger.error(
                "Completion failed",
                extra={"stage": "completion", "error_code": result.error_code},
            )
            return result
        if not isinstance(result, str) or not result.strip():
            return PipelineFailure(
                stage="completion",
                error_code=ErrorCodes.COMPLETION_INVALID,
                message="Completion content is missing or blank.",
            )
        return result.strip()


def build_user_prompt(query: str, context: str) -> str:
    """Embed the query and context block into the user prompt."""
    return (
        "You are an intelligent assistant tasked with answering user queries "
        "based on ongoing task and past completed task information.\n\n"
        f"User Query: {query}\n\n"
        f"Relevant Context:\n{context}\n\n"
        "Please generate a helpful, concise, and actionable response."
    )


def _no_context() -> PipelineFailure:
    return PipelineFailure(
        stage="retrieval",
        error_code=ErrorCodes.NO_CONTEXT,
        message="No relevant context found.",
        recoverable=True,
    )


def _stage_failure(stage: str, error_code: str, exc: Exception) -> PipelineFailure:
    return PipelineFailure(
        stage=stage,
        error_code=error_code,
        message=f"{stage} stage failed: {type(exc).__name__}",
        details={"error": str(exc)},
    )


__all__ = [
    "NO_CONTEXT_MESSAGE",
    "PROCESSING_ERROR_MESSAGE",
    "ResponseOrchestrator",
    "build_user_prompt",
]
