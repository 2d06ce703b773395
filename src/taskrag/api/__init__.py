"""FastAPI application exposing the task context pipeline."""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskrag.agents import PROCESSING_ERROR_MESSAGE, ResponseOrchestrator
from taskrag.config import get_settings
from taskrag.memory import (
    EmbeddingCodec,
    LanceDBVectorIndex,
    RetrievalEngine,
    SQLRecordStore,
)
from taskrag.schemas import HealthStatus, QueryRequest, QueryResponse
from taskrag.services.llm import CompletionService


logger = logging.getLogger(__name__)

settings = get_settings()


@lru_cache
def _get_record_store() -> SQLRecordStore:
    """Provide the shared relational task store."""
    store = SQLRecordStore(settings.database_url)
    store.init_schema()
    return store


@lru_cache
def _get_vector_index() -> LanceDBVectorIndex:
    """Lazily open the vector index to avoid heavy imports at startup."""
    return LanceDBVectorIndex(
        db_path=settings.vector_db_path, embedding_dim=settings.embedding_dim
    )


@lru_cache
def _get_orchestrator() -> ResponseOrchestrator:
    """Provide a cached orchestrator wired to the shared collaborators."""
    return ResponseOrchestrator(
        embedder=EmbeddingCodec(),
        retriever=RetrievalEngine(
            index=_get_vector_index(),
            store=_get_record_store(),
            max_results=settings.max_context_records,
            max_field_length=settings.max_field_length,
        ),
        completion=CompletionService(),
    )


def get_orchestrator() -> ResponseOrchestrator | None:
    """Resolve the shared orchestrator, or None when it cannot be built."""
    try:
        return _get_orchestrator()
    except Exception:
        logger.exception("Pipeline wiring failed", extra={"stage": "api"})
        return None


app = FastAPI(
    title=settings.app_name,
    version="0.1.0",
    description="Retrieval-augmented answers over active and completed tasks",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", response_model=HealthStatus)
async def health() -> HealthStatus:
    """Return service readiness."""
    return HealthStatus(status="ok")


@app.post("/query", response_model=QueryResponse)
async def query_endpoint(
    payload: QueryRequest,
    orchestrator: ResponseOrchestrator | None = Depends(get_orchestrator),
) -> QueryResponse:
    """Answer a query; failures come back as sentinel answers, not HTTP errors."""
    if orchestrator is None:
        return QueryResponse(answer=PROCESSING_ERROR_MESSAGE, outcome="error")
    try:
        result = await orchestrator.run(payload.text)
    except Exception:
        logger.exception("Query pipeline crashed", extra={"stage": "api"})
        return QueryResponse(answer=PROCESSING_ERROR_MESSAGE, outcome="error")
    return QueryResponse(
        answer=orchestrator.render(result),
        outcome=orchestrator.outcome(result),
    )


__all__ = ["app", "get_orchestrator"]
