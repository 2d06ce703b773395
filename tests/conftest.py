"""Pytest configuration and shared fixtures.

This module provides fixtures for:
- Mock embedding and chat-completion clients
- Mock vector index and relational store
- The end-to-end task records used across orchestrator tests
"""

from typing import Any

import pytest

from taskrag.agents import ResponseOrchestrator
from taskrag.config import get_settings
from taskrag.memory import EmbeddingCodec, RetrievalEngine
from taskrag.services.llm import CompletionService
from tests.mocks.mock_llm import MockChatClient, MockEmbeddingsClient
from tests.mocks.mock_record_store import MockRecordStore
from tests.mocks.mock_vector_index import MockVectorIndex, hit


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path) -> Any:
    """Ignore any local .env and real API keys while tests run."""
    for name in ("OPENAI_API_KEY", "ANTHROPIC_API_KEY", "LLM_PROVIDER"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# =============================================================================
# Data
# =============================================================================


@pytest.fixture
def ongoing_task() -> dict[str, Any]:
    """Active task row as returned by the store."""
    return {
        "id": 1,
        "title": "Ongoing",
        "description": "OngoingDesc",
        "priority": "high",
        "due_date": "2024-01-01",
        "created_at": "2024-01-01",
    }


@pytest.fixture
def completed_task() -> dict[str, Any]:
    """Historic task row as returned by the store."""
    return {
        "id": 2,
        "title": "Completed",
        "description": "CompletedDesc",
        "priority": "low",
        "due_date": "2023-01-01",
        "completion_date": "2023-01-02",
        "created_at": "2023-01-01",
    }


# =============================================================================
# Collaborator mocks
# =============================================================================


@pytest.fixture
def embeddings_client() -> MockEmbeddingsClient:
    """Embedding client returning a small valid vector."""
    return MockEmbeddingsClient.returning([0.5, -0.25, 1.0, 0.0])


@pytest.fixture
def chat_client() -> MockChatClient:
    """Chat client returning a fixed answer."""
    return MockChatClient.returning("Combined response")


@pytest.fixture
def vector_index() -> MockVectorIndex:
    """Index with one active and one historic hit."""
    return MockVectorIndex(
        hits=[hit(1, "task", 0.1), hit(2, "historic_task", 0.2)]
    )


@pytest.fixture
def record_store(
    ongoing_task: dict[str, Any], completed_task: dict[str, Any]
) -> MockRecordStore:
    """Store holding the two end-to-end records."""
    return MockRecordStore(
        active={"1": ongoing_task},
        historical={"2": completed_task},
    )


@pytest.fixture
def codec(embeddings_client: MockEmbeddingsClient) -> EmbeddingCodec:
    """Embedding codec wired to the mock client."""
    return EmbeddingCodec(embeddings_client, model="test-embedding")


@pytest.fixture
def retrieval_engine(
    vector_index: MockVectorIndex, record_store: MockRecordStore
) -> RetrievalEngine:
    """Retrieval engine over the mock index and store."""
    return RetrievalEngine(index=vector_index, store=record_store)


@pytest.fixture
def completion_service(chat_client: MockChatClient) -> CompletionService:
    """OpenAI completion service wired to the mock chat client."""
    return CompletionService(client=chat_client, provider="openai")


@pytest.fixture
def orchestrator(
    codec: EmbeddingCodec,
    retrieval_engine: RetrievalEngine,
    completion_service: CompletionService,
) -> ResponseOrchestrator:
    """Fully wired orchestrator over mock collaborators."""
    return ResponseOrchestrator(
        embedder=codec,
        retriever=retrieval_engine,
        completion=completion_service,
    )
