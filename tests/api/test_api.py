"""HTTP surface tests, over mock collaborators and over the real wiring."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from taskrag import api
from taskrag.agents import NO_CONTEXT_MESSAGE, PROCESSING_ERROR_MESSAGE
from taskrag.api import app, get_orchestrator


@pytest.fixture
def client_for():
    """Yield a factory binding the app to a given orchestrator."""

    def _bind(orchestrator) -> httpx.AsyncClient:
        app.dependency_overrides[get_orchestrator] = lambda: orchestrator
        transport = httpx.ASGITransport(app=app)
        return httpx.AsyncClient(transport=transport, base_url="http://test")

    yield _bind
    app.dependency_overrides.clear()


class TestAPI:
    @pytest.mark.unit
    async def test_health(self, client_for, orchestrator) -> None:
        async with client_for(orchestrator) as client:
            response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @pytest.mark.unit
    async def test_query_answered(self, client_for, orchestrator) -> None:
        async with client_for(orchestrator) as client:
            response = await client.post("/query", json={"text": "status update"})

        assert response.status_code == 200
        assert response.json() == {
            "answer": "Combined response",
            "outcome": "answered",
        }

    @pytest.mark.unit
    async def test_query_without_context(
        self, client_for, orchestrator, vector_index, chat_client
    ) -> None:
        vector_index.hits = []

        async with client_for(orchestrator) as client:
            response = await client.post("/query", json={"text": "status update"})

        assert response.json() == {
            "answer": NO_CONTEXT_MESSAGE,
            "outcome": "no_context",
        }
        assert chat_client.calls == []

    @pytest.mark.unit
    async def test_empty_query_is_a_processing_error(
        self, client_for, orchestrator
    ) -> None:
        async with client_for(orchestrator) as client:
            response = await client.post("/query", json={"text": ""})

        assert response.status_code == 200
        assert response.json() == {
            "answer": PROCESSING_ERROR_MESSAGE,
            "outcome": "error",
        }

    @pytest.mark.unit
    async def test_crashing_orchestrator_is_contained(self, client_for) -> None:
        orchestrator = AsyncMock()
        orchestrator.run.side_effect = RuntimeError("boom")

        async with client_for(orchestrator) as client:
            response = await client.post("/query", json={"text": "q"})

        assert response.json()["outcome"] == "error"
        assert response.json()["answer"] == PROCESSING_ERROR_MESSAGE

    @pytest.mark.unit
    async def test_missing_body_is_rejected(self, client_for, orchestrator) -> None:
        async with client_for(orchestrator) as client:
            response = await client.post("/query", json={})

        assert response.status_code == 422


@pytest.fixture
def wired_client():
    """Yield a client over the real dependency wiring (no overrides)."""
    caches = (api._get_orchestrator, api._get_record_store, api._get_vector_index)
    for cached in caches:
        cached.cache_clear()
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    yield httpx.AsyncClient(transport=transport, base_url="http://test")
    for cached in caches:
        cached.cache_clear()


class TestRealWiring:
    @pytest.mark.unit
    async def test_query_without_api_keys_answers_with_error_sentinel(
        self, wired_client
    ) -> None:
        async with wired_client as client:
            response = await client.post("/query", json={"text": "status update"})

        assert response.status_code == 200
        assert response.json() == {
            "answer": PROCESSING_ERROR_MESSAGE,
            "outcome": "error",
        }

    @pytest.mark.unit
    async def test_wiring_failure_answers_with_error_sentinel(
        self, wired_client
    ) -> None:
        with patch(
            "taskrag.api.CompletionService", side_effect=RuntimeError("bad config")
        ):
            async with wired_client as client:
                response = await client.post("/query", json={"text": "status update"})

        assert response.status_code == 200
        assert response.json() == {
            "answer": PROCESSING_ERROR_MESSAGE,
            "outcome": "error",
        }
        assert api._get_orchestrator.cache_info().currsize == 0
