"""API-specific schemas for FastAPI routes."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from taskrag.schemas.base import Outcome


class HealthStatus(BaseModel):
    """Response body for the /health endpoint."""

    status: Literal["ok", "degraded"]


class QueryRequest(BaseModel):
    """Request body for the /query endpoint."""

    text: str = Field(..., description="User's natural language query")


class QueryResponse(BaseModel):
    """Response body for the /query endpoint."""

    answer: str
    outcome: Outcome
