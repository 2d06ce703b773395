"""Base schemas shared by every pipeline stage."""

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


class PipelineFailure(BaseModel):
    """Standardized failure object returned across stage boundaries."""

    stage: str
    error_code: str
    message: str
    recoverable: bool = False
    details: dict[str, Any] | None = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class ErrorCodes:
    """Standard error codes for pipeline failures."""

    # Input
    INVALID_QUERY = "ERR_INVALID_QUERY"

    # Embedding
    EMBEDDING_FAILED = "ERR_EMBEDDING_FAILED"
    EMBEDDING_INVALID = "ERR_EMBEDDING_INVALID"

    # Retrieval
    NO_CONTEXT = "ERR_NO_CONTEXT"
    INDEX_UNAVAILABLE = "ERR_INDEX_UNAVAILABLE"
    STORE_UNAVAILABLE = "ERR_STORE_UNAVAILABLE"

    # Completion
    COMPLETION_FAILED = "ERR_COMPLETION_FAILED"
    COMPLETION_INVALID = "ERR_COMPLETION_INVALID"
    COMPLETION_AUTH = "ERR_COMPLETION_AUTH"

    # General
    TIMEOUT = "ERR_TIMEOUT"


class RecordKind(str, Enum):
    """The two task shapes the vector index can point at."""

    ACTIVE = "active"
    HISTORICAL = "historical"

    @property
    def label(self) -> str:
        """Label used when rendering the record into a prompt."""
        if self is RecordKind.ACTIVE:
            return "ONGOING_TASK"
        return "PAST_COMPLETED_TASK"

    @classmethod
    def parse(cls, value: Any) -> "RecordKind | None":
        """Map an index tag to a kind, or None when it is not recognized."""
        if isinstance(value, RecordKind):
            return value
        if not isinstance(value, str):
            return None
        return _KIND_ALIASES.get(value.strip().lower())


_KIND_ALIASES: dict[str, RecordKind] = {
    "active": RecordKind.ACTIVE,
    "task": RecordKind.ACTIVE,
    "ongoing_task": RecordKind.ACTIVE,
    "historical": RecordKind.HISTORICAL,
    "historic_task": RecordKind.HISTORICAL,
    "past_completed_task": RecordKind.HISTORICAL,
}


LLMProvider = Literal["openai", "anthropic"]
Outcome = Literal["answered", "no_context", "error"]
