"""Response orchestrator schemas."""

from pydantic import BaseModel, Field

from taskrag.schemas.records import CanonicalRecord


class RefinedResponse(BaseModel):
    """Successful pipeline outcome."""

    answer: str = Field(..., description="Validated, trimmed completion text")
    context_records: list[CanonicalRecord] = Field(default_factory=list)
    processing_time_ms: float = 0.0
