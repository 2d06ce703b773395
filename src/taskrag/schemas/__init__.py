"""Pydantic schemas passed between pipeline stages.

- PipelineFailure, ErrorCodes, RecordKind
- CanonicalRecord and its field defaults
- RetrievalHit
- RefinedResponse
- QueryRequest/QueryResponse, HealthStatus
"""

from taskrag.schemas.api import HealthStatus, QueryRequest, QueryResponse
from taskrag.schemas.base import ErrorCodes, PipelineFailure, RecordKind
from taskrag.schemas.orchestrator import RefinedResponse
from taskrag.schemas.records import CanonicalRecord
from taskrag.schemas.retrieval import RetrievalHit, normalize_id


__all__ = [
    # Base
    "PipelineFailure",
    "ErrorCodes",
    "RecordKind",
    # Records
    "CanonicalRecord",
    # Retrieval
    "RetrievalHit",
    "normalize_id",
    # Orchestrator
    "RefinedResponse",
    # API
    "HealthStatus",
    "QueryRequest",
    "QueryResponse",
]
