"""Task record schemas.

The relational store hands back two raw shapes (active tasks and historic
tasks). Both are normalized into one CanonicalRecord before they reach the
context assembler.
"""

from pydantic import BaseModel

from taskrag.schemas.base import RecordKind


DEFAULT_TITLE = "Untitled Task"
DEFAULT_DESCRIPTION = "No description provided."
DEFAULT_STATUS = "unknown"
DEFAULT_PRIORITY = "none"
DEFAULT_DUE_DATE = "not set"
DEFAULT_CREATED_AT = "unknown"


class CanonicalRecord(BaseModel):
    """Sanitized, unified view of an active or historical task."""

    id: str
    title: str = DEFAULT_TITLE
    description: str = DEFAULT_DESCRIPTION
    status: str | None = DEFAULT_STATUS
    priority: str = DEFAULT_PRIORITY
    due_date: str = DEFAULT_DUE_DATE
    created_at: str = DEFAULT_CREATED_AT
    completion_date: str | None = None
    kind: RecordKind
