"""Task indexing service."""

from taskrag.ingestion.service import TaskIndexer

__all__ = ["TaskIndexer"]
