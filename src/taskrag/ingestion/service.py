"""Task indexing: embed stored tasks and publish them to the vector index."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from taskrag.exceptions import PipelineFailureError
from taskrag.memory.embeddings import unpack_vector
from taskrag.memory.sanitizer import sanitize_string
from taskrag.schemas import ErrorCodes, PipelineFailure, RecordKind


if TYPE_CHECKING:
    from taskrag.memory.embeddings import EmbeddingCodec
    from taskrag.memory.record_store import RecordStore
    from taskrag.memory.vector_index import VectorIndex


logger = logging.getLogger(__name__)


class TaskIndexer:
    """Embed a task's text with the query codec and index the result."""

    def __init__(
        self,
        *,
        codec: EmbeddingCodec,
        store: RecordStore,
        index: VectorIndex,
    ) -> None:
        self._codec = codec
        self._store = store
        self._index = index

    async def index_record(self, record_id: str, kind: RecordKind) -> bool:
        """Embed one stored task; returns False when any step fails."""
        try:
            await self._index_record(record_id, kind)
        except PipelineFailureError as exc:
            logger.warning(
                "Task indexing failed",
                extra={"stage": "indexing", "record_id": record_id, "error": str(exc)},
            )
            return False
        except Exception:
            logger.exception(
                "Unexpected task indexing error",
                extra={"stage": "indexing", "record_id": record_id},
            )
            return False
        return True

    async def index_records(self, record_ids: list[str], kind: RecordKind) -> int:
        """Index several tasks of one kind; returns how many succeeded."""
        indexed = 0
        for record_id in record_ids:
            if await self.index_record(record_id, kind):
                indexed += 1
        return indexed

    async def _index_record(self, record_id: str, kind: RecordKind) -> None:
        raw = await self._store.fetch_record(record_id, kind)
        if raw is None:
            raise PipelineFailureError(
                stage="indexing",
                error_code=ErrorCodes.STORE_UNAVAILABLE,
                message=f"No {kind.value} task with id {record_id}",
                details={"record_id": record_id},
            )

        blob = await self._codec.encode(embedding_text(raw))
        if isinstance(blob, PipelineFailure):
            raise PipelineFailureError(
                stage="indexing",
                error_code=blob.error_code,
                message=blob.message,
                recoverable=blob.recoverable,
                details={"record_id": record_id},
            )

        if not await self._store.store_embedding(record_id, kind, blob):
            raise PipelineFailureError(
                stage="indexing",
                error_code=ErrorCodes.STORE_UNAVAILABLE,
                message=f"Embedding for {record_id} was not persisted",
                details={"record_id": record_id},
            )
        await self._index.upsert(record_id, kind, unpack_vector(blob))
        logger.info(
            "Indexed task",
            extra={"stage": "indexing", "record_id": record_id, "kind": kind.value},
        )


def embedding_text(raw: dict) -> str:
    """Text embedded for a stored task: title and description."""
    parts = [sanitize_string(raw.get("title")), sanitize_string(raw.get("description"))]
    return "\n".join(part for part in parts if part)


__all__ = ["TaskIndexer", "embedding_text"]
