"""Vector retrieval engine.

Resolves nearest-neighbor hits from the vector index into sanitized task
records. The index's relevance order is authoritative: records come back in
hit order, deduplicated by id, never reordered by kind or lookup order.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from taskrag.config import get_settings
from taskrag.memory.sanitizer import MAX_FIELD_LENGTH, sanitize_record
from taskrag.schemas import CanonicalRecord, RecordKind, RetrievalHit


if TYPE_CHECKING:
    from collections.abc import Sequence

    from taskrag.memory.record_store import RecordStore
    from taskrag.memory.vector_index import VectorIndex


logger = logging.getLogger(__name__)

MAX_RESULTS = 10


class RetrievalEngine:
    """Turns a serialized query vector into ordered CanonicalRecords.

    Responsibilities:
        - Query the vector index for the closest task embeddings
        - Resolve hits with one batched store lookup per kind
        - Sanitize, reorder by relevance, dedupe and truncate
    """

    def __init__(
        self,
        *,
        index: VectorIndex,
        store: RecordStore,
        max_results: int = MAX_RESULTS,
        max_field_length: int = MAX_FIELD_LENGTH,
        search_timeout_seconds: float | None = None,
        lookup_timeout_seconds: float | None = None,
    ) -> None:
        settings = get_settings()
        self._index = index
        self._store = store
        self._max_results = max(1, min(max_results, MAX_RESULTS))
        self._max_field_length = max_field_length
        self._search_timeout = (
            search_timeout_seconds
            if search_timeout_seconds is not None
            else settings.search_timeout_seconds
        )
        self._lookup_timeout = (
            lookup_timeout_seconds
            if lookup_timeout_seconds is not None
            else settings.lookup_timeout_seconds
        )

    async def retrieve(
        self, query_vector: bytes, top_n: int = MAX_RESULTS
    ) -> list[CanonicalRecord]:
        """Return up to ``top_n`` (never more than 10) records by relevance.

        Never raises: collaborator failures and timeouts yield ``[]``.
        """
        try:
            limit = max(1, min(top_n, self._max_results))
            return await self._retrieve(query_vector, limit)
        except Exception:
            logger.exception("Retrieval failed", extra={"stage": "retrieval"})
            return []

    async def _retrieve(self, query_vector: bytes, limit: int) -> list[CanonicalRecord]:
        rows = await asyncio.wait_for(
            self._index.search(query_vector, limit), timeout=self._search_timeout
        )
        if not isinstance(rows, list):
            logger.warning(
                "Vector index returned a non-list result",
                extra={"stage": "retrieval", "result_type": type(rows).__name__},
            )
            return []

        hits = [hit for hit in map(RetrievalHit.from_row, rows) if hit is not None]
        if not hits:
            return []

        active_ids = _ids_of_kind(hits, RecordKind.ACTIVE)
        historical_ids = _ids_of_kind(hits, RecordKind.HISTORICAL)
        active_rows, historical_rows = await asyncio.gather(
            self._lookup(active_ids, RecordKind.ACTIVE),
            self._lookup(historical_ids, RecordKind.HISTORICAL),
        )

        resolved: dict[tuple[RecordKind, str], CanonicalRecord] = {}
        for kind, raw_rows in (
            (RecordKind.ACTIVE, active_rows),
            (RecordKind.HISTORICAL, historical_rows),
        ):
            for raw in raw_rows:
                record = sanitize_record(
                    raw, kind, max_length=self._max_field_length
                )
                if record is not None:
                    resolved.setdefault((kind, record.id), record)

        ordered: list[CanonicalRecord] = []
        seen_ids: set[str] = set()
        for hit in hits:
            if hit.id in seen_ids:
                continue
            record = resolved.get((hit.kind, hit.id))
            if record is None:
                continue
            seen_ids.add(hit.id)
            ordered.append(record)
            if len(ordered) >= limit:
                break

        logger.debug(
            "Retrieval resolved records",
            extra={
                "stage": "retrieval",
                "hits": len(hits),
                "records": len(ordered),
            },
        )
        return ordered

    async def _lookup(self, ids: Sequence[str], kind: RecordKind) -> list[Any]:
        if not ids:
            return []
        rows = await asyncio.wait_for(
            self._store.fetch_records(ids, kind), timeout=self._lookup_timeout
        )
        return rows if isinstance(rows, list) else []


def _ids_of_kind(hits: Sequence[RetrievalHit], kind: RecordKind) -> list[str]:
    """Unique ids of one kind, in hit order."""
    return list(dict.fromkeys(hit.id for hit in hits if hit.kind is kind))


__all__ = ["MAX_RESULTS", "RetrievalEngine"]
