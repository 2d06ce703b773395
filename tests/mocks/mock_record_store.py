"""In-memory relational store keyed by kind and id."""

from typing import Any, Sequence

from taskrag.schemas import RecordKind


class MockRecordStore:
    """Serves raw rows from dictionaries and records batched lookups."""

    def __init__(
        self,
        active: dict[str, dict[str, Any]] | None = None,
        historical: dict[str, dict[str, Any]] | None = None,
        errors: dict[RecordKind, Exception] | None = None,
    ) -> None:
        self.rows: dict[RecordKind, dict[str, dict[str, Any]]] = {
            RecordKind.ACTIVE: dict(active or {}),
            RecordKind.HISTORICAL: dict(historical or {}),
        }
        self.errors = errors or {}
        self.lookups: list[tuple[RecordKind, list[str]]] = []
        self.embeddings: dict[tuple[RecordKind, str], bytes] = {}

    async def fetch_records(
        self, ids: Sequence[str], kind: RecordKind
    ) -> list[dict[str, Any]]:
        self.lookups.append((kind, list(ids)))
        if kind in self.errors:
            raise self.errors[kind]
        table = self.rows[kind]
        return [dict(table[i]) for i in ids if i in table]

    async def fetch_record(
        self, record_id: str, kind: RecordKind
    ) -> dict[str, Any] | None:
        rows = await self.fetch_records([record_id], kind)
        return rows[0] if rows else None

    async def store_embedding(
        self, record_id: str, kind: RecordKind, blob: bytes
    ) -> bool:
        if record_id not in self.rows[kind]:
            return False
        self.embeddings[(kind, record_id)] = blob
        return True
