"""LanceDB wrapper for the task embedding index.

Stores one row per indexed task (active or historic) and answers
nearest-neighbor queries with ids ordered by ascending distance.
"""

from __future__ import annotations

import asyncio
from typing import Any, Protocol

import lancedb
import pyarrow as pa  # type: ignore[import-untyped]

from taskrag.memory.embeddings import unpack_vector
from taskrag.schemas import RecordKind


class VectorIndex(Protocol):
    async def search(self, query_vector: bytes, top_n: int) -> Any:
        ...

    async def upsert(
        self, record_id: str, kind: RecordKind, vector: list[float]
    ) -> None:
        ...


class LanceDBVectorIndex:
    """LanceDB wrapper for task embedding storage and search.

    Schema:
        - id: str (task or historic task identifier)
        - kind: str ("active" | "historical")
        - embedding: fixed-size list[float32]
    """

    def __init__(
        self,
        db_path: str,
        embedding_dim: int = 1536,
        table_name: str = "task_embeddings",
    ) -> None:
        """Initialize LanceDB connection.

        Args:
            db_path: Path to the LanceDB database directory.
            embedding_dim: Dimension of the embedding vectors.
            table_name: Name of the embeddings table.
        """
        self.db_path = db_path
        self.embedding_dim = embedding_dim
        self.table_name = table_name
        self.db = lancedb.connect(db_path)

    def _get_schema(self) -> pa.Schema:
        """Define the PyArrow schema for the embeddings table."""
        return pa.schema(
            [
                pa.field("id", pa.string()),
                pa.field("kind", pa.string()),
                pa.field(
                    "embedding",
                    pa.list_(pa.float32(), list_size=self.embedding_dim),
                ),
            ]
        )

    def _open_table(self) -> Any | None:
        try:
            return self.db.open_table(self.table_name)
        except (FileNotFoundError, ValueError):
            return None

    async def search(self, query_vector: bytes, top_n: int) -> list[dict[str, Any]]:
        """Return up to ``top_n`` hits ordered by ascending distance.

        Args:
            query_vector: Serialized float32 query embedding.
            top_n: Maximum number of hits.

        Returns:
            Rows shaped ``{"id", "kind", "distance"}``; empty when the table
            does not exist yet.
        """
        vector = unpack_vector(query_vector)
        return await asyncio.to_thread(self._search_sync, vector, top_n)

    def _search_sync(self, vector: list[float], top_n: int) -> list[dict[str, Any]]:
        table = self._open_table()
        if table is None:
            return []
        results = table.search(vector).metric("l2").limit(top_n).to_list()
        hits = [
            {
                "id": row.get("id"),
                "kind": row.get("kind"),
                "distance": float(row.get("_distance", 0.0)),
            }
            for row in results
        ]
        hits.sort(key=lambda hit: hit["distance"])
        return hits

    async def upsert(
        self, record_id: str, kind: RecordKind, vector: list[float]
    ) -> None:
        """Insert or replace the embedding row for one task."""
        await asyncio.to_thread(self._upsert_sync, record_id, kind, vector)

    def _upsert_sync(
        self, record_id: str, kind: RecordKind, vector: list[float]
    ) -> None:
        if len(vector) != self.embedding_dim:
            raise ValueError(
                f"Expected {self.embedding_dim}-dim embedding, got {len(vector)}"
            )
        row = {"id": record_id, "kind": kind.value, "embedding": vector}
        table = self._open_table()
        if table is None:
            self.db.create_table(
                self.table_name,
                data=[row],
                schema=self._get_schema(),
                mode="overwrite",
            )
            return
        table.delete(f"id = '{_quote(record_id)}' AND kind = '{kind.value}'")
        table.add([row])

    async def count(self) -> int:
        """Return the number of indexed embeddings."""
        table = self._open_table()
        if table is None:
            return 0
        return int(await asyncio.to_thread(table.count_rows))


def _quote(value: str) -> str:
    return value.replace("'", "''")


__all__ = ["LanceDBVectorIndex", "VectorIndex"]
