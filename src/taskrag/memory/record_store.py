"""Relational task store backed by SQLAlchemy Core.

Owns the ``tasks`` and ``historic_tasks`` tables. The pipeline only reads the
columns it renders plus the ``vector_embedding`` blob written at indexing
time. SQLAlchemy calls are synchronous and run in a worker thread.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Protocol, Sequence

from sqlalchemy import (
    Column,
    Integer,
    LargeBinary,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    select,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from taskrag.schemas import RecordKind


metadata = MetaData()

tasks_table = Table(
    "tasks",
    metadata,
    Column("task_id", String(64), primary_key=True),
    Column("user_id", Integer, nullable=True),
    Column("parent_task_id", String(64), nullable=True),
    Column("title", Text, nullable=False),
    Column("description", Text, nullable=True),
    Column("status", String(32), nullable=True),
    Column("priority", String(32), nullable=True),
    Column("due_date", String(32), nullable=True),
    Column("created_at", String(32), nullable=True),
    Column("vector_embedding", LargeBinary, nullable=True),
)

historic_tasks_table = Table(
    "historic_tasks",
    metadata,
    Column("historic_task_id", String(64), primary_key=True),
    Column("original_task_id", String(64), nullable=True),
    Column("original_parent_task_id", String(64), nullable=True),
    Column("title", Text, nullable=True),
    Column("description", Text, nullable=True),
    Column("priority", String(32), nullable=True),
    Column("due_date", String(32), nullable=True),
    Column("completion_date", String(32), nullable=True),
    Column("created_at", String(32), nullable=True),
    Column("vector_embedding", LargeBinary, nullable=True),
)

_TABLES: dict[RecordKind, tuple[Table, str]] = {
    RecordKind.ACTIVE: (tasks_table, "task_id"),
    RecordKind.HISTORICAL: (historic_tasks_table, "historic_task_id"),
}


class RecordStore(Protocol):
    async def fetch_records(
        self, ids: Sequence[str], kind: RecordKind
    ) -> list[dict[str, Any]]:
        ...

    async def fetch_record(
        self, record_id: str, kind: RecordKind
    ) -> dict[str, Any] | None:
        ...

    async def store_embedding(
        self, record_id: str, kind: RecordKind, blob: bytes
    ) -> bool:
        ...


class SQLRecordStore:
    """Batched task lookups over a SQLAlchemy engine."""

    def __init__(self, database_url: str, *, engine: Engine | None = None) -> None:
        self.database_url = database_url
        if engine is None:
            connect_args: dict[str, Any] = {}
            kwargs: dict[str, Any] = {}
            if database_url.startswith("sqlite"):
                connect_args["check_same_thread"] = False
                if ":memory:" in database_url or database_url == "sqlite://":
                    kwargs["poolclass"] = StaticPool
            engine = create_engine(
                database_url, connect_args=connect_args, echo=False, **kwargs
            )
        self.engine = engine

    def init_schema(self) -> None:
        """Create the task tables when they do not exist."""
        url = self.engine.url
        if url.get_backend_name() == "sqlite" and url.database not in (
            None,
            "",
            ":memory:",
        ):
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        metadata.create_all(bind=self.engine)

    async def fetch_records(
        self, ids: Sequence[str], kind: RecordKind
    ) -> list[dict[str, Any]]:
        """Return raw rows for ``ids`` of one kind in a single query."""
        if not ids:
            return []
        return await asyncio.to_thread(self._fetch_sync, list(ids), kind)

    async def fetch_record(
        self, record_id: str, kind: RecordKind
    ) -> dict[str, Any] | None:
        """Return one raw row, or None when it does not exist."""
        rows = await self.fetch_records([record_id], kind)
        return rows[0] if rows else None

    def _fetch_sync(self, ids: list[str], kind: RecordKind) -> list[dict[str, Any]]:
        table, key = _TABLES[kind]
        columns = [
            table.c[key].label("id"),
            *(c for c in table.c if c.name not in (key, "vector_embedding")),
        ]
        stmt = select(*columns).where(table.c[key].in_(ids))
        with self.engine.connect() as conn:
            return [dict(row._mapping) for row in conn.execute(stmt)]

    async def store_embedding(
        self, record_id: str, kind: RecordKind, blob: bytes
    ) -> bool:
        """Persist the serialized embedding next to its owning row."""
        return await asyncio.to_thread(self._store_embedding_sync, record_id, kind, blob)

    def _store_embedding_sync(
        self, record_id: str, kind: RecordKind, blob: bytes
    ) -> bool:
        table, key = _TABLES[kind]
        stmt = (
            update(table)
            .where(table.c[key] == record_id)
            .values(vector_embedding=blob)
        )
        with self.engine.begin() as conn:
            result = conn.execute(stmt)
        return bool(result.rowcount)

    def insert_record(self, kind: RecordKind, **values: Any) -> None:
        """Insert a raw row (used by seeding scripts and tests)."""
        table, _ = _TABLES[kind]
        with self.engine.begin() as conn:
            conn.execute(table.insert().values(**values))


__all__ = [
    "RecordStore",
    "SQLRecordStore",
    "historic_tasks_table",
    "metadata",
    "tasks_table",
]
