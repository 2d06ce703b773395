"""SQLRecordStore tests against a throwaway SQLite database."""

from __future__ import annotations

import pytest

from taskrag.memory import SQLRecordStore
from taskrag.memory.record_store import tasks_table
from taskrag.memory.sanitizer import sanitize_record
from taskrag.schemas import RecordKind


@pytest.fixture
def store(tmp_path) -> SQLRecordStore:
    store = SQLRecordStore(f"sqlite:///{tmp_path / 'tasks.db'}")
    store.init_schema()
    store.insert_record(
        RecordKind.ACTIVE,
        task_id="1",
        user_id=100,
        title="Ongoing",
        description="OngoingDesc",
        status="in_progress",
        priority="high",
        due_date="2024-01-01",
        created_at="2024-01-01",
    )
    store.insert_record(
        RecordKind.ACTIVE, task_id="3", user_id=100, title="Other", priority="low"
    )
    store.insert_record(
        RecordKind.HISTORICAL,
        historic_task_id="2",
        original_task_id="0",
        title="Completed",
        description="CompletedDesc",
        priority="low",
        due_date="2023-01-01",
        completion_date="2023-01-02",
        created_at="2023-01-01",
    )
    return store


class TestSQLRecordStore:
    @pytest.mark.integration
    async def test_batched_lookup_aliases_identity(self, store: SQLRecordStore) -> None:
        rows = await store.fetch_records(["1", "3", "missing"], RecordKind.ACTIVE)

        assert sorted(row["id"] for row in rows) == ["1", "3"]
        assert "vector_embedding" not in rows[0]
        assert "task_id" not in rows[0]

    @pytest.mark.integration
    async def test_historic_rows_sanitize(self, store: SQLRecordStore) -> None:
        [row] = await store.fetch_records(["2"], RecordKind.HISTORICAL)

        record = sanitize_record(row, RecordKind.HISTORICAL)

        assert record is not None
        assert record.id == "2"
        assert record.completion_date == "2023-01-02"
        assert record.status == "unknown"

    @pytest.mark.integration
    async def test_kinds_are_isolated(self, store: SQLRecordStore) -> None:
        assert await store.fetch_records(["2"], RecordKind.ACTIVE) == []
        assert await store.fetch_records(["1"], RecordKind.HISTORICAL) == []

    @pytest.mark.integration
    async def test_empty_id_list_skips_query(self, store: SQLRecordStore) -> None:
        assert await store.fetch_records([], RecordKind.ACTIVE) == []

    @pytest.mark.integration
    async def test_store_embedding(self, store: SQLRecordStore) -> None:
        blob = b"\x00\x00\x80\x3f"

        assert await store.store_embedding("1", RecordKind.ACTIVE, blob) is True
        assert await store.store_embedding("nope", RecordKind.ACTIVE, blob) is False

        with store.engine.connect() as conn:
            stored = conn.execute(
                tasks_table.select().where(tasks_table.c.task_id == "1")
            ).one()
        assert stored.vector_embedding == blob

    @pytest.mark.integration
    async def test_in_memory_database(self) -> None:
        store = SQLRecordStore("sqlite://")
        store.init_schema()
        store.insert_record(RecordKind.ACTIVE, task_id="9", title="Mem")

        assert await store.fetch_record("9", RecordKind.ACTIVE) == {
            "id": "9",
            "user_id": None,
            "parent_task_id": None,
            "title": "Mem",
            "description": None,
            "status": None,
            "priority": None,
            "due_date": None,
            "created_at": None,
        }
