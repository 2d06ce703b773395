"""Context assembler tests."""

import pytest

from taskrag.agents import ContextAssembler
from taskrag.memory.sanitizer import sanitize_record
from taskrag.schemas import CanonicalRecord, RecordKind


@pytest.fixture
def assembler() -> ContextAssembler:
    return ContextAssembler()


class TestContextAssembler:
    @pytest.mark.unit
    def test_empty_input_returns_none(self, assembler: ContextAssembler) -> None:
        assert assembler.assemble([]) is None

    @pytest.mark.unit
    def test_renders_numbered_blocks_in_order(
        self, assembler: ContextAssembler, ongoing_task, completed_task
    ) -> None:
        records = [
            sanitize_record(ongoing_task, RecordKind.ACTIVE),
            sanitize_record(completed_task, RecordKind.HISTORICAL),
        ]

        context = assembler.assemble(records)

        assert context == (
            "(1) [ONGOING_TASK] Title: Ongoing\n"
            "Description: OngoingDesc\n"
            "Status: unknown\n"
            "Priority: high\n"
            "Due Date: 2024-01-01\n"
            "Created At: 2024-01-01\n"
            "\n"
            "(2) [PAST_COMPLETED_TASK] Title: Completed\n"
            "Description: CompletedDesc\n"
            "Status: unknown\n"
            "Priority: low\n"
            "Due Date: 2023-01-01\n"
            "Created At: 2023-01-01\n"
            "Completion Date: 2023-01-02"
        )

    @pytest.mark.unit
    def test_id_only_record_renders_defaults(self, assembler: ContextAssembler) -> None:
        record = sanitize_record({"id": 1}, RecordKind.ACTIVE)

        context = assembler.assemble([record])

        assert context == (
            "(1) [ONGOING_TASK] Title: Untitled Task\n"
            "Description: No description provided.\n"
            "Status: unknown\n"
            "Priority: none\n"
            "Due Date: not set\n"
            "Created At: unknown"
        )

    @pytest.mark.unit
    def test_empty_optional_fields_are_omitted(
        self, assembler: ContextAssembler
    ) -> None:
        record = CanonicalRecord(
            id="1", status=None, completion_date="", kind=RecordKind.HISTORICAL
        )

        context = assembler.assemble([record])

        assert context is not None
        assert "Status:" not in context
        assert "Completion Date:" not in context
        assert "Priority: none" in context

    @pytest.mark.unit
    def test_caps_rendered_records(self) -> None:
        records = [
            CanonicalRecord(id=str(i), title=f"T{i}", kind=RecordKind.ACTIVE)
            for i in range(15)
        ]

        context = ContextAssembler(max_records=25).assemble(records)

        assert context is not None
        assert context.count("[ONGOING_TASK]") == 10
        assert "(10) [ONGOING_TASK] Title: T9" in context
        assert "(11)" not in context
