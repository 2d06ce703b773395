"""Context assembler.

Renders ranked task records into the numbered text block handed to the
completion provider.
"""

from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Sequence

    from taskrag.schemas import CanonicalRecord


MAX_CONTEXT_RECORDS = 10


class ContextAssembler:
    """Build a bounded, prompt-ready context block."""

    def __init__(self, *, max_records: int = MAX_CONTEXT_RECORDS) -> None:
        self._max_records = max(1, min(max_records, MAX_CONTEXT_RECORDS))

    def assemble(self, records: Sequence[CanonicalRecord]) -> str | None:
        """Return the rendered block, or None when there is nothing to render."""
        blocks = [
            self._render_record(index, record)
            for index, record in enumerate(records[: self._max_records], 1)
        ]
        if not blocks:
            return None
        return "\n\n".join(blocks)

    def _render_record(self, index: int, record: CanonicalRecord) -> str:
        lines = [
            f"({index}) [{record.kind.label}] Title: {record.title}"
            if record.title
            else f"({index}) [{record.kind.label}]",
            _line("Description", record.description),
            _line("Status", record.status),
            _line("Priority", record.priority),
            _line("Due Date", record.due_date),
            _line("Created At", record.created_at),
            _line("Completion Date", record.completion_date),
        ]
        return "\n".join(line for line in lines if line)


def _line(label: str, value: str | None) -> str:
    # Empty fields are dropped rather than rendered blank
    if not value or not value.strip():
        return ""
    return f"{label}: {value}"


__all__ = ["ContextAssembler", "MAX_CONTEXT_RECORDS"]
