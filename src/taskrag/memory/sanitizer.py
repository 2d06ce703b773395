"""Field sanitizer for raw task rows.

Normalizes the active-task and historic-task row shapes into a single
CanonicalRecord. String fields are truncated and stripped of angle brackets
so stored text cannot smuggle markup into the completion prompt.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Mapping

from taskrag.schemas import CanonicalRecord, RecordKind, normalize_id
from taskrag.schemas.records import (
    DEFAULT_CREATED_AT,
    DEFAULT_DESCRIPTION,
    DEFAULT_DUE_DATE,
    DEFAULT_PRIORITY,
    DEFAULT_STATUS,
    DEFAULT_TITLE,
)

MAX_FIELD_LENGTH = 1000
_ANGLE_BRACKETS = re.compile(r"[<>]")
_ID_FIELDS = ("id", "task_id", "historic_task_id")


def sanitize_string(value: Any, max_length: int = MAX_FIELD_LENGTH) -> str:
    """Truncate ``value`` and drop ``<``/``>``; non-strings become ``""``."""
    if isinstance(value, (datetime, date)):
        value = value.isoformat()
    if not isinstance(value, str):
        return ""
    return _ANGLE_BRACKETS.sub("", value[:max_length])


def extract_id(raw: Mapping[str, Any]) -> str | None:
    """Return the first usable identity among the known id columns."""
    for name in _ID_FIELDS:
        record_id = normalize_id(raw.get(name))
        if record_id is not None:
            return record_id
    return None


def sanitize_record(
    raw: Any,
    kind: RecordKind,
    *,
    max_length: int = MAX_FIELD_LENGTH,
) -> CanonicalRecord | None:
    """Normalize a raw row into a CanonicalRecord.

    Args:
        raw: Row returned by the relational store.
        kind: Which table the row came from.
        max_length: Per-field character cap.

    Returns:
        The sanitized record, or None when ``raw`` is not a mapping or has
        no recoverable identity.
    """
    if not isinstance(raw, Mapping):
        return None
    record_id = extract_id(raw)
    if record_id is None:
        return None

    def field(name: str, default: str | None) -> str | None:
        return sanitize_string(raw.get(name), max_length) or default

    return CanonicalRecord(
        id=record_id,
        title=field("title", DEFAULT_TITLE),
        description=field("description", DEFAULT_DESCRIPTION),
        status=field("status", DEFAULT_STATUS),
        priority=field("priority", DEFAULT_PRIORITY),
        due_date=field("due_date", DEFAULT_DUE_DATE),
        created_at=field("created_at", DEFAULT_CREATED_AT),
        completion_date=field("completion_date", None),
        kind=kind,
    )


__all__ = ["MAX_FIELD_LENGTH", "extract_id", "sanitize_record", "sanitize_string"]
