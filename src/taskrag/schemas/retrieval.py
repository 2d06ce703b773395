"""Vector retrieval schemas."""

from typing import Any

from pydantic import BaseModel

from taskrag.schemas.base import RecordKind


class RetrievalHit(BaseModel):
    """A single nearest-neighbor hit reported by the vector index."""

    id: str
    kind: RecordKind
    distance: float = 0.0

    @classmethod
    def from_row(cls, row: Any) -> "RetrievalHit | None":
        """Build a hit from a raw index row, or None when it is unusable."""
        if not isinstance(row, dict):
            return None
        record_id = normalize_id(row.get("id"))
        kind = RecordKind.parse(row.get("kind", row.get("type")))
        if record_id is None or kind is None:
            return None
        distance = row.get("distance", row.get("_distance", 0.0))
        try:
            distance = float(distance)
        except (TypeError, ValueError):
            distance = 0.0
        return cls(id=record_id, kind=kind, distance=distance)


def normalize_id(value: Any) -> str | None:
    """Return a string identity, or None when the value cannot identify a row."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, str)):
        text = str(value).strip()
        return text or None
    return None
