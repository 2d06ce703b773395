"""Exceptions raised inside the task indexer."""

from __future__ import annotations

from typing import Any

from taskrag.schemas import PipelineFailure


class PipelineFailureError(RuntimeError):
    """A task could not be indexed.

    Raised by the indexing steps (missing row, embedding failure, blob not
    persisted) and caught by ``TaskIndexer.index_record``, which logs it and
    reports the task as not indexed. ``failure`` carries the same fields the
    query pipeline returns as a ``PipelineFailure``.
    """

    def __init__(
        self,
        *,
        stage: str,
        error_code: str,
        message: str,
        recoverable: bool = False,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.failure = PipelineFailure(
            stage=stage,
            error_code=error_code,
            message=message,
            recoverable=recoverable,
            details=details,
        )

    @property
    def record_id(self) -> str | None:
        """Identity of the task that failed, when the raiser recorded one."""
        return (self.failure.details or {}).get("record_id")

    def __str__(self) -> str:
        failure = self.failure
        where = f" (task {self.record_id})" if self.record_id else ""
        return (
            f"{failure.stage} failed{where}: [{failure.error_code}] {failure.message}"
        )


__all__ = ["PipelineFailureError"]
