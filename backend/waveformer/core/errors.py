"""Shared error base and the serialized form sent to webhooks."""

from __future__ import annotations

from typing import Optional


class WaveformerError(RuntimeError):
    """Base for step failures that end a job.

    ``kind`` is the stable name reported to callers; ``step`` is filled in by
    the pipeline with the state the job was in when the error surfaced.
    """

    kind = "Error"

    def __init__(self, message: str, *, step: Optional[str] = None) -> None:
        super().__init__(message)
        self.step = step


class InternalError(WaveformerError):
    kind = "InternalError"


def serialize_error(exc: BaseException) -> dict[str, Optional[str]]:
    if isinstance(exc, WaveformerError):
        return {"name": exc.kind, "message": str(exc), "step": exc.step}
    return {"name": type(exc).__name__, "message": str(exc), "step": None}
