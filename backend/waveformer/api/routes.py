"""FastAPI route definitions."""

from __future__ import annotations

import logging
import uuid
from typing import Any

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse

from waveformer.core.constants import JOB_NAME
from waveformer.core.settings import APP_VERSION, PATHS
from waveformer.schemas.job import ErrorResponse, JobCreateResponse, JobPayload
from waveformer.services.config_store import load_config
from waveformer.services.media import audiowaveform_available, ffprobe_available
from waveformer.services.validation import validate_job_request
from waveformer.workers.queue import enqueue_job

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/health")
def health() -> dict[str, object]:
    config = load_config()
    return {
        "version": APP_VERSION,
        "ffprobe_available": ffprobe_available(config.ffprobe_bin),
        "audiowaveform_available": audiowaveform_available(config.audiowaveform_bin),
        "queue_db": str(PATHS.queue_path),
        "allowed_domains": config.allowed_domains,
    }


@router.post(
    "/v1/create",
    response_model=JobCreateResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def create_job(body: Any = Body(...)) -> Any:
    # JobValidationError is turned into a 400 by the app-level handler.
    request = validate_job_request(body)
    payload = JobPayload(job_id=uuid.uuid4().hex, **request.model_dump())

    try:
        task_id = enqueue_job(payload)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Failed to enqueue job %s", payload.job_id)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(message=f"Failed to enqueue job: {exc}").model_dump(),
        )

    return JobCreateResponse(job={"id": payload.job_id, "task_id": task_id, "name": JOB_NAME})
