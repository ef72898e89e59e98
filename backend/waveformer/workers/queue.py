"""Huey queue definitions and enqueue helpers."""

from __future__ import annotations

import logging
from typing import Any

from huey import SqliteHuey
from huey.signals import SIGNAL_COMPLETE, SIGNAL_ERROR, SIGNAL_EXECUTING

from waveformer.core.constants import JOB_NAME
from waveformer.core.settings import PATHS
from waveformer.schemas.job import JobPayload
from waveformer.services.pipeline import execute_job

logger = logging.getLogger(__name__)

huey = SqliteHuey("waveformer", filename=str(PATHS.queue_path))


def _job_id(task: Any) -> str:
    args = getattr(task, "args", None) or ()
    if args and isinstance(args[0], dict):
        return str(args[0].get("job_id"))
    return "?"


@huey.task(retries=0, name=JOB_NAME)
def run_waveform_task(payload: dict[str, Any]) -> None:
    outcome = execute_job(payload)
    logger.info(
        "job_id=%s finished ok=%s notified=%s states=%s error=%s",
        outcome.job_id,
        outcome.ok,
        outcome.notified,
        ",".join(state.value for state in outcome.states),
        outcome.error,
    )


@huey.signal(SIGNAL_EXECUTING)
def _on_start(signal: str, task: Any) -> None:
    logger.info("Starting job '%s' with id: %s", task.name, _job_id(task))


@huey.signal(SIGNAL_COMPLETE)
def _on_complete(signal: str, task: Any) -> None:
    logger.info("Completed job '%s' with id: %s", task.name, _job_id(task))


@huey.signal(SIGNAL_ERROR)
def _on_fail(signal: str, task: Any, exc: BaseException | None = None) -> None:
    logger.warning("Failed job '%s' with id: %s: %r", task.name, _job_id(task), exc)


def enqueue_job(payload: JobPayload) -> str:
    result = run_waveform_task(payload.model_dump(mode="json"))
    task_id = result.id
    logger.info("Enqueued job '%s' with id: %s (task %s)", JOB_NAME, payload.job_id, task_id)
    return task_id
