"""End-to-end job execution pipeline.

A job moves VALIDATING -> FETCHING -> PROBING -> GENERATING -> UPLOADING and
ends in NOTIFYING_SUCCESS. The first failing step sends it straight to
NOTIFYING_FAILURE; later steps never run and exactly one webhook is sent.
``execute_job`` does not raise, so a queue redelivery cannot repeat an
upload that already happened.
"""

from __future__ import annotations

import logging
import os
import tempfile
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterator, Mapping, Optional, TypeVar

from waveformer.core.constants import JobStatus
from waveformer.core.errors import InternalError, WaveformerError, serialize_error
from waveformer.schemas.config import AppConfig
from waveformer.schemas.job import AudioFileMeta, JobPayload
from waveformer.services.config_store import load_config
from waveformer.services.domains import host_is_allowed
from waveformer.services.media import generate_peaks, probe_audio
from waveformer.services.notify import WebhookNotifier
from waveformer.services.transfer import TransferClient, TransferError
from waveformer.services.validation import validate_job_payload

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class JobOutcome:
    job_id: Optional[str]
    ok: bool = False
    states: list[JobStatus] = field(default_factory=list)
    meta: Optional[AudioFileMeta] = None
    error: Optional[dict[str, Optional[str]]] = None
    notified: bool = False


@contextmanager
def scratch_file(suffix: str, directory: Optional[str] = None) -> Iterator[Path]:
    """Yield a fresh empty file path that is removed when the scope exits."""
    fd, name = tempfile.mkstemp(prefix="waveformer-", suffix=suffix, dir=directory)
    os.close(fd)
    path = Path(name)
    try:
        yield path
    finally:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Failed to remove scratch file %s: %s", path, exc)


def _set_stage(outcome: JobOutcome, status: JobStatus) -> None:
    outcome.states.append(status)
    logger.info("job_id=%s -> %s", outcome.job_id, status.value)


def _run_step(outcome: JobOutcome, status: JobStatus, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    _set_stage(outcome, status)
    try:
        return fn(*args, **kwargs)
    except WaveformerError as exc:
        exc.step = status.value
        raise
    except Exception as exc:  # noqa: BLE001
        raise InternalError(f"{type(exc).__name__}: {exc}", step=status.value) from exc


def _fetch(transfer: TransferClient, url: str, path: Path) -> None:
    result = transfer.fetch(url, path)
    if not result.ok:
        raise TransferError(result.message)


def _push(transfer: TransferClient, path: Path, url: str) -> None:
    result = transfer.push(path, url)
    if not result.ok:
        raise TransferError(result.message)


def _raw_str(raw: Mapping[str, Any], key: str) -> Optional[str]:
    value = raw.get(key)
    return value if isinstance(value, str) and value else None


def _report_failure(
    outcome: JobOutcome,
    exc: WaveformerError,
    job: Optional[JobPayload],
    raw: Mapping[str, Any],
    config: AppConfig,
    notifier: WebhookNotifier,
) -> JobOutcome:
    _set_stage(outcome, JobStatus.NOTIFYING_FAILURE)
    outcome.error = serialize_error(exc)
    logger.warning("job_id=%s failed during %s: %s", outcome.job_id, exc.step, exc)

    if job is not None:
        notify_url: Optional[str] = job.notify_url
        context = job.context
    else:
        # The payload itself was rejected; fall back to whatever notify_url it
        # carries as long as that URL would have passed validation.
        notify_url = _raw_str(raw, "notify_url")
        if notify_url is not None and not host_is_allowed(notify_url, config.allowed_domains):
            notify_url = None
        context = raw.get("context")

    if notify_url is None:
        logger.error("job_id=%s has no usable notify_url; failure not delivered", outcome.job_id)
        return outcome

    outcome.notified = notifier.notify(notify_url, outcome.job_id or "", context, outcome.meta, exc)
    return outcome


def execute_job(
    payload: Mapping[str, Any],
    *,
    config: Optional[AppConfig] = None,
    transfer: Optional[TransferClient] = None,
    notifier: Optional[WebhookNotifier] = None,
) -> JobOutcome:
    raw: Mapping[str, Any] = payload if isinstance(payload, Mapping) else {}
    outcome = JobOutcome(job_id=_raw_str(raw, "job_id"))
    job: Optional[JobPayload] = None

    if config is None:
        try:
            config = load_config()
        except (OSError, ValueError) as exc:
            # Without the allow-list no notify_url can be trusted.
            _set_stage(outcome, JobStatus.VALIDATING)
            _set_stage(outcome, JobStatus.NOTIFYING_FAILURE)
            error = InternalError(f"Configuration could not be loaded: {exc}", step=JobStatus.VALIDATING.value)
            outcome.error = serialize_error(error)
            logger.error("job_id=%s not run; failure not delivered: %s", outcome.job_id, error)
            return outcome

    transfer = transfer or TransferClient(timeout_s=config.transfer_timeout_s)
    notifier = notifier or WebhookNotifier(timeout_s=config.notify_timeout_s)

    try:
        job = _run_step(outcome, JobStatus.VALIDATING, validate_job_payload, payload, config.allowed_domains)

        with ExitStack() as stack:
            try:
                input_path = stack.enter_context(scratch_file(f".{job.input_format}", config.scratch_dir))
                output_path = stack.enter_context(scratch_file(f".{job.output_format}", config.scratch_dir))
            except OSError as exc:
                raise InternalError(f"Scratch file could not be created: {exc}", step=JobStatus.VALIDATING.value) from exc

            _run_step(outcome, JobStatus.FETCHING, _fetch, transfer, job.input_url, input_path)

            meta = _run_step(
                outcome,
                JobStatus.PROBING,
                probe_audio,
                input_path,
                ffprobe_bin=config.ffprobe_bin,
                timeout_s=config.probe_timeout_s,
            )
            outcome.meta = meta

            _run_step(
                outcome,
                JobStatus.GENERATING,
                generate_peaks,
                input_path,
                job.input_format,
                job.channel_mode,
                output_path,
                job.output_format,
                meta.bit_depth,
                audiowaveform_bin=config.audiowaveform_bin,
                timeout_s=config.generate_timeout_s,
            )

            _run_step(outcome, JobStatus.UPLOADING, _push, transfer, output_path, job.output_url)

    except WaveformerError as exc:
        return _report_failure(outcome, exc, job, raw, config, notifier)

    _set_stage(outcome, JobStatus.NOTIFYING_SUCCESS)
    outcome.ok = True
    outcome.notified = notifier.notify(job.notify_url, job.job_id, job.context, meta, None)
    return outcome
