"""Webhook delivery of a job's terminal outcome."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from waveformer.core.errors import WaveformerError, serialize_error
from waveformer.schemas.job import AudioFileMeta

logger = logging.getLogger(__name__)


class NotificationError(WaveformerError):
    kind = "NotificationError"


def build_notification(
    job_id: str,
    context: Any,
    meta: Optional[AudioFileMeta],
    err: Optional[BaseException],
) -> dict[str, Any]:
    return {
        "id": job_id,
        "context": context,
        "meta": meta.model_dump(mode="json") if meta is not None else None,
        "err": serialize_error(err) if err is not None else None,
    }


class WebhookNotifier:
    """POSTs ``{id, context, meta, err}`` to the caller's notify_url.

    Delivery is single-attempt and best effort: a failed notification is
    logged and reported as ``False``, never raised.
    """

    def __init__(self, timeout_s: float = 30.0, transport: Optional[httpx.BaseTransport] = None) -> None:
        self.timeout_s = timeout_s
        self._transport = transport

    def _post(self, url: str, payload: dict[str, Any]) -> httpx.Response:
        try:
            with httpx.Client(timeout=self.timeout_s, transport=self._transport) as client:
                resp = client.post(url, json=payload)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise NotificationError(f"Notification request failed: {exc}") from exc
        except (TypeError, ValueError) as exc:
            raise NotificationError(f"Notification payload is not JSON serializable: {exc}") from exc
        if not resp.is_success:
            raise NotificationError(f"Notification rejected: HTTP {resp.status_code} {resp.text[:200]}")
        return resp

    def notify(
        self,
        url: str,
        job_id: str,
        context: Any,
        meta: Optional[AudioFileMeta],
        err: Optional[BaseException],
    ) -> bool:
        payload = build_notification(job_id, context, meta, err)
        logger.info("Notifying %s for job_id=%s (err=%s)", url, job_id, payload["err"])
        try:
            resp = self._post(url, payload)
        except NotificationError as exc:
            logger.error("Notification for job_id=%s failed: %s", job_id, exc)
            return False
        logger.info("Notification for job_id=%s delivered: HTTP %s", job_id, resp.status_code)
        return True
