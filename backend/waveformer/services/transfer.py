"""Streaming transfers between remote URLs and local scratch files."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from waveformer.core.errors import WaveformerError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


class TransferError(WaveformerError):
    kind = "TransferError"


@dataclass(frozen=True)
class TransferResult:
    ok: bool
    message: str
    status_code: Optional[int] = None


def _describe_status(response: httpx.Response) -> str:
    reason = response.reason_phrase or "error"
    return f"HTTP {response.status_code} {reason}"


class TransferClient:
    """Single-attempt fetch/push over HTTP.

    Failures are returned as ``TransferResult(ok=False, ...)`` so the caller
    can attach job context before reporting; nothing here raises.
    """

    def __init__(self, timeout_s: float = 300.0, transport: Optional[httpx.BaseTransport] = None) -> None:
        self.timeout_s = timeout_s
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout_s, transport=self._transport, follow_redirects=True)

    def fetch(self, source_url: str, destination_path: Path) -> TransferResult:
        destination_path = Path(destination_path)
        logger.info("Downloading %s -> %s", source_url, destination_path)
        status_code: Optional[int] = None
        try:
            with self._client() as client, client.stream("GET", source_url) as resp:
                status_code = resp.status_code
                if not resp.is_success:
                    raise TransferError(f"Download failed: {_describe_status(resp)}")
                with destination_path.open("wb") as f:
                    for chunk in resp.iter_bytes(CHUNK_SIZE):
                        f.write(chunk)
        except (httpx.HTTPError, httpx.InvalidURL, OSError, TransferError) as exc:
            # Never leave a partial download behind as if it were complete.
            destination_path.unlink(missing_ok=True)
            message = str(exc) if isinstance(exc, TransferError) else f"Download failed: {exc}"
            logger.error(message)
            return TransferResult(ok=False, message=message, status_code=status_code)

        logger.info("Download finished: %s (%d bytes)", destination_path, destination_path.stat().st_size)
        return TransferResult(ok=True, message="Download finished", status_code=status_code)

    def push(self, source_path: Path, destination_url: str) -> TransferResult:
        source_path = Path(source_path)
        logger.info("Uploading %s -> %s", source_path, destination_url)
        if not source_path.is_file():
            message = f"Upload failed: source file not found: {source_path}"
            logger.error(message)
            return TransferResult(ok=False, message=message)

        try:
            with self._client() as client, source_path.open("rb") as f:
                resp = client.put(
                    destination_url,
                    content=f,
                    headers={
                        "content-type": "application/octet-stream",
                        "content-length": str(source_path.stat().st_size),
                    },
                )
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as exc:
            message = f"Upload failed: {exc}"
            logger.error(message)
            return TransferResult(ok=False, message=message)

        if not resp.is_success:
            message = f"Upload failed: {_describe_status(resp)}"
            logger.error(message)
            return TransferResult(ok=False, message=message, status_code=resp.status_code)

        logger.info("Upload finished: %s", _describe_status(resp))
        return TransferResult(ok=True, message="Upload finished", status_code=resp.status_code)
