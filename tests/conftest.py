"""Shared pytest fixtures.

Runtime paths are resolved at import time, so the runtime directory is
pointed at a throwaway location before any ``waveformer`` module loads.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional

import httpx
import pytest

os.environ.setdefault("WAVEFORMER_RUNTIME_DIR", tempfile.mkdtemp(prefix="waveformer-tests-"))
os.environ.pop("VALID_URL_DOMAINS", None)

from waveformer.schemas.config import AppConfig  # noqa: E402


def _probe_payload(**overrides: Any) -> dict[str, Any]:
    """ffprobe JSON for a 1 second 16 bit stereo WAV, with per-test overrides."""
    stream = {
        "index": 0,
        "codec_name": "pcm_s16le",
        "codec_type": "audio",
        "sample_rate": "48000",
        "channels": 2,
        "bits_per_sample": 16,
        "time_base": "1/48000",
        "duration_ts": 48000,
        "duration": "1.000000",
    }
    container = {"format_name": "wav", "size": "192044", "duration": "1.000000"}
    for key, value in overrides.items():
        if key in ("format_name", "size"):
            container[key] = value
        else:
            stream[key] = value
    return {"streams": [stream], "format": container}


@pytest.fixture
def job_request() -> dict[str, Any]:
    return {
        "input_url": "https://media.example.com/in/track.wav",
        "input_format": "wav",
        "output_url": "https://media.example.com/out/track.dat",
        "output_format": "dat",
        "channel_mode": "single",
        "bit_depth": 16,
        "notify_url": "https://hooks.example.com/waveform",
        "context": {"track_id": 42, "tags": ["a", "b"]},
    }


@pytest.fixture
def job_payload(job_request: dict[str, Any]) -> dict[str, Any]:
    return {**job_request, "job_id": "job-1"}


@pytest.fixture
def scratch_dir(tmp_path: Path) -> Path:
    path = tmp_path / "scratch"
    path.mkdir()
    return path


@pytest.fixture
def app_config(scratch_dir: Path) -> AppConfig:
    return AppConfig(allowed_domains=["*.example.com"], scratch_dir=str(scratch_dir))


class FakeRemote:
    """In-memory HTTP peer for httpx.MockTransport.

    Serves ``downloads`` on GET, stores PUT bodies in ``uploads`` and JSON
    POST bodies in ``webhooks``. ``status`` overrides the reply per URL.
    """

    def __init__(self, downloads: Optional[dict[str, bytes]] = None) -> None:
        self.downloads = downloads or {}
        self.status: dict[str, int] = {}
        self.uploads: dict[str, bytes] = {}
        self.upload_headers: dict[str, httpx.Headers] = {}
        self.webhooks: list[tuple[str, Any]] = []
        self.requests: list[tuple[str, str]] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append((request.method, url))
        status = self.status.get(url)
        if status is not None and status >= 400:
            return httpx.Response(status, text="nope")

        if request.method == "GET":
            if url not in self.downloads:
                return httpx.Response(404, text="not found")
            return httpx.Response(200, content=self.downloads[url])
        if request.method == "PUT":
            self.uploads[url] = request.read()
            self.upload_headers[url] = request.headers
            return httpx.Response(status or 200)
        if request.method == "POST":
            self.webhooks.append((url, json.loads(request.read())))
            return httpx.Response(status or 200, json={"ok": True})
        return httpx.Response(405)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def remote() -> FakeRemote:
    return FakeRemote()


@pytest.fixture
def probe_payload() -> Callable[..., dict[str, Any]]:
    return _probe_payload
