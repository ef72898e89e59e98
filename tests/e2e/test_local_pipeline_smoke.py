import io
import math
import os
import struct
import wave

import pytest

from waveformer.core.constants import JobStatus
from waveformer.services.notify import WebhookNotifier
from waveformer.services.pipeline import execute_job
from waveformer.services.transfer import TransferClient


def _sine_wav(seconds: float = 1.0, rate: int = 44100) -> bytes:
    frames = int(seconds * rate)
    buf = io.BytesIO()
    with wave.open(buf, "wb") as w:
        w.setnchannels(2)
        w.setsampwidth(2)
        w.setframerate(rate)
        samples = (int(12000 * math.sin(2 * math.pi * 440 * i / rate)) for i in range(frames))
        w.writeframes(b"".join(struct.pack("<hh", s, s) for s in samples))
    return buf.getvalue()


@pytest.mark.skipif(
    os.environ.get("RUN_E2E") != "1",
    reason="Set RUN_E2E=1 with ffprobe and audiowaveform on PATH to run e2e.",
)
def test_pipeline_smoke(job_payload, app_config, remote) -> None:
    remote.downloads[job_payload["input_url"]] = _sine_wav()

    outcome = execute_job(
        job_payload,
        config=app_config,
        transfer=TransferClient(transport=remote.transport),
        notifier=WebhookNotifier(transport=remote.transport),
    )

    assert outcome.ok, outcome.error
    assert outcome.states[-1] == JobStatus.NOTIFYING_SUCCESS
    assert outcome.meta.sample_rate == 44100
    assert outcome.meta.duration_in_samples == 44100
    assert remote.uploads[job_payload["output_url"]]
    assert remote.webhooks[0][1]["err"] is None
