from __future__ import annotations

import httpx

from waveformer.core.errors import InternalError
from waveformer.schemas.job import AudioFileMeta
from waveformer.services.media import ProbeError
from waveformer.services.notify import WebhookNotifier, build_notification

HOOK = "https://hooks.example.com/waveform"


def _meta() -> AudioFileMeta:
    return AudioFileMeta(
        sample_rate=44100,
        channels=1,
        duration=2.5,
        duration_in_samples=110250,
        time_base="1/44100",
        format_name="flac",
        codec_name="flac",
        size=123456,
        bit_depth=None,
    )


def test_success_notification_shape() -> None:
    payload = build_notification("job-1", {"track_id": 7}, _meta(), None)

    assert payload == {
        "id": "job-1",
        "context": {"track_id": 7},
        "meta": {
            "sample_rate": 44100,
            "channels": 1,
            "duration": 2.5,
            "duration_in_samples": 110250,
            "time_base": "1/44100",
            "format_name": "flac",
            "codec_name": "flac",
            "size": 123456,
            "bit_depth": None,
        },
        "err": None,
    }


def test_failure_notification_carries_error_and_step() -> None:
    payload = build_notification("job-2", None, None, ProbeError("Bad codec: vorbis", step="probing"))

    assert payload["meta"] is None
    assert payload["err"] == {"name": "ProbeError", "message": "Bad codec: vorbis", "step": "probing"}


def test_notify_posts_json(remote) -> None:
    delivered = WebhookNotifier(transport=remote.transport).notify(HOOK, "job-1", {"a": [1, 2]}, _meta(), None)

    assert delivered
    url, body = remote.webhooks[0]
    assert url == HOOK
    assert body["id"] == "job-1"
    assert body["context"] == {"a": [1, 2]}
    assert body["meta"]["sample_rate"] == 44100


def test_notify_returns_false_on_http_error(remote) -> None:
    remote.status[HOOK] = 503

    delivered = WebhookNotifier(transport=remote.transport).notify(HOOK, "job-1", None, None, InternalError("boom"))

    assert not delivered


def test_notify_returns_false_on_network_error() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    notifier = WebhookNotifier(transport=httpx.MockTransport(refuse))

    assert not notifier.notify(HOOK, "job-1", None, None, None)
