"""Audio inspection and peaks generation powered by ffprobe/audiowaveform."""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Any, Optional, get_args

from pydantic import ValidationError

from waveformer.core.constants import MAX_PEAKS_BIT_DEPTH
from waveformer.core.errors import WaveformerError
from waveformer.schemas.job import AudioFileMeta, CodecName, FormatName

logger = logging.getLogger(__name__)

ALLOWED_FORMAT_NAMES = get_args(FormatName)
ALLOWED_CODEC_NAMES = get_args(CodecName)


class ProbeError(WaveformerError):
    kind = "ProbeError"


class GenerationError(WaveformerError):
    kind = "GenerationError"


def _tool_available(cmd: list[str]) -> bool:
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, timeout=10)
    except (OSError, subprocess.TimeoutExpired):
        return False
    return proc.returncode == 0


def ffprobe_available(binary: str = "ffprobe") -> bool:
    return _tool_available([binary, "-version"])


def audiowaveform_available(binary: str = "audiowaveform") -> bool:
    return _tool_available([binary, "--version"])


# --- Probing ---


def _int_field(stream: dict[str, Any], key: str) -> int:
    value = stream.get(key)
    if value is None:
        raise ProbeError(f"ffprobe output is missing '{key}'")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ProbeError(f"ffprobe field '{key}' is not an integer: {value!r}") from exc


def _exact_int_field(stream: dict[str, Any], key: str) -> int:
    # ffprobe emits a JSON integer here; other types are rejected, not coerced
    value = stream.get(key)
    if value is None:
        raise ProbeError(f"ffprobe output is missing '{key}'")
    if type(value) is not int:
        raise ProbeError(f"ffprobe field '{key}' is not an integer: {value!r}")
    return value


def _time_base_denominator(time_base: str) -> int:
    _, _, den = time_base.rpartition("/")
    try:
        denominator = int(den)
    except ValueError as exc:
        raise ProbeError(f"Invalid time_base: {time_base!r}") from exc
    if denominator <= 0:
        raise ProbeError(f"Invalid time_base: {time_base!r}")
    return denominator


def duration_in_samples(duration_ts: int, sample_rate: int, time_base: str) -> int:
    """Stream length in samples: duration_ts * sample_rate / time_base denominator.

    Python ints are unbounded, so the product never loses precision.
    """
    return duration_ts * sample_rate // _time_base_denominator(time_base)


def normalize_bit_depth(bits_per_sample: Any) -> Optional[int]:
    # ffprobe reports 0 for codecs without a fixed sample width (mp3, ...)
    if bits_per_sample in (None, 0, "0"):
        return None
    return int(bits_per_sample)


def parse_probe_payload(payload: dict[str, Any]) -> AudioFileMeta:
    streams = [s for s in payload.get("streams") or [] if s.get("codec_type", "audio") == "audio"]
    if not streams:
        raise ProbeError("No audio streams found.")

    stream = streams[0]
    container = payload.get("format") or {}

    channels = _exact_int_field(stream, "channels")
    format_name = container.get("format_name")
    codec_name = stream.get("codec_name")

    if channels > 2:
        raise ProbeError("More than 2 channels not allowed.")
    if format_name not in ALLOWED_FORMAT_NAMES:
        raise ProbeError(f"Bad format: {format_name}")
    if codec_name not in ALLOWED_CODEC_NAMES:
        raise ProbeError(f"Bad codec: {codec_name}")

    sample_rate = _int_field(stream, "sample_rate")
    time_base = str(stream.get("time_base") or "")
    raw_duration = stream.get("duration", container.get("duration"))

    try:
        meta = AudioFileMeta(
            sample_rate=sample_rate,
            channels=channels,
            duration=float(raw_duration),
            duration_in_samples=duration_in_samples(_int_field(stream, "duration_ts"), sample_rate, time_base),
            time_base=time_base,
            format_name=format_name,
            codec_name=codec_name,
            size=_int_field(container, "size"),
            bit_depth=normalize_bit_depth(stream.get("bits_per_sample")),
        )
    except ValidationError as exc:
        first = exc.errors(include_url=False)[0]
        field = ".".join(str(part) for part in first["loc"])
        raise ProbeError(f"Unexpected probe result for '{field}': {first['msg']}") from exc
    except (TypeError, ValueError) as exc:
        raise ProbeError(f"Unexpected probe result: {exc}") from exc

    return meta


def probe_audio(path: Path, *, ffprobe_bin: str = "ffprobe", timeout_s: float = 60.0) -> AudioFileMeta:
    cmd = [
        ffprobe_bin,
        "-v",
        "error",
        "-print_format",
        "json",
        "-show_format",
        "-show_streams",
        "-select_streams",
        "a",
        "-i",
        str(path),
    ]
    logger.info("Probing %s", path)
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout_s)
    except subprocess.TimeoutExpired as exc:
        raise ProbeError(f"ffprobe timed out after {timeout_s}s") from exc
    except OSError as exc:
        raise ProbeError(f"ffprobe could not be started: {exc}") from exc

    if proc.returncode != 0:
        raise ProbeError(f"ffprobe exited with code {proc.returncode}: {proc.stderr.strip()[:500]}")

    try:
        payload = json.loads(proc.stdout)
    except json.JSONDecodeError as exc:
        raise ProbeError("ffprobe returned invalid JSON") from exc

    meta = parse_probe_payload(payload)
    logger.info("Probed %s: %s", path, meta.model_dump())
    return meta


# --- Peaks generation ---


def build_peaks_args(
    input_path: Path,
    input_format: str,
    channel_mode: str,
    output_path: Path,
    output_format: str,
    bit_depth: Optional[int],
) -> list[str]:
    args = [
        "--input-format",
        input_format,
        "--output-format",
        output_format,
        "-i",
        str(input_path),
        "-o",
        str(output_path),
    ]
    if bit_depth:
        args += ["-b", str(min(bit_depth, MAX_PEAKS_BIT_DEPTH))]
    if channel_mode == "multi":
        args.append("--split-channels")
    return args


def generate_peaks(
    input_path: Path,
    input_format: str,
    channel_mode: str,
    output_path: Path,
    output_format: str,
    bit_depth: Optional[int],
    *,
    audiowaveform_bin: str = "audiowaveform",
    timeout_s: float = 600.0,
) -> None:
    cmd = [audiowaveform_bin] + build_peaks_args(
        input_path, input_format, channel_mode, output_path, output_format, bit_depth
    )
    logger.info("Running: %s", " ".join(cmd))
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout_s)
    except subprocess.TimeoutExpired as exc:
        raise GenerationError(f"audiowaveform timed out after {timeout_s}s") from exc
    except OSError as exc:
        raise GenerationError(f"audiowaveform could not be started: {exc}") from exc

    if proc.returncode < 0:
        raise GenerationError(f"Terminated by signal {-proc.returncode}")
    if proc.returncode != 0:
        detail = proc.stderr.strip()[:500]
        message = f"Exited with non-zero code: {proc.returncode}"
        raise GenerationError(f"{message}: {detail}" if detail else message)

    logger.info("Peaks data generated: %s", output_path)
