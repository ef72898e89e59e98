"""Pydantic schemas for job requests, queued payloads and probe results.

The same closed models are used when a request is submitted and again when
the queued payload is picked up by a worker.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from waveformer.core.constants import SCHEMA_VERSION
from waveformer.services.domains import host_is_allowed, url_host

InputFormat = Literal["wav", "flac", "mp3"]
OutputFormat = Literal["dat", "json"]
ChannelMode = Literal["single", "multi"]
BitDepth = Literal[8, 16]

Channels = Literal[1, 2]
FormatName = InputFormat
CodecName = Literal["flac", "pcm_s16le", "pcm_s16be", "pcm_s24le", "pcm_s32le", "pcm_f32le", "mp3"]
ProbedBitDepth = Literal[8, 16, 24, 32]


class JobRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)

    input_url: str
    input_format: InputFormat
    output_url: str
    output_format: OutputFormat
    channel_mode: ChannelMode
    bit_depth: BitDepth
    notify_url: str
    context: Any = None

    @field_validator("input_url", "output_url", "notify_url")
    @classmethod
    def _check_url(cls, value: str, info: ValidationInfo) -> str:
        if url_host(value) is None:
            raise ValueError("Invalid url")
        patterns = (info.context or {}).get("allowed_domains") or ["*"]
        if not host_is_allowed(value, patterns):
            raise ValueError("Invalid domain")
        return value


class JobPayload(JobRequest):
    job_id: str = Field(min_length=1)
    schema_version: Literal["v1"] = SCHEMA_VERSION


class AudioFileMeta(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)

    sample_rate: int = Field(ge=1)
    channels: Channels
    duration: float = Field(ge=0)
    duration_in_samples: int = Field(ge=0)
    time_base: str = Field(pattern=r"^\d+/[1-9]\d*$")
    format_name: FormatName
    codec_name: CodecName
    size: int = Field(ge=1)
    bit_depth: Optional[ProbedBitDepth]


class JobCreateResponse(BaseModel):
    success: bool = True
    job: dict[str, str]


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
