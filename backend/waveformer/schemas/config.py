"""Pydantic schemas for persisted app configuration."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class AppConfig(BaseModel):
    # Host patterns for input_url, output_url and notify_url; "*" allows any host.
    allowed_domains: list[str] = Field(default_factory=lambda: ["*"])
    concurrency: int = Field(default=1, ge=1)
    transfer_timeout_s: float = 300.0
    notify_timeout_s: float = 30.0
    probe_timeout_s: float = 60.0
    generate_timeout_s: float = 600.0
    ffprobe_bin: str = "ffprobe"
    audiowaveform_bin: str = "audiowaveform"
    scratch_dir: Optional[str] = None

    @field_validator("allowed_domains")
    @classmethod
    def _strip_patterns(cls, value: list[str]) -> list[str]:
        patterns = [item.strip() for item in value if item and item.strip()]
        return patterns or ["*"]
