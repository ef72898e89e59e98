"""Read/write persisted local configuration."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from waveformer.core.settings import PATHS
from waveformer.schemas.config import AppConfig

logger = logging.getLogger(__name__)


def _env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}

    domains = environ.get("VALID_URL_DOMAINS", "").strip()
    if domains:
        overrides["allowed_domains"] = domains.split(",")

    concurrency = environ.get("WAVEFORMER_CONCURRENCY", "").strip()
    if concurrency:
        try:
            overrides["concurrency"] = int(concurrency)
        except ValueError:
            logger.warning("Ignoring non-integer WAVEFORMER_CONCURRENCY=%r", concurrency)

    scratch_dir = environ.get("WAVEFORMER_SCRATCH_DIR", "").strip()
    if scratch_dir:
        overrides["scratch_dir"] = scratch_dir

    return overrides


def load_config(
    path: Path = PATHS.config_path,
    environ: Optional[Mapping[str, str]] = None,
) -> AppConfig:
    data: dict[str, Any] = {}
    if path.exists():
        data = json.loads(path.read_text(encoding="utf-8"))
    data.update(_env_overrides(os.environ if environ is None else environ))
    return AppConfig.model_validate(data)


def save_config(config: AppConfig, path: Path = PATHS.config_path) -> AppConfig:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(config.model_dump(), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    return config
