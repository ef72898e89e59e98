"""Process-wide logging setup."""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for the API process or the queue consumer.

    Level defaults to WAVEFORMER_LOG_LEVEL, then INFO.
    """
    resolved = (level or os.environ.get("WAVEFORMER_LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(level=getattr(logging, resolved, logging.INFO), format=LOG_FORMAT)
