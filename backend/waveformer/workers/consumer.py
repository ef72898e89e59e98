"""Run the Huey consumer that executes waveform jobs.

Usage:
    python -m waveformer.workers.consumer
"""

from __future__ import annotations

import logging

from waveformer.core.log import configure_logging
from waveformer.services.config_store import load_config
from waveformer.workers.queue import huey

logger = logging.getLogger(__name__)


def main() -> None:
    configure_logging()
    config = load_config()
    logger.info(
        "Starting consumer: workers=%d allowed_domains=%s",
        config.concurrency,
        ",".join(config.allowed_domains),
    )
    consumer = huey.create_consumer(workers=config.concurrency, worker_type="thread")
    consumer.run()


if __name__ == "__main__":
    main()
