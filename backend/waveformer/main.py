"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from waveformer.api import router
from waveformer.core.log import configure_logging
from waveformer.core.settings import APP_VERSION, PATHS
from waveformer.schemas.job import ErrorResponse
from waveformer.services.config_store import load_config, save_config
from waveformer.services.validation import JobValidationError

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(_: FastAPI):
        configure_logging()
        PATHS.runtime_root.mkdir(parents=True, exist_ok=True)

        # Ensure config file exists with defaults.
        if not PATHS.config_path.exists():
            save_config(load_config(environ={}))

        config = load_config()
        logger.info("Accepting job URLs for hosts: %s", ", ".join(config.allowed_domains))

        yield

    app = FastAPI(title="Waveformer", version=APP_VERSION, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(JobValidationError)
    async def _validation_error(_: Request, exc: JobValidationError) -> JSONResponse:
        logger.info("Rejected job request: %s", exc)
        return JSONResponse(status_code=400, content=ErrorResponse(message=str(exc)).model_dump())

    app.include_router(router)

    return app


app = create_app()
