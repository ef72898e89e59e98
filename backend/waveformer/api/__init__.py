"""FastAPI routers."""

from waveformer.api.routes import router

__all__ = ["router"]
