from __future__ import annotations

import time
from functools import lru_cache

from fastapi import FastAPI, Request

from ttskit import container
from ttskit.api import router as api_router
from ttskit.config import settings
from ttskit.errors import ConfigurationError
from ttskit.logging_utils import get_logger


logger = get_logger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(title="ttskit", version="0.1.0")

    @app.middleware("http")
    async def log_http_requests(request: Request, call_next):
        """Centralized logging for all HTTP requests."""
        start = time.monotonic()
        response = None
        try:
            response = await call_next(request)
            return response
        finally:
            duration = time.monotonic() - start
            client_host = request.client.host if request.client else "unknown"
            status_code = response.status_code if response is not None else 500
            logger.info(
                "HTTP %s %s from %s -> %d in %.3fs",
                request.method,
                request.url.path,
                client_host,
                status_code,
                duration,
            )

    app.include_router(api_router)

    @app.on_event("startup")
    async def on_startup() -> None:
        # Build the backend eagerly so configuration problems show up in the
        # startup log; requests keep reporting them as 400s.
        try:
            service = container.get_speech_service()
        except ConfigurationError as exc:
            logger.error(
                "Speech backend '%s' is misconfigured: %s", settings.tts_backend, exc
            )
            return
        logger.info("Speech backend ready (%s)", type(service).__name__)

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        try:
            container.get_speech_service().stop()
        except ConfigurationError:
            return
        except Exception:
            logger.exception("Error while shutting down speech backend")

    return app


@lru_cache(maxsize=1)
def get_app() -> FastAPI:
    return create_app()


app = get_app()
