from __future__ import annotations

import logging

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from autoreply.core.config import get_settings
from autoreply.core.logs import log_event
from autoreply.core.middleware import request_context_middleware
from autoreply.routers.health import router as health_router
from autoreply.routers.inbound import router as inbound_router


def create_app() -> FastAPI:
    app = FastAPI(title="Email Auto-Reply Agent")

    settings = get_settings()
    if not settings.OPENAI_API_KEY:
        log_event("config.missing_api_key", level=logging.WARNING)

    app.middleware("http")(request_context_middleware(settings))

    if settings.ENABLE_PROMETHEUS_METRICS:

        @app.get(settings.PROMETHEUS_METRICS_PATH, include_in_schema=False)
        def metrics() -> Response:
            return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(health_router)
    app.include_router(inbound_router)
    return app


app = create_app()
