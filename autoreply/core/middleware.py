from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

from fastapi import Request
from starlette.responses import Response

from autoreply.core.config import Settings
from autoreply.core.logs import log_event, request_id_ctx
from autoreply.core.metrics import observe_http_request
from autoreply.core.security import new_random_token

CallNext = Callable[[Request], Awaitable[Response]]


def build_request_id(request: Request, *, header_name: str) -> str:
    incoming = (request.headers.get(header_name) or "").strip()
    if incoming:
        return incoming[:128]
    return new_random_token(nbytes=18)


def request_context_middleware(
    settings: Settings,
) -> Callable[[Request, CallNext], Awaitable[Response]]:
    """Tag each request with an id, then log and count it once it completes."""

    async def middleware(request: Request, call_next: CallNext) -> Response:
        request_id = build_request_id(request, header_name=settings.REQUEST_ID_HEADER)
        token = request_id_ctx.set(request_id)
        started = time.monotonic()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[settings.REQUEST_ID_HEADER] = request_id
            return response
        finally:
            duration_ms = int((time.monotonic() - started) * 1000)
            log_event(
                "http.request.completed",
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=duration_ms,
            )
            if settings.ENABLE_PROMETHEUS_METRICS:
                observe_http_request(
                    method=request.method,
                    path=request.url.path,
                    status_code=status_code,
                    duration_ms=duration_ms,
                )
            request_id_ctx.reset(token)

    return middleware
