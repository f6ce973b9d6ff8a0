from __future__ import annotations

from collections.abc import Generator

import httpx

from autoreply.core.config import get_settings


def get_http_client() -> Generator[httpx.Client, None, None]:
    # Centralize HTTP client configuration (timeouts, etc) so we can override in tests.
    timeout = max(1.0, get_settings().OPENAI_TIMEOUT_MS / 1000.0)
    with httpx.Client(timeout=timeout) as client:
        yield client
