from __future__ import annotations

from collections.abc import Callable, Generator

import httpx
import pytest

from autoreply.core.config import get_settings

_ENV_KEYS = (
    "OPENAI_API_KEY",
    "OPENAI_BASE_URL",
    "OPENAI_MODEL",
    "MAX_TOKENS",
    "SYSTEM_PROMPT",
    "TEMPERATURE",
    "MAX_COMPLETION_TOKENS",
    "ENABLE_WEB_SEARCH",
    "ENABLE_PYTHON",
    "FROM_ADDRESS",
    "FROM_NAME",
    "SERVICE_ADDRESS",
    "MAIL_DOMAIN",
    "ALLOW_DOMAINS",
    "BLOCK_DOMAINS",
    "MAX_RAW_BYTES",
    "INBOUND_TOKEN",
    "ENABLE_PROMETHEUS_METRICS",
)


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    # Tests never pick up a developer's shell or `.env` configuration.
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("OPENAI_BASE_URL", "https://llm.test")
    monkeypatch.setenv("FROM_ADDRESS", "ai@example.com")
    monkeypatch.setenv("SERVICE_ADDRESS", "ai@example.com")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _responses_handler(
    text: str = "Thanks for reaching out.",
    *,
    status_code: int = 200,
    seen: list[httpx.Request] | None = None,
) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        if str(request.url) != "https://llm.test/v1/responses":
            return httpx.Response(404, json={"error": {"message": "not_found"}})
        if status_code >= 400:
            return httpx.Response(status_code, json={"error": {"message": "upstream exploded"}})
        return httpx.Response(200, json={"output_text": text})

    return handler


@pytest.fixture()
def make_llm_client() -> Generator[Callable[..., httpx.Client], None, None]:
    clients: list[httpx.Client] = []

    def factory(
        text: str = "Thanks for reaching out.",
        *,
        status_code: int = 200,
        seen: list[httpx.Request] | None = None,
    ) -> httpx.Client:
        handler = _responses_handler(text, status_code=status_code, seen=seen)
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.close()
