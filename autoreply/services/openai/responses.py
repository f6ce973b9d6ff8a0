from __future__ import annotations

from dataclasses import dataclass

import httpx

from autoreply.core.config import Settings

CONTENT_CHAR_BUDGET = 3000
PROMPT_CHAR_LIMIT = 12000
ERROR_BODY_LIMIT = 400

TOOL_POLICY = (
    "Tool policy:\n"
    "- You may use web search to verify facts or fetch current info, but never include "
    "sensitive email content or personal data in search queries.\n"
    "- You may use Python for calculations, parsing, or drafting help when useful.\n"
)


@dataclass(frozen=True)
class GenerationConfig:
    model: str
    api_key: str
    system_prompt: str
    max_output_tokens: int
    timeout_ms: int
    temperature: float | None = None
    enable_web_search: bool = False
    enable_python: bool = False
    base_url: str = "https://api.openai.com"

    @classmethod
    def from_settings(cls, settings: Settings) -> GenerationConfig:
        return cls(
            model=settings.OPENAI_MODEL,
            api_key=settings.OPENAI_API_KEY,
            system_prompt=settings.SYSTEM_PROMPT,
            max_output_tokens=settings.MAX_COMPLETION_TOKENS or settings.MAX_TOKENS,
            timeout_ms=settings.OPENAI_TIMEOUT_MS,
            temperature=settings.TEMPERATURE,
            enable_web_search=settings.ENABLE_WEB_SEARCH,
            enable_python=settings.ENABLE_PYTHON,
            base_url=settings.OPENAI_BASE_URL,
        )


class TextGenerationError(RuntimeError):
    def __init__(self, *, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code


def trim_for_tokens(text: str, approx_chars: int = CONTENT_CHAR_BUDGET) -> str:
    # Keep the tail: the newest content sits at the end of a thread.
    if not text:
        return ""
    return text[-approx_chars:] if len(text) > approx_chars else text


def build_user_prompt(subject: str, content: str) -> str:
    subj = f"Subject: {subject}\n\n" if subject else ""
    return f"{subj}{content}"[:PROMPT_CHAR_LIMIT]


def build_tools(config: GenerationConfig) -> list[dict]:
    tools: list[dict] = []
    if config.enable_web_search:
        tools.append({"type": "web_search_preview"})
    if config.enable_python:
        tools.append({"type": "code_interpreter", "container": {"type": "auto"}})
    return tools


def build_request_body(config: GenerationConfig, user_text: str) -> dict:
    body: dict[str, object] = {
        "model": config.model,
        "input": [
            {
                "role": "system",
                "content": [
                    {"type": "input_text", "text": f"{config.system_prompt}\n\n{TOOL_POLICY}"}
                ],
            },
            {"role": "user", "content": [{"type": "input_text", "text": user_text}]},
        ],
        "max_output_tokens": config.max_output_tokens,
    }
    tools = build_tools(config)
    if tools:
        body["tools"] = tools
    # Only sent when explicitly configured; some models reject it.
    if config.temperature is not None:
        body["temperature"] = config.temperature
    return body


def extract_output_text(payload: object) -> str:
    if not isinstance(payload, dict):
        return ""
    output_text = payload.get("output_text")
    if isinstance(output_text, str):
        return output_text

    chunks: list[str] = []
    for item in payload.get("output") or []:
        if not isinstance(item, dict):
            continue
        for content in item.get("content") or []:
            if (
                isinstance(content, dict)
                and content.get("type") == "output_text"
                and isinstance(content.get("text"), str)
            ):
                chunks.append(content["text"])
    return "\n".join(chunks)


def generate_reply(
    client: httpx.Client,
    *,
    config: GenerationConfig,
    subject: str,
    content: str,
) -> str:
    if not config.api_key:
        raise TextGenerationError(status_code=500, message="Missing OPENAI_API_KEY")

    user_text = build_user_prompt(subject, trim_for_tokens(content or ""))
    try:
        res = client.post(
            f"{config.base_url.rstrip('/')}/v1/responses",
            json=build_request_body(config, user_text),
            headers={"Authorization": f"Bearer {config.api_key}"},
            timeout=config.timeout_ms / 1000.0,
        )
    except httpx.TimeoutException as exc:
        raise TextGenerationError(status_code=504, message="Text generation timed out") from exc
    except httpx.HTTPError as exc:
        raise TextGenerationError(status_code=502, message=f"Text generation failed: {exc}") from exc

    _raise_for_generation_error(res)

    try:
        payload = res.json()
    except ValueError as exc:
        raise TextGenerationError(status_code=502, message="Text generation returned invalid JSON") from exc

    text = extract_output_text(payload).strip()
    if not text:
        raise TextGenerationError(status_code=502, message="AI returned empty response")
    return text


def _raise_for_generation_error(res: httpx.Response) -> None:
    if res.status_code < 400:
        return

    fallback = res.text[:ERROR_BODY_LIMIT]
    try:
        payload = res.json()
        message = (payload.get("error") or {}).get("message") or fallback
    except Exception:  # noqa: BLE001
        message = fallback

    raise TextGenerationError(
        status_code=res.status_code,
        message=f"OpenAI API error {res.status_code}: {message[:ERROR_BODY_LIMIT]}",
    )
