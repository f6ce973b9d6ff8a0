from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SYSTEM_PROMPT = (
    "You are an assistant that drafts concise, polite, and professional email replies. "
    "Keep responses brief and actionable."
)


class Settings(BaseSettings):
    # Prefer repo-root `.env`; keep a local `.env` as a fallback for overrides.
    _REPO_ROOT = Path(__file__).resolve().parents[2]
    model_config = SettingsConfigDict(env_file=(_REPO_ROOT / ".env", ".env"), extra="ignore")

    VERSION: str = "0.1.0"
    APP_ENV: str = "dev"  # dev|test|prod

    # Text generation
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_API_KEY: str = ""
    OPENAI_BASE_URL: str = "https://api.openai.com"
    SYSTEM_PROMPT: str = DEFAULT_SYSTEM_PROMPT
    MAX_TOKENS: int = 700
    MAX_COMPLETION_TOKENS: int | None = None  # falls back to MAX_TOKENS
    TEMPERATURE: float | None = None
    OPENAI_TIMEOUT_MS: int = 20_000
    ENABLE_WEB_SEARCH: bool = False
    ENABLE_PYTHON: bool = False

    # Mail identity and reply policy
    FROM_ADDRESS: str = "ai@example.com"
    FROM_NAME: str = "AI Email Assistant"
    SERVICE_ADDRESS: str = "ai@example.com"
    MAIL_DOMAIN: str | None = None
    ALLOW_DOMAINS: str = ""  # comma-separated, empty = no restriction
    BLOCK_DOMAINS: str = ""
    MAX_RAW_BYTES: int = 1_000_000
    INBOUND_TOKEN: str | None = None

    REQUEST_ID_HEADER: str = "x-request-id"
    ENABLE_PROMETHEUS_METRICS: bool = True
    PROMETHEUS_METRICS_PATH: str = "/metrics"

    @field_validator("MAIL_DOMAIN", "INBOUND_TOKEN", "MAX_COMPLETION_TOKENS", "TEMPERATURE", mode="before")
    @classmethod
    def _empty_to_none(cls, v: object) -> object:
        if v == "":
            return None
        return v

    @field_validator("TEMPERATURE")
    @classmethod
    def _validate_temperature(cls, v: float | None) -> float | None:
        if v is not None and (v < 0 or v > 2):
            raise ValueError("TEMPERATURE must be between 0 and 2")
        return v

    @field_validator("SERVICE_ADDRESS")
    @classmethod
    def _lower_service_address(cls, v: str) -> str:
        return v.strip().lower()

    @model_validator(mode="after")
    def _default_completion_tokens(self) -> Settings:
        if self.MAX_COMPLETION_TOKENS is None:
            self.MAX_COMPLETION_TOKENS = self.MAX_TOKENS
        return self

    @property
    def allow_domains(self) -> list[str]:
        return _parse_csv(self.ALLOW_DOMAINS)

    @property
    def block_domains(self) -> list[str]:
        return _parse_csv(self.BLOCK_DOMAINS)


def _parse_csv(value: str | None) -> list[str]:
    return [s.strip().lower() for s in (value or "").split(",") if s.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
