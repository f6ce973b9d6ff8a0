from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any

import orjson

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
logger = logging.getLogger("autoreply")


def redact(text: str | None, max_len: int = 256) -> str:
    if not text:
        return ""
    s = str(text)
    return s[:max_len] + "…" if len(s) > max_len else s


def log_event(event: str, *, level: int = logging.INFO, **fields: Any) -> None:
    payload: dict[str, Any] = {"event": event, "request_id": request_id_ctx.get()}
    payload.update(fields)
    try:
        line = orjson.dumps(payload, option=orjson.OPT_SORT_KEYS, default=str)
    except TypeError:
        line = orjson.dumps({"event": event, "note": "log_serialize_failed"})
    logger.log(level, line.decode("utf-8"))
