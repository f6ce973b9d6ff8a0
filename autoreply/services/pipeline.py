from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Literal

import httpx

from autoreply.core.config import Settings
from autoreply.core.logs import log_event, redact
from autoreply.core.metrics import observe_generation, observe_inbound
from autoreply.services.ingest.parser import parse_email
from autoreply.services.ingest.types import ParsedEmail
from autoreply.services.openai.responses import (
    GenerationConfig,
    TextGenerationError,
    generate_reply,
)
from autoreply.services.reply.compose import ComposedReply, compose_reply
from autoreply.services.reply.guards import accepts_recipient, deny_reason, resolve_reply_to

APOLOGY_TEXT = (
    "I apologize, but I encountered an error while processing your email. "
    "Please try again later."
)

Action = Literal["reply", "drop", "reject"]


@dataclass(frozen=True)
class InboundOutcome:
    action: Action
    reason: str | None = None
    reply: ComposedReply | None = None
    reply_to: str | None = None
    from_address: str | None = None


def handle_inbound(
    raw: bytes,
    *,
    envelope_from: str,
    envelope_to: str | None,
    settings: Settings,
    client: httpx.Client,
) -> InboundOutcome:
    """Turn one inbound message into at most one reply.

    Policy denials and oversize input are silent drops; generation failures
    are answered with a generic apology instead of propagating.
    """
    if not accepts_recipient(envelope_to, settings.SERVICE_ADDRESS):
        return _finish(InboundOutcome(action="reject", reason="recipient_not_accepted"))

    if len(raw) > settings.MAX_RAW_BYTES:
        log_event("inbound.oversize", level=logging.WARNING, size=len(raw))
        return _finish(InboundOutcome(action="drop", reason="oversize"))

    parsed = parse_email(raw)
    log_event(
        "inbound.parsed",
        size=len(raw),
        subject=redact(parsed.subject, 120),
        from_=redact(parsed.from_, 120),
        has_text=parsed.text is not None,
        has_html=parsed.html_text is not None,
    )

    reason = deny_reason(parsed.headers, settings)
    if reason is not None:
        return _finish(InboundOutcome(action="drop", reason=reason))

    reply_text, reason = _generate(parsed, settings=settings, client=client)
    reply_to = resolve_reply_to(parsed, envelope_from)
    reply = compose_reply(
        from_address=settings.FROM_ADDRESS,
        to=reply_to,
        original=parsed,
        reply_text=reply_text,
        from_name=settings.FROM_NAME,
        domain=settings.MAIL_DOMAIN,
    )
    log_event("reply.composed", subject=redact(reply.subject, 120), size=reply.size, to=reply_to)
    return _finish(
        InboundOutcome(
            action="reply",
            reason=reason,
            reply=reply,
            reply_to=reply_to,
            from_address=settings.FROM_ADDRESS,
        )
    )


def _generate(
    parsed: ParsedEmail, *, settings: Settings, client: httpx.Client
) -> tuple[str, str | None]:
    start = time.monotonic()
    try:
        text = generate_reply(
            client,
            config=GenerationConfig.from_settings(settings),
            subject=parsed.subject,
            content=parsed.content,
        )
    except TextGenerationError as exc:
        duration_ms = int((time.monotonic() - start) * 1000)
        observe_generation(outcome="error", duration_ms=duration_ms)
        log_event(
            "generation.failed",
            level=logging.ERROR,
            status_code=exc.status_code,
            error=redact(str(exc)),
            duration_ms=duration_ms,
        )
        return APOLOGY_TEXT, "generation_failed"

    duration_ms = int((time.monotonic() - start) * 1000)
    observe_generation(outcome="ok", duration_ms=duration_ms)
    log_event("generation.completed", chars=len(text), duration_ms=duration_ms)
    return text, None


def _finish(outcome: InboundOutcome) -> InboundOutcome:
    observe_inbound(action=outcome.action, reason=outcome.reason)
    if outcome.action != "reply":
        log_event("inbound.skipped", action=outcome.action, reason=outcome.reason)
    return outcome
