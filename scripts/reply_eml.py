from __future__ import annotations

import os
import sys
from pathlib import Path

import httpx

from autoreply.core.config import get_settings
from autoreply.services.ingest.parser import parse_email
from autoreply.services.pipeline import handle_inbound
from autoreply.services.reply.compose import compose_reply
from autoreply.services.reply.guards import deny_reason, resolve_reply_to


def _offline_reply(raw: bytes, *, envelope_from: str, reply_text: str) -> bytes | None:
    settings = get_settings()
    parsed = parse_email(raw)
    reason = deny_reason(parsed.headers, settings)
    if reason is not None:
        print(f"drop: {reason}", file=sys.stderr)
        return None
    reply = compose_reply(
        from_address=settings.FROM_ADDRESS,
        to=resolve_reply_to(parsed, envelope_from),
        original=parsed,
        reply_text=reply_text,
        from_name=settings.FROM_NAME,
        domain=settings.MAIL_DOMAIN,
    )
    return b"".join(reply.stream)


def _generated_reply(raw: bytes, *, envelope_from: str) -> bytes | None:
    settings = get_settings()
    with httpx.Client() as client:
        outcome = handle_inbound(
            raw,
            envelope_from=envelope_from,
            envelope_to=settings.SERVICE_ADDRESS,
            settings=settings,
            client=client,
        )
    if outcome.reply is None:
        print(f"{outcome.action}: {outcome.reason}", file=sys.stderr)
        return None
    return b"".join(outcome.reply.stream)


def main() -> None:
    if len(sys.argv) != 2:
        raise RuntimeError("usage: reply_eml.py <message.eml>")

    raw = Path(sys.argv[1]).read_bytes()
    envelope_from = os.environ.get("ENVELOPE_FROM", "sender@example.com")
    # A fixed REPLY_TEXT skips the text-generation call entirely.
    reply_text = os.environ.get("REPLY_TEXT")

    if reply_text is not None:
        data = _offline_reply(raw, envelope_from=envelope_from, reply_text=reply_text)
    else:
        data = _generated_reply(raw, envelope_from=envelope_from)
    if data is not None:
        sys.stdout.buffer.write(data)


if __name__ == "__main__":
    try:
        main()
    except Exception as exc:  # noqa: BLE001
        print(f"reply failed: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
