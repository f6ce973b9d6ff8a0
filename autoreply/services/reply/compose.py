from __future__ import annotations

import html
import secrets
import time
from collections.abc import Iterator
from dataclasses import dataclass
from datetime import UTC, datetime
from email.utils import format_datetime

import bleach

from autoreply.core.security import new_random_token
from autoreply.services.ingest.normalize import ensure_re, normalize_newlines
from autoreply.services.ingest.types import ParsedEmail
from autoreply.services.reply.references import build_references

CRLF = "\r\n"
DEFAULT_FROM_NAME = "AI Email Assistant"
HTML_QUOTE_LIMIT = 4000

_BLOCKQUOTE_STYLE = "border-left:3px solid #ccc;padding-left:8px;color:#555"


@dataclass(frozen=True)
class ComposedReply:
    """Outgoing reply ready for delivery.

    ``stream`` is a one-shot generator over the encoded message: hand it to
    the delivery mechanism exactly once. Iterating it again yields nothing.
    """

    subject: str
    size: int
    stream: Iterator[bytes]


def domain_of(address: str | None) -> str:
    _local, sep, domain = (address or "").rpartition("@")
    domain = domain.strip().strip(">").strip()
    return domain if sep and domain else "local"


def make_message_id(domain: str) -> str:
    token = f"{int(time.time() * 1000)}.{secrets.token_hex(5)}"
    return f"<{token}@{domain}>"


def quote_original(original: ParsedEmail) -> str:
    date = original.date or format_datetime(datetime.now(UTC), usegmt=True)
    content = original.content.strip()
    quoted = "\n".join(f"> {line}" for line in normalize_newlines(content).split("\n"))
    return f"On {date}, {original.from_} wrote:\nSubject: {original.subject}\n\n{quoted}"


def _html_lines(text: str) -> str:
    return html.escape(normalize_newlines(text)).replace("\n", "<br>")


def render_html(reply_text: str, original: ParsedEmail) -> str:
    reply_html = bleach.linkify(_html_lines(reply_text))
    quoted_html = _html_lines(original.content[:HTML_QUOTE_LIMIT])
    return (
        "<!doctype html><html><body>"
        f"<div>{reply_html}</div><hr>"
        f'<blockquote style="{_BLOCKQUOTE_STYLE}">{quoted_html}</blockquote>'
        "</body></html>"
    )


def _one_shot(data: bytes) -> Iterator[bytes]:
    yield data


def compose_reply(
    *,
    from_address: str,
    to: str,
    original: ParsedEmail,
    reply_text: str,
    from_name: str | None = DEFAULT_FROM_NAME,
    domain: str | None = None,
) -> ComposedReply:
    subject = ensure_re(original.subject)
    message_id = make_message_id(domain or domain_of(from_address))
    refs = build_references(original)

    text_body = normalize_newlines(f"{reply_text or ''}\n\n{quote_original(original)}")
    html_body = render_html(reply_text or "", original)
    boundary = f"b_{new_random_token(nbytes=12)}"
    from_header = f"{from_name} <{from_address}>" if from_name else from_address

    headers = [
        f"Message-ID: {message_id}",
        f"In-Reply-To: {refs.in_reply_to}" if refs.in_reply_to else None,
        f"References: {refs.references}" if refs.references else None,
        f"Subject: {subject}",
        f"From: {from_header}",
        f"To: {to}",
        "Auto-Submitted: auto-replied",
        "MIME-Version: 1.0",
        f'Content-Type: multipart/alternative; boundary="{boundary}"',
    ]
    body = (
        f"--{boundary}{CRLF}"
        f"Content-Type: text/plain; charset=utf-8{CRLF}"
        f"Content-Transfer-Encoding: 8bit{CRLF}{CRLF}"
        f"{text_body.replace(chr(10), CRLF)}{CRLF}"
        f"--{boundary}{CRLF}"
        f"Content-Type: text/html; charset=utf-8{CRLF}"
        f"Content-Transfer-Encoding: 8bit{CRLF}{CRLF}"
        f"{html_body}{CRLF}"
        f"--{boundary}--{CRLF}"
    )
    raw = CRLF.join(h for h in headers if h) + CRLF + CRLF + body
    data = raw.encode("utf-8")
    return ComposedReply(subject=subject, size=len(data), stream=_one_shot(data))
