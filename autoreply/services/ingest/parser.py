from __future__ import annotations

from datetime import UTC, datetime
from email.utils import format_datetime

from autoreply.services.ingest.decode import decode_part
from autoreply.services.ingest.extract import html_to_text, strip_quoted_history
from autoreply.services.ingest.headers import parse_headers
from autoreply.services.ingest.multipart import boundary_from, split_multipart
from autoreply.services.ingest.normalize import normalize_newlines
from autoreply.services.ingest.types import MimePart, ParsedEmail

MAX_MULTIPART_DEPTH = 5


def _split_head_body(raw: str) -> tuple[str, str]:
    idx = raw.find("\r\n\r\n")
    sep_len = 4
    if idx < 0:
        idx = raw.find("\n\n")
        sep_len = 2
    if idx < 0:
        return raw, ""
    return raw[:idx], raw[idx + sep_len :]


def _is_type(content_type: str, prefix: str) -> bool:
    return content_type.strip().lower().startswith(prefix)


def _walk_bodies(
    parts: list[MimePart], *, depth: int = 0
) -> tuple[str | None, str | None]:
    text: str | None = None
    html: str | None = None

    for part in parts:
        content_type = part.headers.get("content-type") or "text/plain"
        cte = part.headers.get("content-transfer-encoding")

        if _is_type(content_type, "multipart/"):
            boundary = boundary_from(content_type)
            if not boundary or depth + 1 >= MAX_MULTIPART_DEPTH:
                continue
            nested_text, nested_html = _walk_bodies(
                split_multipart(part.body, boundary), depth=depth + 1
            )
            if text is None:
                text = nested_text
            if html is None:
                html = nested_html
            continue

        if _is_type(content_type, "text/plain") and text is None:
            text = decode_part(part.body, cte, content_type)
        elif _is_type(content_type, "text/html") and html is None:
            html = decode_part(part.body, cte, content_type)

    return text, html


def _finish_text(text: str | None) -> str | None:
    if text is None:
        return None
    cleaned = strip_quoted_history(normalize_newlines(text))
    return cleaned if cleaned.strip() else None


def _finish_html(html: str | None) -> str | None:
    if html is None:
        return None
    return html_to_text(html) or None


def parse_email(raw: bytes) -> ParsedEmail:
    decoded = (raw or b"").decode("utf-8", errors="replace")
    header_block, body = _split_head_body(decoded)
    headers = parse_headers(header_block)

    content_type = headers.get("content-type") or "text/plain"
    cte = headers.get("content-transfer-encoding")

    text: str | None = None
    html: str | None = None
    if _is_type(content_type, "multipart/"):
        boundary = boundary_from(content_type)
        if boundary:
            text, html = _walk_bodies(split_multipart(body, boundary))
        else:
            text = decode_part(body, cte, content_type)
    elif _is_type(content_type, "text/html"):
        html = decode_part(body, cte, content_type)
    else:
        text = decode_part(body, cte, content_type)

    return ParsedEmail(
        headers=headers,
        subject=headers.get("subject") or "",
        from_=headers.get("reply-to") or headers.get("from") or "",
        to=headers.get("to") or "",
        date=headers.get("date") or format_datetime(datetime.now(UTC), usegmt=True),
        message_id=headers.get("message-id") or "",
        references=headers.get("references") or "",
        in_reply_to=headers.get("in-reply-to") or "",
        text=_finish_text(text),
        html_text=_finish_html(html),
    )
