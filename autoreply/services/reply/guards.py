from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from email.utils import getaddresses
from typing import Protocol

from autoreply.services.ingest.types import Headers, ParsedEmail

_BULK_PRECEDENCE = frozenset({"bulk", "junk", "list"})
_SUPPRESS_RE = re.compile(r"all|dr|rn|autoreply")
_DOMAIN_RE = re.compile(r"@([^>\s]+)")
_BRACKETED_ADDR_RE = re.compile(r"<([^>]+)>")
_BARE_ADDR_RE = re.compile(r"[^\s<>\"',;]+@[^\s<>\"',;]+")


class DomainPolicy(Protocol):
    allow_domains: Sequence[str]
    block_domains: Sequence[str]


def sender_domain(value: str | None) -> str:
    m = _DOMAIN_RE.search((value or "").lower())
    return m.group(1) if m else ""


def deny_reason(headers: Mapping[str, str], config: DomainPolicy) -> str | None:
    """Return why an automatic reply must not be sent, or ``None`` to allow.

    Rules are checked in a fixed order and the first match wins; automation
    markers come before the domain lists so a loop is stopped regardless of
    who the sender is.
    """
    h = Headers(headers)

    auto_submitted = (h.get("auto-submitted") or "").strip().lower()
    if auto_submitted and auto_submitted != "no":
        return "auto_submitted"

    if (h.get("precedence") or "").strip().lower() in _BULK_PRECEDENCE:
        return "precedence"

    if "list-id" in h:
        return "list_id"

    if _SUPPRESS_RE.search((h.get("x-auto-response-suppress") or "").lower()):
        return "auto_response_suppressed"

    domain = sender_domain(h.get("reply-to") or h.get("from"))
    block = [d.lower() for d in config.block_domains or []]
    allow = [d.lower() for d in config.allow_domains or []]
    if block and domain in block:
        return "blocked_domain"
    if allow and domain not in allow:
        return "domain_not_allowed"
    return None


def should_reply(headers: Mapping[str, str], config: DomainPolicy) -> bool:
    return deny_reason(headers, config) is None


def extract_email(value: str | None) -> str:
    if not value:
        return ""
    m = _BRACKETED_ADDR_RE.search(value)
    if m:
        return m.group(1).strip()
    m = _BARE_ADDR_RE.search(value)
    return m.group(0) if m else value.strip()


def resolve_reply_to(parsed: ParsedEmail, fallback: str) -> str:
    reply_to = parsed.headers.get("reply-to")
    if reply_to:
        return extract_email(reply_to) or fallback
    return extract_email(parsed.from_) or fallback


def accepts_recipient(envelope_to: str | None, service_address: str | None) -> bool:
    expected = (service_address or "").strip().lower()
    if not expected:
        return True
    addresses = getaddresses([envelope_to or ""])
    recipients = {addr.strip().lower() for _name, addr in addresses if addr}
    return expected in recipients
