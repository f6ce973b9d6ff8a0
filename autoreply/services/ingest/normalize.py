from __future__ import annotations

import re

_REPLY_PREFIX_RE = re.compile(r"^\s*re\s*:", re.IGNORECASE)


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def ensure_re(subject: str | None) -> str:
    s = subject or ""
    if _REPLY_PREFIX_RE.match(s):
        return s
    return f"Re: {s}" if s else "Re:"
