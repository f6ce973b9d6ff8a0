from __future__ import annotations

import re

from autoreply.services.ingest.normalize import normalize_newlines

# Offsets at or below this are treated as false matches at the top of the message.
QUOTE_MIN_OFFSET = 20

_SCRIPT_STYLE_RE = re.compile(r"<(script|style)\b[\s\S]*?</\1\s*>", re.IGNORECASE)
_BR_RE = re.compile(r"<br\s*/?>", re.IGNORECASE)
_PARAGRAPH_END_RE = re.compile(r"</p\s*>", re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]+>")
_NBSP_RE = re.compile(r"&nbsp;", re.IGNORECASE)
_SPACE_RUN_RE = re.compile(r"[ \t]{2,}")
_TRAILING_SPACE_RE = re.compile(r"[ \t]+\n")
_LEADING_SPACE_RE = re.compile(r"\n[ \t]+")
_EXTRA_NEWLINES_RE = re.compile(r"\n{3,}")

QUOTE_SEPARATORS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^\s*-{2,}\s*Original Message\s*-{2,}\s*$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^On .*wrote:\s*$", re.IGNORECASE | re.MULTILINE),
    re.compile(r"^From:\s.*$", re.IGNORECASE | re.MULTILINE),
)


def html_to_text(html: str | None) -> str:
    """Approximate plain-text rendering of an HTML body.

    Lossy on purpose: no entity decoding besides ``&nbsp;`` and no layout.
    """
    if not html:
        return ""
    txt = _SCRIPT_STYLE_RE.sub("", html)
    txt = _BR_RE.sub("\n", txt)
    txt = _PARAGRAPH_END_RE.sub("\n\n", txt)
    # Tags become spaces so adjacent blocks and cells stay separate words.
    txt = _TAG_RE.sub(" ", txt)
    txt = _NBSP_RE.sub(" ", txt)
    txt = normalize_newlines(txt)
    txt = _SPACE_RUN_RE.sub(" ", txt)
    txt = _TRAILING_SPACE_RE.sub("\n", txt)
    txt = _LEADING_SPACE_RE.sub("\n", txt)
    txt = _EXTRA_NEWLINES_RE.sub("\n\n", txt)
    return txt.strip()


def find_quote_start(text: str) -> int | None:
    for pattern in QUOTE_SEPARATORS:
        m = pattern.search(text)
        if m and m.start() > QUOTE_MIN_OFFSET:
            return m.start()
    return None


def strip_quoted_history(text: str | None) -> str:
    if not text:
        return ""
    idx = find_quote_start(text)
    if idx is None:
        return text
    return text[:idx].strip()
