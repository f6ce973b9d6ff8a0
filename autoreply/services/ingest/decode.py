from __future__ import annotations

import base64
import binascii
import codecs
import re

DECODED_ENCODINGS = frozenset({"base64", "quoted-printable"})

_CHARSET_RE = re.compile(r"charset\s*=\s*([^;]+)", re.IGNORECASE)
_QP_SOFT_BREAK_RE = re.compile(rb"=\r?\n")
_QP_ESCAPE_RE = re.compile(rb"=([A-Fa-f0-9]{2})")
_WHITESPACE_RE = re.compile(r"\s+")


def decode_transfer_encoding(body: str, cte: str | None) -> bytes:
    """Remove one level of Content-Transfer-Encoding.

    Unknown encodings pass through unchanged and malformed base64 falls back
    to the original text; this function never raises on bad input.
    """
    encoding = (cte or "").strip().lower()
    text = body or ""
    if encoding == "base64":
        try:
            return base64.b64decode(_WHITESPACE_RE.sub("", text), validate=True)
        except (binascii.Error, ValueError):
            return text.encode("utf-8", errors="replace")
    if encoding == "quoted-printable":
        return decode_quoted_printable(text)
    return text.encode("utf-8", errors="replace")


def decode_quoted_printable(text: str) -> bytes:
    data = _QP_SOFT_BREAK_RE.sub(b"", text.encode("utf-8", errors="replace"))
    return _QP_ESCAPE_RE.sub(lambda m: bytes([int(m.group(1), 16)]), data)


def charset_from(content_type: str | None) -> str | None:
    if not content_type:
        return None
    m = _CHARSET_RE.search(content_type)
    if not m:
        return None
    charset = m.group(1).strip().strip("\"'").strip()
    return charset or None


def decode_charset(data: bytes, charset: str | None) -> str:
    encoding = (charset or "utf-8").strip() or "utf-8"
    try:
        codecs.lookup(encoding)
    except LookupError:
        encoding = "utf-8"
    try:
        return data.decode(encoding, errors="replace")
    except (LookupError, UnicodeError, TypeError):
        return data.decode("utf-8", errors="replace")


def decode_part(body: str, cte: str | None, content_type: str | None) -> str:
    if (cte or "").strip().lower() not in DECODED_ENCODINGS:
        text = body or ""
        # 7-bit charsets (ISO-2022-JP, UTF-7) arrive as ASCII and still need decoding.
        # Non-ASCII text was already decoded as UTF-8 and is returned as is.
        if text.isascii():
            return decode_charset(text.encode("ascii"), charset_from(content_type))
        return text
    return decode_charset(decode_transfer_encoding(body, cte), charset_from(content_type))
