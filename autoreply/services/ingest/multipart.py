from __future__ import annotations

import re

from autoreply.services.ingest.headers import parse_headers
from autoreply.services.ingest.types import MimePart

_BOUNDARY_RE = re.compile(r"""boundary\s*=\s*(?:"([^"]+)"|([^\s";]+))""", re.IGNORECASE)
_LINE_SPLIT_RE = re.compile(r"\r?\n")


def boundary_from(content_type: str | None) -> str | None:
    if not content_type:
        return None
    m = _BOUNDARY_RE.search(content_type)
    if not m:
        return None
    return (m.group(1) or m.group(2) or "").strip() or None


def split_multipart(body: str, boundary: str) -> list[MimePart]:
    if not body or not boundary:
        return []

    delimiter = f"--{boundary}"
    terminator = f"{delimiter}--"
    lines = _LINE_SPLIT_RE.split(body)
    parts: list[MimePart] = []

    i = 0
    while i < len(lines):
        marker = lines[i].rstrip()
        if marker == terminator:
            break
        if marker != delimiter:
            i += 1
            continue

        i += 1
        header_lines: list[str] = []
        while i < len(lines) and lines[i] != "":
            if lines[i].rstrip() in (delimiter, terminator):
                break
            header_lines.append(lines[i])
            i += 1
        if i < len(lines) and lines[i] == "":
            i += 1

        body_lines: list[str] = []
        while i < len(lines) and lines[i].rstrip() not in (delimiter, terminator):
            body_lines.append(lines[i])
            i += 1

        parts.append(
            MimePart(
                headers=parse_headers("\r\n".join(header_lines)),
                body="\r\n".join(body_lines),
            )
        )
    return parts
