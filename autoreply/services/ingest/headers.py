from __future__ import annotations

import re

from autoreply.services.ingest.types import Headers

_LINE_SPLIT_RE = re.compile(r"\r\n|\r|\n")


def parse_headers(header_block: str) -> Headers:
    headers = Headers()
    current_name: str | None = None
    current_value = ""

    for line in _LINE_SPLIT_RE.split(header_block or ""):
        if line[:1].isspace():
            # Folded continuation; dropped when the previous line was not a header.
            if current_name is not None and line.strip():
                current_value = f"{current_value} {line.strip()}".strip()
            continue

        if current_name is not None:
            headers[current_name] = current_value.strip()
        current_name = None
        current_value = ""

        name, sep, value = line.partition(":")
        if not sep or not name or any(c.isspace() for c in name):
            continue
        current_name = name
        current_value = value.strip()

    if current_name is not None:
        headers[current_name] = current_value.strip()
    return headers
