from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol

MAX_REFERENCES = 50
MAX_REFERENCES_CHARS = 900

_MESSAGE_ID_RE = re.compile(r"<[^<>\s]+>")


class ThreadSource(Protocol):
    message_id: str
    references: str
    in_reply_to: str


@dataclass(frozen=True)
class ThreadingInfo:
    in_reply_to: str
    references: str


def extract_message_ids(value: str | None) -> list[str]:
    return _MESSAGE_ID_RE.findall(value or "")


def build_references(original: ThreadSource) -> ThreadingInfo:
    own_ids = extract_message_ids(original.message_id)
    chain = _unique_preserving_order(
        extract_message_ids(original.references)
        + extract_message_ids(original.in_reply_to)
        + own_ids
    )
    chain = chain[-MAX_REFERENCES:]
    while chain and len(" ".join(chain)) > MAX_REFERENCES_CHARS:
        chain.pop(0)

    return ThreadingInfo(
        in_reply_to=own_ids[0] if own_ids else "",
        references=" ".join(chain),
    )


def _unique_preserving_order(values: list[str]) -> list[str]:
    seen: set[str] = set()
    ordered: list[str] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        ordered.append(value)
    return ordered
