from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass


class Headers(dict[str, str]):
    """Header map keyed by lower-cased name; lookups ignore case."""

    def __init__(self, items: Mapping[str, str] | None = None) -> None:
        super().__init__()
        for name, value in (items or {}).items():
            self[name] = value

    def __getitem__(self, name: str) -> str:
        return super().__getitem__(name.lower())

    def __setitem__(self, name: str, value: str) -> None:
        super().__setitem__(name.lower(), value)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and super().__contains__(name.lower())

    def get(self, name: str, default: str | None = None) -> str | None:  # type: ignore[override]
        return super().get(name.lower(), default)


@dataclass(frozen=True)
class MimePart:
    headers: Headers
    body: str


@dataclass(frozen=True)
class ParsedEmail:
    headers: Headers
    subject: str
    from_: str
    to: str
    date: str
    message_id: str
    references: str
    in_reply_to: str
    text: str | None
    html_text: str | None

    @property
    def content(self) -> str:
        return self.text or self.html_text or ""
