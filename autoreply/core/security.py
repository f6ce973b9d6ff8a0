from __future__ import annotations

import base64
import hmac
import os


def new_random_token(*, nbytes: int = 32) -> str:
    raw = os.urandom(nbytes)
    # URL-safe base64 without padding; also valid as a MIME boundary.
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def inbound_token_matches(provided: str | None, expected: str | None) -> bool:
    if not expected:
        return True
    if not provided:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))
