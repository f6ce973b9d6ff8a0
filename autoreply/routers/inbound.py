from __future__ import annotations

import httpx
from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status
from fastapi.responses import StreamingResponse
from starlette.concurrency import run_in_threadpool

from autoreply.core.config import get_settings
from autoreply.core.http import get_http_client
from autoreply.core.security import inbound_token_matches
from autoreply.services.pipeline import handle_inbound

router = APIRouter(tags=["inbound"])


@router.post("/inbound", response_model=None)
async def receive_inbound(
    request: Request,
    x_envelope_from: str | None = Header(default=None),
    x_envelope_to: str | None = Header(default=None),
    x_inbound_token: str | None = Header(default=None),
    client: httpx.Client = Depends(get_http_client),
) -> Response:
    settings = get_settings()
    if not inbound_token_matches(x_inbound_token, settings.INBOUND_TOKEN):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid inbound token")
    if not (x_envelope_from or "").strip():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="X-Envelope-From header is required",
        )

    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > settings.MAX_RAW_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Message exceeds size limit",
        )
    raw = await request.body()
    if len(raw) > settings.MAX_RAW_BYTES:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="Message exceeds size limit",
        )

    outcome = await run_in_threadpool(
        handle_inbound,
        raw,
        envelope_from=x_envelope_from.strip(),
        envelope_to=x_envelope_to,
        settings=settings,
        client=client,
    )

    if outcome.action == "reject":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Recipient not accepted")
    if outcome.action == "drop" or outcome.reply is None:
        return Response(
            status_code=status.HTTP_204_NO_CONTENT,
            headers={
                "X-Autoreply-Decision": "drop",
                "X-Autoreply-Reason": outcome.reason or "none",
            },
        )

    return StreamingResponse(
        outcome.reply.stream,
        media_type="message/rfc822",
        headers={
            "Content-Length": str(outcome.reply.size),
            "X-Autoreply-Decision": "reply",
            "X-Reply-From": outcome.from_address or "",
            "X-Reply-To": outcome.reply_to or "",
        },
    )
