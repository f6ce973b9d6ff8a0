from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from autoreply.core.config import get_settings

router = APIRouter(tags=["health"])


@router.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
def readyz() -> dict[str, str]:
    if not get_settings().OPENAI_API_KEY:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="text generation not configured",
        )
    return {"status": "ready"}
