from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["Health"])


@router.get("/healthz", response_class=PlainTextResponse)
def health_check() -> str:
    """Liveness probe for the container platform. Always returns ``ok``."""

    return "ok"
