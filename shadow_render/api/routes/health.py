"""Liveness endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from shadow_render.core.config import Settings, get_settings
from shadow_render.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/", response_class=PlainTextResponse)
def root() -> str:
    """Plain ``OK`` for load balancers."""

    return "OK"


@router.get("/healthz")
def health_check(settings: Settings = Depends(get_settings)) -> dict:
    """Simple health probe endpoint."""

    logger.debug("health_check_invoked")
    return {"status": "ok", "environment": settings.environment}
