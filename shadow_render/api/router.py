"""API router aggregator."""

from fastapi import APIRouter

from shadow_render.api.routes import health, render

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(render.router)
