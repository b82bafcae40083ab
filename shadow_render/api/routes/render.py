"""Routes that render HTML fragments in a headless browser."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response

from shadow_render.api.dependencies import (
    get_renderer,
    get_stylesheet_fetcher,
    verify_render_token,
    verify_render_token_plain,
)
from shadow_render.core.config import Settings, get_settings
from shadow_render.core.errors import RenderError
from shadow_render.core.logging import get_logger
from shadow_render.models.render import (
    ErrorResponse,
    RenderCssRequest,
    RenderCssResponse,
    RenderRequest,
    RenderResponse,
)
from shadow_render.services import pipeline
from shadow_render.services.renderer import PageRenderer
from shadow_render.services.stylesheets import StylesheetFetcher

logger = get_logger(__name__)

router = APIRouter(tags=["render"])

ERROR_RESPONSES = {
    status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


@router.post(
    "/render",
    response_model=RenderResponse,
    responses=ERROR_RESPONSES,
    dependencies=[Depends(verify_render_token)],
    summary="Render a fragment into a shadow-DOM embed",
)
def render(
    payload: Optional[RenderRequest] = None,
    settings: Settings = Depends(get_settings),
    renderer: PageRenderer = Depends(get_renderer),
) -> Response | RenderResponse:
    """Render the fragment and wrap markup plus inline CSS in ``<myco-shadow-box>``."""

    payload = payload or RenderRequest()
    try:
        final_html = pipeline.render_shadow(payload.html, renderer, settings)
    except RenderError as exc:
        logger.warning("render_request_failed", route="/render", error=str(exc))
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": "render_failed"})

    return RenderResponse(final_html=final_html)


@router.post(
    "/render-raw",
    response_class=HTMLResponse,
    dependencies=[Depends(verify_render_token_plain)],
    summary="Render a fragment and return the full document",
)
def render_raw(
    payload: Optional[RenderRequest] = None,
    settings: Settings = Depends(get_settings),
    renderer: PageRenderer = Depends(get_renderer),
) -> Response:
    """Return the browser's serialized document as ``text/html``."""

    payload = payload or RenderRequest()
    try:
        document = pipeline.render_raw(payload.html, renderer, settings)
    except RenderError as exc:
        logger.warning("render_request_failed", route="/render-raw", error=str(exc))
        return PlainTextResponse("render failed", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return HTMLResponse(document)


@router.post(
    "/render-css",
    response_model=RenderCssResponse,
    responses=ERROR_RESPONSES,
    dependencies=[Depends(verify_render_token)],
    summary="Render a fragment and extract its CSS",
)
def render_css(
    request: Request,
    payload: Optional[RenderCssRequest] = None,
    settings: Settings = Depends(get_settings),
    renderer: PageRenderer = Depends(get_renderer),
    fetcher: StylesheetFetcher = Depends(get_stylesheet_fetcher),
) -> Response | RenderCssResponse:
    """Return shadow-safe CSS plus the ``@property``/``:root`` rules that must stay global.

    With ``legacy`` set the result is ``text/html`` made of ``<style>`` blocks.
    """

    payload = payload or RenderCssRequest()
    options = payload.resolve_options(request.query_params)
    try:
        extraction = pipeline.extract_css(payload.html, options, renderer, fetcher, settings)
    except Exception as exc:
        logger.exception("css_extraction_failed", error=str(exc))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "css_extraction_failed"},
        )

    if options.legacy:
        return HTMLResponse(extraction.to_legacy_html())
    return extraction.to_response()
