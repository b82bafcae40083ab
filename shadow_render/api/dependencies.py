"""Shared API dependencies."""

import hmac
from typing import Iterator

from fastapi import Depends, Security
from fastapi.security import APIKeyHeader

from shadow_render.core.config import Settings, get_settings, settings as default_settings
from shadow_render.core.errors import UnauthorizedError
from shadow_render.services.renderer import PageRenderer
from shadow_render.services.stylesheets import StylesheetFetcher

render_token_header = APIKeyHeader(name=default_settings.render_token_header, auto_error=False)


def _check_token(token: str | None, settings: Settings, plain_text: bool) -> str:
    expected = settings.render_token
    if not expected:
        return ""

    if token and hmac.compare_digest(token.encode(), expected.encode()):
        return token

    raise UnauthorizedError(plain_text=plain_text)


def verify_render_token(
    token: str | None = Security(render_token_header),
    settings: Settings = Depends(get_settings),
) -> str:
    """Validate the shared-secret header if a token is configured (JSON 401)."""

    return _check_token(token, settings, plain_text=False)


def verify_render_token_plain(
    token: str | None = Security(render_token_header),
    settings: Settings = Depends(get_settings),
) -> str:
    """Same check as :func:`verify_render_token`, answering 401 in plain text."""

    return _check_token(token, settings, plain_text=True)


def get_renderer(settings: Settings = Depends(get_settings)) -> PageRenderer:
    return PageRenderer(head_html=settings.render_head_html)


def get_stylesheet_fetcher(settings: Settings = Depends(get_settings)) -> Iterator[StylesheetFetcher]:
    """Per-request fetcher; its HTTP client is closed once the response is sent."""

    fetcher = StylesheetFetcher(settings.allowed_css_hosts)
    try:
        yield fetcher
    finally:
        fetcher.close()
