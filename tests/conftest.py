from __future__ import annotations

from typing import Dict, List, Optional, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient

from shadow_render.api.dependencies import get_renderer, get_stylesheet_fetcher
from shadow_render.core.config import Settings, get_settings
from shadow_render.main import app
from shadow_render.services.renderer import wrap_fragment
from shadow_render.services.stylesheets import StylesheetFetcher


class FakeRenderer:
    """Stands in for the Playwright renderer and records every call."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, int]] = []
        self.document: Optional[str] = None
        self.error: Optional[Exception] = None

    def render(self, fragment: str, wait_ms: int) -> str:
        self.calls.append((fragment, wait_ms))
        if self.error is not None:
            raise self.error
        if self.document is not None:
            return self.document
        return wrap_fragment(fragment)


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, render_token="", render_wait_ms=0)


@pytest.fixture
def renderer() -> FakeRenderer:
    return FakeRenderer()


@pytest.fixture
def stylesheet_responses() -> Dict[str, Tuple[int, str]]:
    """URL -> (status, body); unknown URLs answer 404."""
    return {}


@pytest.fixture
def fetched_urls() -> List[str]:
    return []


@pytest.fixture
def http_client(stylesheet_responses, fetched_urls):
    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        fetched_urls.append(url)
        status, body = stylesheet_responses.get(url, (404, "not found"))
        return httpx.Response(status, text=body)

    client = httpx.Client(transport=httpx.MockTransport(handler))
    yield client
    client.close()


@pytest.fixture
def fetcher(settings, http_client) -> StylesheetFetcher:
    return StylesheetFetcher(settings.allowed_css_hosts, client=http_client)


@pytest.fixture
def client(settings, renderer, fetcher):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_renderer] = lambda: renderer
    app.dependency_overrides[get_stylesheet_fetcher] = lambda: fetcher
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
