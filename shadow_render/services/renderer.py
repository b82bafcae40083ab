"""Headless Chromium rendering of HTML fragments."""

from __future__ import annotations

from playwright.sync_api import Error as PlaywrightError, Playwright, sync_playwright

from shadow_render.core.errors import RenderError
from shadow_render.core.logging import get_logger

logger = get_logger(__name__)


def wrap_fragment(fragment: str, head_html: str = "") -> str:
    """Place a fragment inside a minimal HTML5 document."""

    return (
        '<!doctype html><html><head><meta charset="utf-8">\n'
        '  <meta name="viewport" content="width=device-width,initial-scale=1">'
        f"{head_html}</head>\n"
        f"  <body>{fragment}</body></html>"
    )


class PageRenderer:
    """Encapsulates Playwright logic for rendering a fragment to final markup."""

    def __init__(self, head_html: str = "", load_timeout_ms: int = 30_000) -> None:
        self.head_html = head_html
        self.load_timeout_ms = load_timeout_ms

    def render(self, fragment: str, wait_ms: int) -> str:
        """Return the serialized page once client-side scripts had ``wait_ms`` to run.

        The browser is always closed before returning, whether rendering
        succeeded or not.
        """

        logger.info("render_started", fragment_bytes=len(fragment), wait_ms=wait_ms)
        try:
            with sync_playwright() as p:
                rendered = self._render_with_playwright(p, fragment, wait_ms)
        except PlaywrightError as exc:
            logger.warning("render_failed", error=str(exc))
            raise RenderError(str(exc)) from exc

        logger.info("render_completed", document_bytes=len(rendered))
        return rendered

    def _render_with_playwright(self, playwright: Playwright, fragment: str, wait_ms: int) -> str:
        browser = playwright.chromium.launch(headless=True)
        try:
            page = browser.new_page()
            page.set_content(
                wrap_fragment(fragment, self.head_html),
                wait_until="load",
                timeout=self.load_timeout_ms,
            )
            page.wait_for_timeout(wait_ms)
            return page.content()
        finally:
            browser.close()
