"""Composes rendering, extraction and packaging for each endpoint."""

from __future__ import annotations

from dataclasses import dataclass

from shadow_render.core.config import Settings
from shadow_render.core.logging import get_logger
from shadow_render.models.render import CssExtractionInfo, CssOptions, RenderCssResponse
from shadow_render.services.css_flatten import flatten_css
from shadow_render.services.css_partition import partition_css
from shadow_render.services.markup import collect_inline_styles
from shadow_render.services.renderer import PageRenderer
from shadow_render.services.shadow_package import build_shadow_html
from shadow_render.services.stylesheets import StylesheetFetcher

logger = get_logger(__name__)


@dataclass(frozen=True)
class CssExtraction:
    """Outcome of the CSS-only flow."""

    css_shadow: str
    css_root_props: str
    info: CssExtractionInfo

    def to_response(self) -> RenderCssResponse:
        return RenderCssResponse(css_shadow=self.css_shadow, css_root_props=self.css_root_props, info=self.info)

    def to_legacy_html(self) -> str:
        """``<style>`` blocks for clients that paste CSS straight into a page."""

        blocks = []
        if self.css_root_props.strip():
            blocks.append(f'<style data-scope="root">\n{self.css_root_props}\n</style>')
        blocks.append(f'<style data-scope="shadow">\n{self.css_shadow}\n</style>')
        return "\n".join(blocks) + "\n"


def render_raw(html: str, renderer: PageRenderer, settings: Settings) -> str:
    """Render the fragment and return the full document."""

    return renderer.render(html, settings.render_wait_ms)


def render_shadow(html: str, renderer: PageRenderer, settings: Settings) -> str:
    """Render the fragment and package it as a shadow-DOM embed."""

    rendered = renderer.render(html, settings.render_wait_ms)
    return build_shadow_html(rendered)


def extract_css(
    html: str,
    options: CssOptions,
    renderer: PageRenderer,
    fetcher: StylesheetFetcher,
    settings: Settings,
) -> CssExtraction:
    """Render the fragment and return its CSS split for shadow-root embedding.

    Raises:
        CssTransformError: when the collected CSS cannot be parsed.
        RenderError: when the browser fails.
    """

    rendered = renderer.render(html, settings.render_wait_ms)

    inline_styles = collect_inline_styles(rendered)
    linked_styles = fetcher.fetch(rendered, options.include_links)
    combined = "\n".join(inline_styles + linked_styles)

    partitioned = partition_css(combined, extract_root_vars=options.include_root_vars)
    css_shadow = flatten_css(partitioned.remainder, minify=options.minify, targets=settings.css_targets)

    info = CssExtractionInfo(
        inline_style_blocks=len(inline_styles),
        linked_stylesheets=len(linked_styles),
        property_rules=len(partitioned.property_blocks),
        root_var_blocks=len(partitioned.root_var_blocks),
        minified=options.minify,
        targets=settings.css_targets,
    )
    logger.info(
        "css_extracted",
        inline_style_blocks=info.inline_style_blocks,
        linked_stylesheets=info.linked_stylesheets,
        shadow_bytes=len(css_shadow),
    )
    return CssExtraction(css_shadow=css_shadow, css_root_props=partitioned.root_props, info=info)
