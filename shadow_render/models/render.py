"""Pydantic models for the rendering endpoints."""

from __future__ import annotations

from typing import Any, Dict, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from shadow_render.core.config import BrowserTargets

CSS_FLAGS = ("include_links", "include_root_vars", "minify", "legacy")


def is_truthy_flag(value: Any) -> bool:
    """Only ``"1"`` and ``"true"`` (any case) switch a flag on."""

    if value is None:
        return False
    return str(value).strip().lower() in {"1", "true"}


class CamelModel(BaseModel):
    """Base model exposing camelCase field names on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RenderRequest(CamelModel):
    """Payload accepted by ``/render`` and ``/render-raw``."""

    html: str = Field(default="", description="HTML fragment placed inside <body> before rendering.")

    @field_validator("html", mode="before")
    @classmethod
    def coerce_html(cls, value: Any) -> str:
        """Missing or null html renders an empty body."""

        if value is None:
            return ""
        return str(value)


class RenderCssRequest(RenderRequest):
    """Payload accepted by ``/render-css``; flags may also come from the query string."""

    # Any JSON value is accepted; anything but "1" or "true" reads as off.
    include_links: Any = None
    include_root_vars: Any = None
    minify: Any = None
    legacy: Any = None

    def resolve_options(self, query: Mapping[str, str]) -> "CssOptions":
        """Merge body flags with query parameters, body first."""

        values: Dict[str, bool] = {}
        for name in CSS_FLAGS:
            raw = getattr(self, name)
            if raw is None:
                raw = query.get(to_camel(name), query.get(name))
            values[name] = is_truthy_flag(raw)
        return CssOptions(**values)


class CssOptions(BaseModel):
    """Resolved boolean switches for CSS extraction."""

    include_links: bool = False
    include_root_vars: bool = False
    minify: bool = False
    legacy: bool = False


class RenderResponse(CamelModel):
    """Shadow-packaged embed returned by ``/render``."""

    final_html: str


class CssExtractionInfo(CamelModel):
    """Counters describing where the extracted CSS came from."""

    inline_style_blocks: int = 0
    linked_stylesheets: int = 0
    property_rules: int = 0
    root_var_blocks: int = 0
    minified: bool = False
    targets: BrowserTargets = Field(default_factory=BrowserTargets)


class RenderCssResponse(CamelModel):
    """JSON body returned by ``/render-css``."""

    css_shadow: str
    css_root_props: str
    info: CssExtractionInfo


class ErrorResponse(BaseModel):
    """Generic error body."""

    error: str
