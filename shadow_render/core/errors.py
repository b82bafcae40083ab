"""Exceptions raised by the rendering pipeline."""

from __future__ import annotations


class UnauthorizedError(Exception):
    """Shared-secret header missing or wrong."""

    def __init__(self, plain_text: bool = False) -> None:
        super().__init__("unauthorized")
        self.plain_text = plain_text


class RenderError(RuntimeError):
    """Headless browser failed to load or capture the document."""


class CssTransformError(ValueError):
    """CSS could not be parsed by the flattening pass."""

    def __init__(self, message: str, line: int | None = None, column: int | None = None) -> None:
        location = f" (line {line}, column {column})" if line is not None else ""
        super().__init__(f"{message}{location}")
        self.line = line
        self.column = column
