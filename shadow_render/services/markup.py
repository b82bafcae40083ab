"""Pattern-based extraction of style and body markup from rendered documents.

These helpers deliberately use regular expressions instead of an HTML parser:
the input is always the serialized output of a real browser, so tag shapes are
predictable, and callers rely on the exact matching rules below.
"""

from __future__ import annotations

import re
from typing import List

STYLE_BLOCK_RE = re.compile(r"<style\b[^>]*>(.*?)</style>", re.IGNORECASE | re.DOTALL)
BODY_RE = re.compile(r"<body\b[^>]*>(.*)</body>", re.IGNORECASE | re.DOTALL)
SCRIPT_BLOCK_RE = re.compile(r"<script\b.*?</script>", re.IGNORECASE | re.DOTALL)


def collect_inline_styles(document: str) -> List[str]:
    """Return the text of every ``<style>`` element in document order."""

    return [match.group(1) for match in STYLE_BLOCK_RE.finditer(document)]


def strip_scripts(markup: str) -> str:
    """Drop all ``<script>`` elements, including their contents."""

    return SCRIPT_BLOCK_RE.sub("", markup)


def extract_body(document: str) -> str:
    """Return script-free body content, or the whole input when there is no body."""

    match = BODY_RE.search(document)
    inner = match.group(1) if match else document
    return strip_scripts(inner)
