"""Splits combined CSS into document-level and shadow-root buckets."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Tuple

# Both patterns stop at the first closing brace; nested blocks are not balanced.
PROPERTY_RULE_RE = re.compile(r"@property\s+[^{}]+\{[^}]*\}", re.IGNORECASE)
ROOT_RULE_RE = re.compile(r":root\s*\{[^}]*\}", re.IGNORECASE)


@dataclass(frozen=True)
class PartitionedCss:
    """CSS split into ``@property`` blocks, ``:root`` blocks and everything else."""

    property_blocks: List[str] = field(default_factory=list)
    root_var_blocks: List[str] = field(default_factory=list)
    remainder: str = ""

    @property
    def root_props(self) -> str:
        """Blocks that must live in the host document rather than a shadow root."""

        return "\n".join(self.property_blocks + self.root_var_blocks)


def _extract(pattern: re.Pattern[str], css: str) -> Tuple[List[str], str]:
    blocks = pattern.findall(css)
    return blocks, pattern.sub("", css)


def partition_css(css: str, extract_root_vars: bool = False) -> PartitionedCss:
    """Remove ``@property`` (and optionally ``:root``) blocks from ``css``."""

    property_blocks, remaining = _extract(PROPERTY_RULE_RE, css)

    root_var_blocks: List[str] = []
    if extract_root_vars:
        root_var_blocks, remaining = _extract(ROOT_RULE_RE, remaining)

    return PartitionedCss(
        property_blocks=property_blocks,
        root_var_blocks=root_var_blocks,
        remainder=remaining,
    )
