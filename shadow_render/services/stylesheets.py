"""Fetches allow-listed external stylesheets referenced by rendered documents."""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Sequence
from urllib.parse import urljoin, urlparse

import httpx

from shadow_render.core.logging import get_logger

logger = get_logger(__name__)

PLACEHOLDER_BASE_URL = "http://localhost/"
MAX_REDIRECTS = 5
REDIRECT_STATUSES = {301, 302, 303, 307, 308}

LINK_TAG_RE = re.compile(r"<link\b[^>]*>", re.IGNORECASE)
STYLESHEET_REL_RE = re.compile(r"""\brel\s*=\s*["']?[^"'>]*\bstylesheet\b""", re.IGNORECASE)
HREF_RE = re.compile(r"""\bhref\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+))""", re.IGNORECASE)


def find_stylesheet_hrefs(document: str) -> List[str]:
    """Return raw ``href`` values of stylesheet ``<link>`` tags in document order."""

    hrefs: List[str] = []
    for tag in LINK_TAG_RE.findall(document):
        if not STYLESHEET_REL_RE.search(tag):
            continue
        href = HREF_RE.search(tag)
        if href:
            value = next(group for group in href.groups() if group is not None).strip()
            if value:
                hrefs.append(value)
    return hrefs


def resolve_stylesheet_urls(hrefs: Iterable[str]) -> List[str]:
    """Resolve hrefs against the placeholder base, dropping duplicates."""

    seen: dict[str, None] = {}
    for href in hrefs:
        seen.setdefault(urljoin(PLACEHOLDER_BASE_URL, href), None)
    return list(seen)


def is_host_allowed(host: Optional[str], allowed_hosts: Sequence[str]) -> bool:
    """Check a hostname against allow-list suffixes, ignoring a leading ``www.``."""

    if not host:
        return False
    normalized = host.lower().removeprefix("www.")
    return any(normalized.endswith(entry) for entry in allowed_hosts)


class StylesheetFetcher:
    """Downloads linked stylesheets whose host passes the allow-list.

    Each URL is attempted once. Redirects are followed manually and every hop
    must pass the allow-list too. Failures are logged and skipped so a single
    unreachable CDN never fails the whole request.
    """

    def __init__(self, allowed_hosts: Sequence[str], client: httpx.Client | None = None) -> None:
        self.allowed_hosts = list(allowed_hosts)
        self._client = client

    def fetch(self, document: str, include_links: bool) -> List[str]:
        """Return bodies of the allow-listed stylesheets linked from ``document``."""

        if not include_links:
            return []

        urls = resolve_stylesheet_urls(find_stylesheet_hrefs(document))
        bodies: List[str] = []
        for url in urls:
            host = urlparse(url).hostname
            if not is_host_allowed(host, self.allowed_hosts):
                logger.debug("stylesheet_host_rejected", url=url, host=host)
                continue

            body = self._fetch_one(url)
            if body is not None:
                bodies.append(body)

        return bodies

    def _fetch_one(self, url: str) -> Optional[str]:
        # Redirects are followed by hand so every hop goes through the allow-list.
        current = url
        try:
            for _ in range(MAX_REDIRECTS + 1):
                response = self._get_client().get(current, follow_redirects=False)
                if response.status_code not in REDIRECT_STATUSES:
                    response.raise_for_status()
                    body = response.text
                    break

                location = response.headers.get("location")
                if not location:
                    logger.debug("stylesheet_fetch_skipped", url=url, error="redirect without location")
                    return None
                current = urljoin(str(response.url), location)
                host = urlparse(current).hostname
                if not is_host_allowed(host, self.allowed_hosts):
                    logger.warning("stylesheet_redirect_rejected", url=url, location=current, host=host)
                    return None
            else:
                logger.debug("stylesheet_fetch_skipped", url=url, error="too many redirects")
                return None
        except (httpx.HTTPError, UnicodeDecodeError) as exc:
            logger.debug("stylesheet_fetch_skipped", url=url, error=str(exc))
            return None

        logger.debug("stylesheet_fetched", url=url, final_url=current, bytes=len(body))
        return body

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(follow_redirects=False)
        return self._client

    def close(self) -> None:
        """Release the underlying HTTP client."""

        if self._client is not None:
            self._client.close()
            self._client = None
