"""Web search providers returning candidate result URLs."""

import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional
from urllib.parse import parse_qs, urljoin, urlparse

import httpx
from selectolax.parser import HTMLParser

from url_enricher import metrics
from url_enricher.config import settings
from url_enricher.ingest.http_client import FetchError, fetch_with_policy, search_policy
from url_enricher.ingest.rate_limiter import QueryPacer

logger = logging.getLogger(__name__)

# Query parameter carrying the real target on redirect-wrapper links
REDIRECT_TARGET_PARAMS = ("uddg",)


class SearchError(RuntimeError):
    """Raised when a search request fails."""
    pass


def unwrap_redirect(href: str, base_url: str) -> str:
    """
    Resolve a result link and unwrap redirect wrappers.

    Args:
        href: Raw href from the results page
        base_url: URL the results page was served from

    Returns:
        Absolute target URL
    """
    absolute = urljoin(base_url, href.strip())
    query = parse_qs(urlparse(absolute).query)
    for param in REDIRECT_TARGET_PARAMS:
        values = query.get(param)
        if values and values[0]:
            return values[0]
    return absolute


def dedupe_urls(urls: Iterable[str]) -> List[str]:
    """Drop repeated URLs, keeping first-seen order."""
    seen = set()
    unique = []
    for url in urls:
        if url in seen:
            continue
        seen.add(url)
        unique.append(url)
    return unique


class SearchProvider(ABC):
    """Abstract base class for web search providers."""

    def __init__(self, pacer: Optional[QueryPacer] = None):
        self.pacer = pacer or QueryPacer()

    @abstractmethod
    async def search(self, query: str) -> List[str]:
        """
        Run one query.

        Args:
            query: Search query string

        Returns:
            Result URLs in result order, deduplicated

        Raises:
            SearchError: If the search request fails
        """
        pass

    async def search_many(self, queries: List[str]) -> List[str]:
        """Run queries in order, pacing between successive ones."""
        urls: List[str] = []
        for i, query in enumerate(queries):
            if i > 0:
                await self.pacer.pause()
            urls.extend(await self.search(query))
        return urls


class DuckDuckGoSearchProvider(SearchProvider):
    """Search via the DuckDuckGo HTML endpoint (no API key)."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        pacer: Optional[QueryPacer] = None,
        search_url: Optional[str] = None,
        result_classes: Optional[str] = None,
    ):
        super().__init__(pacer)
        self.client = client
        self.search_url = search_url or settings.search_url
        self.result_classes = {
            c.strip() for c in (result_classes or settings.search_result_classes).split(",") if c.strip()
        }
        self.policy = search_policy()

    async def search(self, query: str) -> List[str]:
        try:
            response = await fetch_with_policy(self.client, self.search_url, self.policy, params={"q": query})
        except (FetchError, httpx.HTTPError) as e:
            metrics.search_queries_total.labels(status="error").inc()
            raise SearchError(f"Search failed for {query!r}: {e}") from e

        metrics.search_queries_total.labels(status="ok").inc()
        urls = self.parse_results(response.text, str(response.url))
        logger.debug(f"Search {query!r} returned {len(urls)} results")
        return urls

    def parse_results(self, html: str, base_url: Optional[str] = None) -> List[str]:
        """
        Extract outbound result links from a results page.

        Args:
            html: Results page markup
            base_url: URL used to resolve relative links

        Returns:
            Unwrapped http(s) URLs in document order, deduplicated
        """
        base_url = base_url or self.search_url
        tree = HTMLParser(html)
        urls = []
        for node in tree.css("a"):
            classes = set((node.attributes.get("class") or "").split())
            if not classes & self.result_classes:
                continue
            href = node.attributes.get("href")
            if not href:
                continue
            url = unwrap_redirect(href, base_url)
            if urlparse(url).scheme not in ("http", "https"):
                continue
            urls.append(url)
        return dedupe_urls(urls)
