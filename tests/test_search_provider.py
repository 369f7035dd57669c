"""Tests for the DuckDuckGo search provider and query pacing."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from url_enricher.ingest.rate_limiter import QueryPacer
from url_enricher.search.provider import (
    DuckDuckGoSearchProvider,
    SearchError,
    dedupe_urls,
    unwrap_redirect,
)

RESULTS_HTML = """
<html><body>
  <div class="result">
    <a class="result__a" href="//duckduckgo.com/l/?uddg=https%3A%2F%2Fwww.iherb.com%2Fpr%2Fvitamin-c%2F123&rut=abc">Vitamin C</a>
    <a class="result__url" href="//duckduckgo.com/l/?uddg=https%3A%2F%2Fwww.iherb.com%2Fpr%2Fvitamin-c%2F123&rut=abc">iherb.com</a>
  </div>
  <div class="result">
    <a class="result__a" href="https://www.amazon.com/dp/B000">Amazon</a>
  </div>
  <a class="nav" href="https://duckduckgo.com/settings">Settings</a>
  <a class="result__a" href="javascript:void(0)">bad</a>
  <a class="result__a">no href</a>
</body></html>
"""


class TestResultParsing:
    """Test result link extraction."""

    def setup_method(self):
        self.provider = DuckDuckGoSearchProvider(client=MagicMock(), pacer=QueryPacer(0, 0))

    def test_unwrap_redirect(self):
        href = "//duckduckgo.com/l/?kh=-1&uddg=https%3A%2F%2Facme.com%2Fp%3Fid%3D1"
        assert unwrap_redirect(href, "https://html.duckduckgo.com/html/") == "https://acme.com/p?id=1"

    def test_plain_links_are_resolved(self):
        assert unwrap_redirect("/about", "https://html.duckduckgo.com/html/") == "https://html.duckduckgo.com/about"
        assert unwrap_redirect("https://acme.com/x", "https://html.duckduckgo.com/html/") == "https://acme.com/x"

    def test_parse_results_order_and_dedupe(self):
        urls = self.provider.parse_results(RESULTS_HTML, "https://html.duckduckgo.com/html/")

        assert urls == [
            "https://www.iherb.com/pr/vitamin-c/123",
            "https://www.amazon.com/dp/B000",
        ]

    def test_dedupe_urls(self):
        assert dedupe_urls(["a", "b", "a", "c", "b"]) == ["a", "b", "c"]


class TestSearch:
    """Test search requests against a mocked transport."""

    @pytest.mark.asyncio
    async def test_search_sends_query_and_parses(self, mock_client_factory):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text=RESULTS_HTML)

        provider = DuckDuckGoSearchProvider(
            mock_client_factory(handler),
            pacer=QueryPacer(0, 0),
            search_url="https://html.duckduckgo.com/html/",
        )

        urls = await provider.search("Acme Zinc 50mg")

        assert seen[0].url.params["q"] == "Acme Zinc 50mg"
        assert urls[0] == "https://www.iherb.com/pr/vitamin-c/123"

    @pytest.mark.asyncio
    async def test_failed_search_raises(self, mock_client_factory):
        provider = DuckDuckGoSearchProvider(
            mock_client_factory(lambda request: httpx.Response(503)),
            pacer=QueryPacer(0, 0),
        )

        with pytest.raises(SearchError):
            await provider.search("Acme Zinc")

    @pytest.mark.asyncio
    async def test_search_many_paces_between_queries(self, mock_client_factory):
        pacer = MagicMock()
        pacer.pause = AsyncMock(return_value=0.0)
        provider = DuckDuckGoSearchProvider(
            mock_client_factory(lambda request: httpx.Response(200, text=RESULTS_HTML)),
            pacer=pacer,
        )

        urls = await provider.search_many(["q1", "q2", "q3"])

        assert pacer.pause.await_count == 2
        assert len(urls) == 6


class TestQueryPacer:
    """Test the pacing delay."""

    def test_fixed_delay(self):
        assert QueryPacer(delay_seconds=0.3, jitter=0).next_delay() == 0.3

    def test_jitter_never_negative(self):
        pacer = QueryPacer(delay_seconds=0.0, jitter=0.5)
        assert all(pacer.next_delay() >= 0.0 for _ in range(50))

    @pytest.mark.asyncio
    async def test_zero_delay_does_not_sleep(self):
        assert await QueryPacer(delay_seconds=0, jitter=0).pause() == 0.0
