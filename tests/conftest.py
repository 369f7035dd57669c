"""Shared fixtures for enrichment tests."""

from typing import Callable, Dict, List, Optional

import httpx
import pytest

from url_enricher.catalog.models import CatalogRecord
from url_enricher.ingest.rate_limiter import QueryPacer
from url_enricher.search.provider import SearchProvider
from url_enricher.validate.validator import ValidationResult


class FakeSearchProvider(SearchProvider):
    """Returns canned results per query and remembers what was asked."""

    def __init__(self, results: Optional[Dict[str, List[str]]] = None, default: Optional[List[str]] = None):
        super().__init__(pacer=QueryPacer(delay_seconds=0, jitter=0))
        self.results = results or {}
        self.default = default or []
        self.queries: List[str] = []

    async def search(self, query: str) -> List[str]:
        self.queries.append(query)
        return list(self.results.get(query, self.default))


class FakeValidator:
    """Accepts URLs listed in ``accept``; records the order URLs were tried in."""

    def __init__(self, accept: Optional[Dict[str, ValidationResult]] = None, fail_for: Optional[Callable] = None):
        self.accept = accept or {}
        self.fail_for = fail_for
        self.tried: List[str] = []

    async def validate(self, record: CatalogRecord, url: str) -> Optional[ValidationResult]:
        self.tried.append(url)
        if self.fail_for and self.fail_for(record, url):
            raise RuntimeError(f"validator exploded on {url}")
        return self.accept.get(url)


@pytest.fixture
def make_record() -> Callable[..., CatalogRecord]:
    def _make(**fields) -> CatalogRecord:
        row = {
            "brand": "Nature's Way",
            "product_name": "Vitamin C 1000mg",
            "variant_generic": "",
            "size_label": "120 ct",
            "brand_domain": "",
            "source_priority": "",
            "canonical_product_url": "",
            "notes": "",
        }
        row.update(fields)
        return CatalogRecord.from_row(row)

    return _make


@pytest.fixture
def mock_client_factory():
    """Build AsyncClients backed by an httpx.MockTransport handler."""
    clients: List[httpx.AsyncClient] = []

    def _factory(handler) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)
        clients.append(client)
        return client

    return _factory


def accepted(url: str, review_url: Optional[str] = None, all_reviews_url: Optional[str] = None) -> ValidationResult:
    return ValidationResult(
        canonical_url=url,
        review_url=review_url or url,
        product_score=0.9,
        brand_score=0.9,
        all_reviews_url=all_reviews_url,
    )
