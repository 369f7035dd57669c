"""Tests for domain preference ranking and URL filters."""

from url_enricher.ingest.filters import filter_candidate_urls, is_non_product_url, url_host
from url_enricher.rank.domain_ranker import (
    DEFAULT_SOURCES,
    domain_weight,
    parse_source_priority,
    preferred_domains,
    rank_candidates,
)


class TestFilters:
    """Test non-product URL filtering."""

    def test_url_host(self):
        assert url_host("https://www.Amazon.com/dp/B1") == "amazon.com"
        assert url_host("not a url") is None

    def test_non_product_pages(self):
        assert is_non_product_url("https://acme.com/cart")
        assert is_non_product_url("https://acme.com/pages/FAQ")
        assert is_non_product_url("https://acme.com/blogs/news/vitamin-c")
        assert is_non_product_url("https://acme.com/policies/terms-of-service")
        assert is_non_product_url("https://acme.com/account/login")
        assert not is_non_product_url("https://acme.com/products/vitamin-c")

    def test_filter_candidate_urls(self):
        urls = ["https://acme.com/products/a", "https://acme.com/cart", "/relative/only"]
        assert filter_candidate_urls(urls) == ["https://acme.com/products/a"]


class TestPreferredDomains:
    """Test preference list resolution."""

    def test_parse_source_priority(self):
        assert parse_source_priority(" Amazon, iherb ,,") == ["amazon", "iherb"]
        assert parse_source_priority("") == []

    def test_brand_domain_first(self, make_record):
        record = make_record(brand_domain="https://www.naturesway.com", source_priority="amazon,iherb")

        assert preferred_domains(record) == ["naturesway.com", "amazon.com", "amazon.ca", "iherb.com"]

    def test_default_ordering_when_empty(self, make_record):
        domains = preferred_domains(make_record())

        assert DEFAULT_SOURCES[0] == "brand"
        assert domains[:3] == ["amazon.com", "amazon.ca", "iherb.com"]
        assert "well.ca" in domains

    def test_unknown_keys_and_duplicates(self, make_record):
        record = make_record(brand_domain="acme.com", source_priority="brand,nosuchstore,amazon,amazon")

        assert preferred_domains(record) == ["acme.com", "amazon.com", "amazon.ca"]


class TestRanking:
    """Test candidate weighting and ordering."""

    def test_domain_weight(self):
        preferred = ["acme.com", "amazon.com", "iherb.com"]

        assert domain_weight("acme.com", preferred) == 3
        assert domain_weight("shop.acme.com", preferred) == 3
        assert domain_weight("iherb.com", preferred) == 1
        assert domain_weight("notamazon.com", preferred) == 0
        assert domain_weight(None, preferred) == 0

    def test_priority_order_decides_validation_order(self, make_record):
        record = make_record(source_priority="amazon,iherb")
        urls = ["https://www.iherb.com/pr/vitamin-c/1", "https://www.amazon.com/dp/B1"]

        ranked = rank_candidates(record, urls)

        assert [c.url for c in ranked] == ["https://www.amazon.com/dp/B1", "https://www.iherb.com/pr/vitamin-c/1"]
        assert ranked[0].source_weight > ranked[1].source_weight

    def test_ties_keep_first_seen_order(self, make_record):
        record = make_record(source_priority="amazon")
        urls = ["https://a.example/p/1", "https://b.example/p/2", "https://a.example/p/1", "https://c.example/p/3"]

        ranked = rank_candidates(record, urls)

        assert [c.url for c in ranked] == ["https://a.example/p/1", "https://b.example/p/2", "https://c.example/p/3"]
        assert all(c.source_weight == 0 for c in ranked)

    def test_excluded_pages_are_dropped(self, make_record):
        record = make_record(source_priority="amazon")
        ranked = rank_candidates(record, ["https://www.amazon.com/gp/cart/view.html", "https://www.amazon.com/dp/B1"])

        assert [c.url for c in ranked] == ["https://www.amazon.com/dp/B1"]
