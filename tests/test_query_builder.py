"""Tests for the search query builder."""

from url_enricher.search.query_builder import SearchQueryBuilder


class TestSearchQueryBuilder:
    """Test query construction from record identity fields."""

    def setup_method(self):
        self.builder = SearchQueryBuilder()

    def test_normalize_query(self):
        assert self.builder.normalize_query("  hello   world  ") == "hello world"
        assert self.builder.normalize_query("") == ""
        assert len(self.builder.normalize_query("a" * 600)) == 500

    def test_bare_domain(self):
        assert SearchQueryBuilder.bare_domain("https://www.Acme.com/shop") == "acme.com"
        assert SearchQueryBuilder.bare_domain("natureswaycanada.ca") == "natureswaycanada.ca"
        assert SearchQueryBuilder.bare_domain("") == ""

    def test_three_queries_with_site_restriction(self, make_record):
        record = make_record(brand_domain="natureswaycanada.ca")

        queries = self.builder.build_queries(record)

        assert queries == [
            "Nature's Way Vitamin C 1000mg 120 ct site:natureswaycanada.ca",
            "Nature's Way Vitamin C 1000mg",
            "Nature's Way Vitamin C 1000mg reviews",
        ]

    def test_no_site_restriction_without_domain(self, make_record):
        queries = self.builder.build_queries(make_record())

        assert len(queries) == 3
        assert all("site:" not in q for q in queries)
        assert queries[0] == "Nature's Way Vitamin C 1000mg 120 ct"

    def test_empty_fields_are_omitted(self, make_record):
        record = make_record(brand="", variant_generic="Orange", size_label="")

        queries = self.builder.build_queries(record)

        assert queries[0] == "Vitamin C 1000mg Orange"
        assert queries[1] == "Vitamin C 1000mg Orange"
        assert queries[2] == "Vitamin C 1000mg reviews"
        assert all("  " not in q for q in queries)

    def test_domain_with_scheme(self, make_record):
        record = make_record(brand_domain="https://www.naturesway.com/")
        assert self.builder.build_queries(record)[0].endswith("site:naturesway.com")
