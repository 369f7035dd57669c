"""
Search query builder for catalog records.

Produces the ordered query list used to discover candidate pages:
- Full identity restricted to the brand's own site
- Identity without size and without site restriction
- Brand and product name with a "reviews" hint
"""

import re
import logging
from typing import List

from url_enricher.catalog.models import CatalogRecord

logger = logging.getLogger(__name__)


class SearchQueryBuilder:
    """Build ranked search-query strings from a record's identity fields."""

    MAX_QUERY_LENGTH = 500
    REVIEWS_HINT = "reviews"

    def __init__(self):
        self.logger = logger

    def normalize_query(self, query: str) -> str:
        """Normalize search query by trimming and collapsing whitespace."""
        if not query:
            return ""

        normalized = re.sub(r"\s+", " ", query.strip())

        if len(normalized) > self.MAX_QUERY_LENGTH:
            self.logger.warning(f"Query too long, truncating: {len(normalized)} chars")
            normalized = normalized[: self.MAX_QUERY_LENGTH]

        return normalized

    @staticmethod
    def bare_domain(domain: str) -> str:
        """Strip scheme, leading www. and any path from a domain hint."""
        domain = (domain or "").strip().lower()
        domain = re.sub(r"^[a-z][a-z0-9+.-]*://", "", domain)
        domain = domain.split("/", 1)[0]
        if domain.startswith("www."):
            domain = domain[4:]
        return domain

    def join_parts(self, *parts: str) -> str:
        """Join the non-empty parts with single spaces."""
        return self.normalize_query(" ".join(p.strip() for p in parts if p and p.strip()))

    def build_queries(self, record: CatalogRecord) -> List[str]:
        """
        Build the three search queries for a record, most specific first.

        Empty fields are omitted rather than replaced with placeholders.

        Returns:
            List of query strings
        """
        specific = self.join_parts(
            record.brand, record.product_name, record.variant_generic, record.size_label
        )
        domain = self.bare_domain(record.brand_domain)
        if domain:
            specific = self.join_parts(specific, f"site:{domain}")

        queries = [
            specific,
            self.join_parts(record.brand, record.product_name, record.variant_generic),
            self.join_parts(record.brand, record.product_name, self.REVIEWS_HINT),
        ]
        self.logger.debug(f"Built queries for {record.brand!r} {record.product_name!r}: {queries}")
        return queries


query_builder = SearchQueryBuilder()
