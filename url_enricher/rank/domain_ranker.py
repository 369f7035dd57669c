"""Rank search candidates by the record's preferred source domains."""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from url_enricher.catalog.models import CatalogRecord
from url_enricher.ingest.filters import filter_candidate_urls, url_host
from url_enricher.search.provider import dedupe_urls
from url_enricher.search.query_builder import SearchQueryBuilder

logger = logging.getLogger(__name__)

BRAND_SOURCE = "brand"

# Source key -> retailer domains
SOURCE_DOMAINS: Dict[str, Tuple[str, ...]] = {
    "amazon": ("amazon.com", "amazon.ca"),
    "iherb": ("iherb.com",),
    "walmart": ("walmart.com", "walmart.ca"),
    "vitaminshoppe": ("vitaminshoppe.com",),
    "costco": ("costco.com", "costco.ca"),
    "gnc": ("gnc.com",),
    "target": ("target.com",),
    "bestbuy": ("bestbuy.com", "bestbuy.ca"),
    "superstore": ("realcanadiansuperstore.ca",),
    "loblaws": ("loblaws.ca",),
    "shoppersdrugmart": ("shoppersdrugmart.ca", "well.ca"),
}

DEFAULT_SOURCES: Tuple[str, ...] = (
    "brand", "amazon", "iherb", "walmart", "vitaminshoppe", "costco",
    "gnc", "target", "bestbuy", "superstore", "loblaws", "shoppersdrugmart",
)


@dataclass
class SearchCandidate:
    """A candidate page URL and its source preference weight."""
    url: str
    source_weight: int = 0


def parse_source_priority(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip().lower() for part in value.split(",") if part.strip()]


def preferred_domains(record: CatalogRecord) -> List[str]:
    """
    Resolve the record's domain preference list.

    The brand's own domain comes first when present, followed by the domains of
    the record's source priority keys (or the default ordering when it has none).
    Unknown keys are ignored.
    """
    brand_domain = SearchQueryBuilder.bare_domain(record.brand_domain)
    domains: List[str] = []

    def add(domain: str) -> None:
        if domain and domain not in domains:
            domains.append(domain)

    add(brand_domain)
    for key in parse_source_priority(record.source_priority) or DEFAULT_SOURCES:
        if key == BRAND_SOURCE:
            add(brand_domain)
            continue
        for domain in SOURCE_DOMAINS.get(key, ()):
            add(domain)
    return domains


def domain_weight(host: Optional[str], preferred: List[str]) -> int:
    """Weight = list length minus the index of the first domain the host falls under."""
    if not host:
        return 0
    for index, domain in enumerate(preferred):
        if host == domain or host.endswith("." + domain):
            return len(preferred) - index
    return 0


def rank_candidates(record: CatalogRecord, urls: List[str]) -> List[SearchCandidate]:
    """
    Filter, deduplicate, weight and sort raw result URLs.

    Args:
        record: Record whose preferences apply
        urls: Raw result URLs from every query, in result order

    Returns:
        Candidates sorted by weight descending, ties in first-seen order
    """
    preferred = preferred_domains(record)
    candidates = [
        SearchCandidate(url=url, source_weight=domain_weight(url_host(url), preferred))
        for url in dedupe_urls(filter_candidate_urls(urls))
    ]
    candidates.sort(key=lambda c: c.source_weight, reverse=True)
    logger.debug(f"Ranked {len(candidates)} candidates against {len(preferred)} preferred domains")
    return candidates
