"""Filters for search result URLs."""

import logging
import re
from typing import List, Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

# Paths that are never a product page
_NON_PRODUCT_PATTERN = re.compile(
    r"/(cart|faq|contact|login|account|polic|blog|article|terms|privacy)",
    re.IGNORECASE,
)


def url_host(url: str) -> Optional[str]:
    """Lowercased host without a leading www., or None for unparseable URLs."""
    try:
        host = urlparse(url).hostname
    except ValueError:
        return None
    if not host:
        return None
    host = host.lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def is_non_product_url(url: str) -> bool:
    """Return True for cart, login, FAQ, blog/article and policy/terms pages."""
    return bool(_NON_PRODUCT_PATTERN.search(url))


def filter_candidate_urls(urls: List[str]) -> List[str]:
    """Drop URLs without a host and URLs pointing at non-product pages."""
    kept: List[str] = []
    removed = 0
    for url in urls:
        if not url_host(url) or is_non_product_url(url):
            removed += 1
            continue
        kept.append(url)

    if removed:
        logger.debug("Filtered non-product URLs: %s removed, %s kept.", removed, len(kept))
    return kept
