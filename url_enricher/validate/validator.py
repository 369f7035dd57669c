"""Fetch a candidate page and decide whether it is the record's product page."""

import logging
import re
import time
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import urldefrag, urljoin

import httpx
from selectolax.parser import HTMLParser

from url_enricher import metrics
from url_enricher.catalog.models import CatalogRecord
from url_enricher.config import settings
from url_enricher.ingest.filters import url_host
from url_enricher.ingest.http_client import RequestPolicy, fetch_with_policy, page_policy
from url_enricher.ingest.json_extractor import extract_json_ld, extract_product_identities
from url_enricher.validate.similarity import brand_token, similarity

logger = logging.getLogger(__name__)

# Links to a full reviews listing ("see all reviews")
_ALL_REVIEWS_PATTERN = re.compile(r"(/product-reviews/|/reviews?(/|\?|$)|all-?reviews)", re.IGNORECASE)


@dataclass
class ValidationResult:
    """An accepted candidate."""
    canonical_url: str
    review_url: str
    product_score: float
    brand_score: float
    all_reviews_url: Optional[str] = None


def is_accepted(
    product_score: float,
    brand_score: float,
    min_product_score: Optional[float] = None,
    min_brand_score: Optional[float] = None,
) -> bool:
    """Both scores must clear their thresholds; there is no partial credit."""
    if min_product_score is None:
        min_product_score = settings.min_product_score
    if min_brand_score is None:
        min_brand_score = settings.min_brand_score
    return product_score >= min_product_score and brand_score >= min_brand_score


def find_canonical_url(tree: HTMLParser, page_url: str) -> Optional[str]:
    for link in tree.css("link[rel]"):
        rel = (link.attributes.get("rel") or "").lower().split()
        href = (link.attributes.get("href") or "").strip()
        if "canonical" in rel and href:
            return urljoin(page_url, href)
    return None


def find_review_anchor(tree: HTMLParser) -> Optional[str]:
    """Id of the reviews section: ``#reviews`` first, else the first id mentioning reviews."""
    if tree.css_first("#reviews") is not None:
        return "reviews"
    for node in tree.css("[id]"):
        anchor_id = (node.attributes.get("id") or "").strip()
        if anchor_id and "review" in anchor_id.lower():
            return anchor_id
    return None


def find_all_reviews_link(tree: HTMLParser, canonical_url: str, review_url: str) -> Optional[str]:
    """First same-site link that points at a full reviews listing."""
    host = url_host(canonical_url)
    for anchor in tree.css("a[href]"):
        href = (anchor.attributes.get("href") or "").strip()
        if not href or href.startswith("#"):
            continue
        resolved = urljoin(canonical_url, href)
        if url_host(resolved) != host:
            continue
        if not _ALL_REVIEWS_PATTERN.search(urldefrag(resolved).url):
            continue
        if resolved in (canonical_url, review_url):
            continue
        return resolved
    return None


class CandidateValidator:
    """Validate candidate pages against a record's identity."""

    def __init__(self, client: httpx.AsyncClient, policy: Optional[RequestPolicy] = None):
        self.client = client
        self.policy = policy or page_policy()

    async def validate(self, record: CatalogRecord, url: str) -> Optional[ValidationResult]:
        """
        Fetch one candidate and validate it.

        Non-success responses and any fetch or parse failure count as a
        rejection, never as an error.

        Returns:
            ValidationResult when accepted, else None
        """
        start = time.monotonic()
        try:
            response = await fetch_with_policy(self.client, url, self.policy)
        except Exception as e:
            logger.debug(f"Candidate fetch failed for {url}: {e}")
            metrics.candidate_validations_total.labels(result="fetch_failed").inc()
            return None
        finally:
            metrics.page_fetch_duration_seconds.observe(time.monotonic() - start)

        try:
            result = self.evaluate(record, url, response.text, page_url=str(response.url))
        except Exception as e:
            logger.debug(f"Candidate parse failed for {url}: {e}")
            metrics.candidate_validations_total.labels(result="parse_failed").inc()
            return None

        metrics.candidate_validations_total.labels(result="accepted" if result else "rejected").inc()
        return result

    def score_page(self, record: CatalogRecord, url: str, tree: HTMLParser) -> Tuple[float, float]:
        """
        Score a parsed page against the record.

        Returns:
            (product_score, brand_score)
        """
        identity = record.identity
        product_score = 0.0
        brand_score = 0.0

        for product in extract_product_identities(extract_json_ld(tree)):
            product_score = max(product_score, similarity(product.name, identity))
            brand_score = max(brand_score, similarity(product.brand, record.brand))

        if product_score < settings.title_fallback_below:
            title_node = tree.css_first("title")
            title = title_node.text(strip=True) if title_node is not None else ""
            product_score = max(product_score, similarity(title, identity))

        if brand_score < settings.host_brand_fallback_below:
            token = brand_token(record.brand)
            host = url_host(url) or ""
            if token and token in host:
                brand_score = max(brand_score, settings.host_brand_score)

        return product_score, brand_score

    def evaluate(
        self,
        record: CatalogRecord,
        url: str,
        html: str,
        page_url: Optional[str] = None,
    ) -> Optional[ValidationResult]:
        """Validate already-fetched markup."""
        tree = HTMLParser(html)
        product_score, brand_score = self.score_page(record, url, tree)

        if not is_accepted(product_score, brand_score):
            logger.debug(
                f"Rejected {url}: product={product_score:.2f} brand={brand_score:.2f}"
            )
            return None

        canonical = find_canonical_url(tree, page_url or url) or url
        review_url = canonical
        anchor_id = find_review_anchor(tree)
        if anchor_id:
            review_url = f"{urldefrag(canonical).url}#{anchor_id}"

        logger.debug(
            f"Accepted {url} as {canonical}: product={product_score:.2f} brand={brand_score:.2f}"
        )
        return ValidationResult(
            canonical_url=canonical,
            review_url=review_url,
            product_score=product_score,
            brand_score=brand_score,
            all_reviews_url=find_all_reviews_link(tree, canonical, review_url),
        )
