"""Per-record enrichment: search, rank, validate, annotate."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from url_enricher import metrics
from url_enricher.catalog.models import CatalogRecord, RecordOutcome
from url_enricher.config import settings
from url_enricher.logging_config import get_logger
from url_enricher.rank.domain_ranker import rank_candidates
from url_enricher.search.provider import SearchProvider
from url_enricher.search.query_builder import SearchQueryBuilder
from url_enricher.validate.validator import CandidateValidator

logger = logging.getLogger(__name__)


@dataclass
class EnrichmentResult:
    """The record handed back to the batch and how it ended."""
    record: CatalogRecord
    outcome: RecordOutcome
    error: Optional[str] = None


def utc_timestamp(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class RecordEnricher:
    """
    Resolve one catalog record to a validated product page.

    Flow per record:
    - Skipped when only-missing mode is on and a canonical URL exists
    - Searching: all queries are searched, results ranked by source preference
    - Validating: candidates tried in rank order until the first acceptance
    - Enriched / no_match, or error when anything raises

    ``enrich`` never raises; failures are recorded in the record's notes.
    """

    def __init__(
        self,
        search_provider: SearchProvider,
        validator: CandidateValidator,
        query_builder: Optional[SearchQueryBuilder] = None,
        only_missing: bool = False,
        max_candidates: Optional[int] = None,
    ):
        self.search_provider = search_provider
        self.validator = validator
        self.query_builder = query_builder or SearchQueryBuilder()
        self.only_missing = only_missing
        self.max_candidates = max_candidates or settings.max_candidates_per_record

    async def enrich(self, record: CatalogRecord) -> EnrichmentResult:
        if self.only_missing and record.has_canonical_url:
            metrics.records_processed_total.labels(outcome=RecordOutcome.SKIPPED.value).inc()
            return EnrichmentResult(record=record, outcome=RecordOutcome.SKIPPED)

        log = get_logger(__name__, brand=record.brand, product_name=record.product_name)
        working = record.model_copy(deep=True)

        try:
            outcome = await self._resolve(working, log)
        except Exception as e:
            message = str(e) or type(e).__name__
            log.warning(f"Enrichment failed for {record.brand} {record.product_name}: {message}")
            failed = record.model_copy(deep=True)
            failed.append_note(f"error: {message}")
            metrics.records_processed_total.labels(outcome=RecordOutcome.ERROR.value).inc()
            return EnrichmentResult(record=failed, outcome=RecordOutcome.ERROR, error=message)

        metrics.records_processed_total.labels(outcome=outcome.value).inc()
        return EnrichmentResult(record=working, outcome=outcome)

    async def _resolve(self, record: CatalogRecord, log: logging.LoggerAdapter) -> RecordOutcome:
        queries = self.query_builder.build_queries(record)
        urls = await self.search_provider.search_many(queries)
        candidates = rank_candidates(record, urls)[: self.max_candidates]
        log.debug(f"{len(urls)} results, trying {len(candidates)} candidates")

        for candidate in candidates:
            validated = await self.validator.validate(record, candidate.url)
            if validated is None:
                continue

            record.canonical_product_url = validated.canonical_url
            record.review_url_1 = validated.review_url
            if validated.all_reviews_url:
                record.review_url_2 = validated.all_reviews_url
            record.last_verified_utc = utc_timestamp()
            record.append_note(RecordOutcome.ENRICHED.value)
            log.info(f"Enriched {record.brand} {record.product_name}: {validated.canonical_url}")
            return RecordOutcome.ENRICHED

        record.append_note(RecordOutcome.NO_MATCH.value)
        log.info(f"No match for {record.brand} {record.product_name}")
        return RecordOutcome.NO_MATCH
