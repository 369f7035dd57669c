"""Bounded-concurrency batch runner for record enrichment."""

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from url_enricher.catalog.models import CatalogRecord, RecordOutcome
from url_enricher.config import settings
from url_enricher.worker.tasks import EnrichmentResult, RecordEnricher

logger = logging.getLogger(__name__)


@dataclass
class BatchProgress:
    """Progress of one batch run."""
    total: int
    completed: int = 0
    outcomes: Counter = field(default_factory=Counter)


@dataclass
class BatchResult:
    """Full record sequence after the run plus outcome counts."""
    records: List[CatalogRecord]
    processed: int
    outcomes: Counter

    def summary(self) -> str:
        parts = [f"{outcome.value}={self.outcomes.get(outcome, 0)}" for outcome in RecordOutcome]
        return f"processed={self.processed} " + " ".join(parts)


def merge_by_position(
    original: List[CatalogRecord],
    processed: List[CatalogRecord],
) -> List[CatalogRecord]:
    """Replace the leading records of ``original`` with ``processed``."""
    merged = list(original)
    merged[: len(processed)] = processed
    return merged


async def enrich_catalog(
    records: List[CatalogRecord],
    enricher: RecordEnricher,
    concurrency: Optional[int] = None,
    limit: Optional[int] = None,
    progress_every: Optional[int] = None,
    on_progress: Optional[Callable[[BatchProgress], None]] = None,
) -> BatchResult:
    """
    Enrich records with at most ``concurrency`` in flight.

    Args:
        records: Full catalog, in file order
        enricher: Per-record enricher (never raises)
        concurrency: Worker width, defaults to settings
        limit: Only process the first N records
        progress_every: Log progress after this many completions
        on_progress: Optional callback invoked at each progress line

    Returns:
        BatchResult with every input record, processed ones replaced in place
    """
    concurrency = concurrency or settings.default_concurrency
    progress_every = progress_every or settings.progress_every
    subset = records[:limit] if limit else records

    progress = BatchProgress(total=len(subset))
    semaphore = asyncio.Semaphore(concurrency)

    async def enrich_with_semaphore(record: CatalogRecord) -> EnrichmentResult:
        async with semaphore:
            result = await enricher.enrich(record)

        # Only touched on the event loop, between awaits
        progress.completed += 1
        progress.outcomes[result.outcome] += 1
        if progress.completed % progress_every == 0:
            logger.info(f"Processed {progress.completed}/{progress.total}")
            if on_progress:
                on_progress(progress)
        return result

    logger.info(f"Enriching {len(subset)} of {len(records)} records with concurrency {concurrency}")
    results = await asyncio.gather(*(enrich_with_semaphore(r) for r in subset))
    enriched = [r.record for r in results]

    if len(subset) < len(records):
        merged = merge_by_position(records, enriched)
    else:
        merged = enriched

    return BatchResult(records=merged, processed=len(subset), outcomes=progress.outcomes)
