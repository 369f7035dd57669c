"""Prometheus metrics for enrichment runs."""

import logging

from prometheus_client import REGISTRY, Counter, Histogram, Info, write_to_textfile

logger = logging.getLogger(__name__)

# Application info
app_info = Info("url_enricher", "URL enricher application info")
app_info.info({"version": "0.1.0", "name": "url-enricher"})

# Record metrics
records_processed_total = Counter(
    "enricher_records_processed_total",
    "Total number of catalog records processed",
    ["outcome"],
)

# Search metrics
search_queries_total = Counter(
    "enricher_search_queries_total",
    "Total number of search queries issued",
    ["status"],
)

# Validation metrics
candidate_validations_total = Counter(
    "enricher_candidate_validations_total",
    "Total number of candidate pages validated",
    ["result"],
)

page_fetch_duration_seconds = Histogram(
    "enricher_page_fetch_duration_seconds",
    "Time spent fetching candidate pages",
    buckets=[0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
)


def export_textfile(path: str) -> None:
    """Write the default registry in textfile-collector format."""
    write_to_textfile(path, REGISTRY)
    logger.info(f"Metrics written to {path}")
