"""Command-line entry point: enrich a catalog file with product and review URLs."""

import argparse
import asyncio
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from url_enricher import metrics
from url_enricher.catalog.io import CatalogFormatError, read_catalog, write_catalog
from url_enricher.config import settings
from url_enricher.ingest.http_client import create_client
from url_enricher.ingest.rate_limiter import QueryPacer
from url_enricher.logging_config import setup_logging
from url_enricher.search.provider import DuckDuckGoSearchProvider
from url_enricher.validate.validator import CandidateValidator
from url_enricher.worker.scheduler import BatchResult, enrich_catalog
from url_enricher.worker.tasks import RecordEnricher

logger = logging.getLogger(__name__)

USAGE_EXAMPLE = "url-enricher --in input.csv --out output.csv [--concurrency 5] [--only-missing] [--limit 200]"


@dataclass(frozen=True)
class EnrichOptions:
    """Validated options for one run."""
    in_path: Path
    out_path: Path
    concurrency: int = 5
    limit: Optional[int] = None
    only_missing: bool = False


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="url-enricher",
        description="Find and validate canonical product and review URLs for a product catalog.",
        epilog=f"Example: {USAGE_EXAMPLE}",
    )
    parser.add_argument("--in", dest="in_path", required=True, help="Input catalog file")
    parser.add_argument("--out", dest="out_path", required=True, help="Output catalog file")
    parser.add_argument(
        "--concurrency",
        type=_positive_int,
        default=settings.default_concurrency,
        help=f"Records processed concurrently (default: {settings.default_concurrency})",
    )
    parser.add_argument(
        "--limit",
        type=_positive_int,
        default=None,
        help="Only process the first N records (default: all)",
    )
    parser.add_argument(
        "--only-missing",
        action="store_true",
        help="Leave records that already have a canonical URL untouched",
    )
    return parser


def parse_options(argv: Optional[List[str]] = None) -> EnrichOptions:
    """Parse and validate CLI arguments. Exits with status 2 on usage errors."""
    args = build_parser().parse_args(argv)
    return EnrichOptions(
        in_path=Path(args.in_path),
        out_path=Path(args.out_path),
        concurrency=args.concurrency,
        limit=args.limit,
        only_missing=args.only_missing,
    )


async def run(
    options: EnrichOptions,
    search_provider=None,
    validator=None,
) -> BatchResult:
    """Read, enrich and write the catalog described by ``options``."""
    records = read_catalog(options.in_path)

    async with create_client() as client:
        enricher = RecordEnricher(
            search_provider=search_provider or DuckDuckGoSearchProvider(client, pacer=QueryPacer()),
            validator=validator or CandidateValidator(client),
            only_missing=options.only_missing,
        )
        result = await enrich_catalog(
            records,
            enricher,
            concurrency=options.concurrency,
            limit=options.limit,
        )

    write_catalog(options.out_path, result.records)
    logger.info(f"Wrote: {options.out_path}")
    logger.info(f"Outcomes: {result.summary()}")

    if settings.metrics_textfile:
        metrics.export_textfile(settings.metrics_textfile)

    return result


def main(argv: Optional[List[str]] = None) -> int:
    options = parse_options(argv)
    setup_logging()

    try:
        asyncio.run(run(options))
    except (OSError, CatalogFormatError) as e:
        logger.error(f"Enrichment run failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
