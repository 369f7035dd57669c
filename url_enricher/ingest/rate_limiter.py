"""Pacing between successive search queries."""

import asyncio
import logging
import random

from url_enricher.config import settings

logger = logging.getLogger(__name__)


class QueryPacer:
    """Fixed delay (with optional jitter) awaited between queries of one record.

    The pause only suspends the awaiting task; other workers keep running.
    """

    def __init__(self, delay_seconds: float = None, jitter: float = None):
        self.delay_seconds = settings.query_pacing_seconds if delay_seconds is None else delay_seconds
        self.jitter = settings.query_pacing_jitter if jitter is None else jitter

    def next_delay(self) -> float:
        """Delay for the next pause, never negative."""
        delay = self.delay_seconds
        if self.jitter > 0:
            delay += random.uniform(-self.jitter, self.jitter)
        return max(0.0, delay)

    async def pause(self) -> float:
        """
        Wait before the next query.

        Returns:
            Delay applied in seconds
        """
        delay = self.next_delay()
        if delay > 0:
            logger.debug(f"Pacing search queries: waiting {delay:.2f}s")
            await asyncio.sleep(delay)
        return delay
