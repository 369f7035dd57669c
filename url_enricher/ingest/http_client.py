"""Shared HTTP client with per-purpose policies and status-aware error handling."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Optional

import httpx

from url_enricher.config import settings

logger = logging.getLogger(__name__)

# Retryable exceptions (transport errors)
RETRYABLE_EXC = (
    httpx.ReadTimeout,
    httpx.ConnectTimeout,
    httpx.ConnectError,
    httpx.RemoteProtocolError,
    httpx.PoolTimeout,
)


def default_timeout() -> httpx.Timeout:
    return httpx.Timeout(
        connect=settings.http_connect_timeout,
        read=settings.http_read_timeout,
        write=10.0,
        pool=settings.http_read_timeout,
    )


@dataclass(frozen=True)
class RequestPolicy:
    """HTTP request policy for one kind of request (search or page fetch)."""

    name: str
    max_attempts: int = 1
    timeout: httpx.Timeout = None  # Will be set to default if None
    treat_404_as_permanent: bool = True

    def __post_init__(self):
        if self.timeout is None:
            object.__setattr__(self, 'timeout', default_timeout())
        if self.max_attempts < 1:
            object.__setattr__(self, 'max_attempts', 1)


class FetchError(RuntimeError):
    """Base class for fetch failures."""
    pass


class BlockedError(FetchError):
    """Raised when access is blocked (401, 403)."""
    pass


class PermanentURLError(FetchError):
    """Raised when URL is permanently invalid (404, 410)."""
    pass


class TransientFetchError(FetchError):
    """Raised when fetch fails after all attempts (5xx, timeouts, etc.)."""
    pass


class RateLimitedError(FetchError):
    """Raised when rate limited (429)."""

    def __init__(self, retry_after: Optional[int] = None):
        super().__init__("Rate limited")
        self.retry_after = retry_after


def default_headers(user_agent: Optional[str] = None) -> dict[str, str]:
    """Headers identifying the enricher with a fixed client identifier."""
    return {
        "User-Agent": user_agent or settings.user_agent,
        "Accept": "text/html, application/xhtml+xml, application/xml; q=0.9, */*; q=0.8",
        "Accept-Language": "en-US, en; q=0.9",
    }


def create_client(user_agent: Optional[str] = None, **kwargs) -> httpx.AsyncClient:
    """Create the AsyncClient shared by the search provider and validator."""
    kwargs.setdefault("timeout", default_timeout())
    kwargs.setdefault(
        "limits",
        httpx.Limits(
            max_connections=settings.http_max_connections,
            max_keepalive_connections=settings.http_max_connections,
        ),
    )
    return httpx.AsyncClient(
        headers=default_headers(user_agent),
        follow_redirects=True,
        **kwargs,
    )


def _backoff(attempt: int) -> float:
    return (2 ** attempt) + random.random()


async def fetch_with_policy(
    client: httpx.AsyncClient,
    url: str,
    policy: RequestPolicy,
    params: Optional[dict[str, str]] = None,
) -> httpx.Response:
    """
    GET a URL under a request policy.

    Args:
        client: httpx AsyncClient instance
        url: URL to fetch
        policy: RequestPolicy configuration
        params: Optional query parameters

    Returns:
        httpx.Response with a 2xx status

    Raises:
        BlockedError: If access is blocked (401, 403)
        PermanentURLError: If URL is permanently invalid (404, 410)
        RateLimitedError: If rate limited (429) on the final attempt
        TransientFetchError: If fetch fails after all attempts
    """
    last_exc: Exception | None = None

    for attempt in range(1, policy.max_attempts + 1):
        final = attempt == policy.max_attempts
        try:
            resp = await client.get(url, params=params, timeout=policy.timeout)
            sc = resp.status_code

            if sc in (404, 410) and policy.treat_404_as_permanent:
                raise PermanentURLError(f"{policy.name}: {sc} for {url}")

            if sc in (401, 403):
                raise BlockedError(f"{policy.name}: {sc} for {url}")

            if sc == 429:
                retry_after = resp.headers.get("Retry-After")
                retry_seconds = None
                if retry_after:
                    try:
                        retry_seconds = int(retry_after)
                    except (ValueError, TypeError):
                        pass
                raise RateLimitedError(retry_after=retry_seconds)

            if 200 <= sc < 300:
                return resp

            raise TransientFetchError(f"{policy.name}: status {sc} for {url}")

        except RateLimitedError as e:
            if final:
                raise
            sleep_s = float(e.retry_after) if e.retry_after is not None else _backoff(attempt)
            logger.warning(
                f"{policy.name}: Rate limited (429), retrying in {sleep_s:.1f}s "
                f"(attempt {attempt}/{policy.max_attempts})"
            )
            await asyncio.sleep(sleep_s)
            last_exc = e

        except RETRYABLE_EXC as e:
            if final:
                raise TransientFetchError(
                    f"{policy.name}: {type(e).__name__} after {policy.max_attempts} attempt(s): {url}"
                ) from e
            sleep_s = _backoff(attempt)
            logger.warning(
                f"{policy.name}: Transport error ({type(e).__name__}), "
                f"retrying in {sleep_s:.1f}s (attempt {attempt}/{policy.max_attempts})"
            )
            await asyncio.sleep(sleep_s)
            last_exc = e

        except (BlockedError, PermanentURLError):
            raise

        except TransientFetchError as e:
            if final:
                raise
            sleep_s = _backoff(attempt)
            logger.warning(
                f"{policy.name}: {e}, retrying in {sleep_s:.1f}s "
                f"(attempt {attempt}/{policy.max_attempts})"
            )
            await asyncio.sleep(sleep_s)
            last_exc = e

    raise TransientFetchError(
        f"{policy.name}: failed after {policy.max_attempts} attempts: {url}"
    ) from last_exc


def search_policy() -> RequestPolicy:
    return RequestPolicy(name="search", max_attempts=settings.http_max_attempts)


def page_policy() -> RequestPolicy:
    return RequestPolicy(name="page", max_attempts=settings.http_max_attempts)
