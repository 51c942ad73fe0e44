"""Fetch hosted content back from the asset hosts at serve time."""

import asyncio
from collections.abc import Awaitable, Callable

import httpx
from loguru import logger

from siteplod_api.lib.errors import UpstreamFailure

USER_AGENT = "Mozilla/5.0 (compatible; SitePlod/1.0)"
DEFAULT_TIMEOUT = 15.0
DEFAULT_ATTEMPTS = 3
DEFAULT_BACKOFF = 1.0


async def fetch_with_retry(
    client: httpx.AsyncClient,
    url: str,
    *,
    attempts: int = DEFAULT_ATTEMPTS,
    backoff: float = DEFAULT_BACKOFF,
    timeout: float = DEFAULT_TIMEOUT,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> bytes:
    """Fetch ``url``, retrying server errors and network failures.

    Any answer below 500 is final: 2xx/3xx is returned, 4xx fails at once.
    After failed attempt ``n`` the next one waits ``backoff * n`` seconds.

    Args:
        client: Shared HTTP client.
        url: Raw-content URL to fetch.
        attempts: Maximum number of attempts.
        backoff: Linear backoff unit in seconds.
        timeout: Per-attempt timeout in seconds.
        sleep: Awaitable used between attempts.

    Returns:
        The response body.

    Raises:
        UpstreamFailure: On a 4xx answer or when all attempts failed.
    """
    last_error = "no attempt made"
    for attempt in range(1, attempts + 1):
        try:
            response = await client.get(url, headers={"User-Agent": USER_AGENT}, timeout=timeout)
        except httpx.TransportError as e:
            last_error = f"{e.__class__.__name__}: {e}"
        else:
            if response.status_code < 400:
                logger.debug("Fetched {} ({} bytes) on attempt {}", url, len(response.content), attempt)
                return response.content
            if response.status_code < 500:
                logger.warning("Upstream {} answered HTTP {}; not retrying", url, response.status_code)
                raise UpstreamFailure(
                    f"Upstream answered HTTP {response.status_code}",
                    upstream_status=response.status_code,
                )
            last_error = f"HTTP {response.status_code}"

        if attempt < attempts:
            logger.info("Fetch attempt {} for {} failed ({}), retrying...", attempt, url, last_error)
            await sleep(backoff * attempt)

    logger.error("Giving up on {} after {} attempts: {}", url, attempts, last_error)
    raise UpstreamFailure(f"Failed to load site content after {attempts} attempts ({last_error})")


async def fetch_once(
    client: httpx.AsyncClient,
    url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
) -> bytes:
    """Fetch ``url`` a single time.

    Raises:
        UpstreamFailure: On any transport failure or non-2xx/3xx answer.
    """
    try:
        response = await client.get(url, headers={"User-Agent": USER_AGENT}, timeout=timeout)
    except httpx.TransportError as e:
        logger.warning("Asset fetch from {} failed: {}", url, e.__class__.__name__)
        raise UpstreamFailure("Error fetching asset") from e
    if response.status_code >= 400:
        logger.warning("Asset fetch from {} answered HTTP {}", url, response.status_code)
        raise UpstreamFailure("Error fetching asset", upstream_status=response.status_code)
    return response.content
