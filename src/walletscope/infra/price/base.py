"""Shared GET-with-backoff used by the price providers."""

import asyncio
import logging

import httpx

from walletscope.infra.http.rate_limited_client import RateLimitedClient
from walletscope.infra.http.retry_after import parse_retry_after

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
MAX_WAIT = 30.0


async def get_json(http: RateLimitedClient, url: str, params: dict | None = None, label: str = "") -> dict | None:
    """GET `url` and decode JSON, retrying on 429 and transport errors.

    Prices are best-effort: returns None instead of raising when the provider
    keeps failing or answers with a non-retryable status.
    """
    for attempt in range(MAX_RETRIES):
        try:
            response = await http.get(url, params=params)
        except httpx.HTTPError:
            logger.exception("%s request failed (attempt %d)", label or url, attempt + 1)
            if attempt < MAX_RETRIES - 1:
                await asyncio.sleep(2 ** attempt)
            continue

        if response.status_code == 429:
            hinted = parse_retry_after(response.headers.get("Retry-After"))
            wait = min(hinted, MAX_WAIT) if hinted is not None else 2 ** (attempt + 1)
            logger.info("%s 429 rate limit, waiting %.1fs...", label or url, wait)
            if attempt < MAX_RETRIES - 1:
                await asyncio.sleep(wait)
            continue

        if response.status_code != 200:
            logger.warning("%s returned %d", label or url, response.status_code)
            return None

        try:
            return response.json()
        except ValueError:
            logger.warning("%s returned a non-JSON body", label or url)
            return None

    logger.warning("%s exhausted retries", label or url)
    return None
