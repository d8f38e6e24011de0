"""GeckoTerminal provider: SPL token prices, liquidity pools and OHLCV history."""

import logging
from decimal import Decimal, InvalidOperation

from walletscope.infra.http.rate_limited_client import RateLimitedClient
from walletscope.infra.price.base import get_json

logger = logging.getLogger(__name__)

BASE_URL = "https://api.geckoterminal.com"
NETWORK = "solana"

# simple/token_price accepts at most 30 addresses per call
MAX_ADDRESSES_PER_CALL = 30

OHLCV_TIMEFRAMES = {"minute", "hour", "day"}


class GeckoTerminalProvider:
    def __init__(self, http_client: RateLimitedClient, base_url: str = BASE_URL) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")

    async def get_token_prices(self, mints: list[str]) -> dict[str, Decimal]:
        """Current USD price per mint. Mints GeckoTerminal does not know are left out."""
        prices: dict[str, Decimal] = {}
        unique = list(dict.fromkeys(mints))
        for start in range(0, len(unique), MAX_ADDRESSES_PER_CALL):
            chunk = unique[start:start + MAX_ADDRESSES_PER_CALL]
            url = f"{self._base_url}/api/v2/simple/networks/{NETWORK}/token_price/{','.join(chunk)}"
            data = await get_json(self._http, url, label="GeckoTerminal token_price")
            if not data:
                continue
            token_prices = ((data.get("data") or {}).get("attributes") or {}).get("token_prices") or {}
            for mint, raw in token_prices.items():
                price = _to_decimal(raw)
                if price is not None:
                    prices[mint] = price
        return prices

    async def get_top_pool(self, mint: str) -> str | None:
        """Address of the first (most liquid) pool trading `mint`."""
        url = f"{self._base_url}/api/v2/networks/{NETWORK}/tokens/{mint}/pools"
        data = await get_json(self._http, url, params={"page": 1}, label="GeckoTerminal pools")
        if not data:
            return None
        pools = data.get("data") or []
        if not pools:
            logger.info("No GeckoTerminal pool for %s", mint)
            return None
        return (pools[0].get("attributes") or {}).get("address")

    async def get_ohlcv(self, pool: str, timeframe: str = "hour") -> list[list[float]]:
        """OHLCV rows [timestamp, open, high, low, close, volume] for a pool, newest first."""
        if timeframe not in OHLCV_TIMEFRAMES:
            raise ValueError(f"Unsupported OHLCV timeframe: {timeframe}")
        url = f"{self._base_url}/api/v2/networks/{NETWORK}/pools/{pool}/ohlcv/{timeframe}"
        data = await get_json(self._http, url, params={"currency": "usd"}, label="GeckoTerminal ohlcv")
        if not data:
            return []
        return ((data.get("data") or {}).get("attributes") or {}).get("ohlcv_list") or []


def _to_decimal(raw) -> Decimal | None:
    if raw is None:
        return None
    try:
        return Decimal(str(raw))
    except InvalidOperation:
        return None
