"""CoinGecko price provider: current USD price of native coins (SOL)."""

import logging
from decimal import Decimal

from walletscope.infra.http.rate_limited_client import RateLimitedClient
from walletscope.infra.price.base import get_json

logger = logging.getLogger(__name__)

BASE_URL = "https://api.coingecko.com"

SOL_COINGECKO_ID = "solana"


class CoinGeckoProvider:
    """Fetch current USD prices from the CoinGecko simple/price endpoint."""

    def __init__(self, http_client: RateLimitedClient, api_key: str = "", base_url: str = BASE_URL) -> None:
        self._http = http_client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")

    async def get_current_prices(self, coin_ids: list[str]) -> dict[str, Decimal]:
        """USD price per CoinGecko ID. IDs without a price are left out."""
        if not coin_ids:
            return {}

        params: dict[str, str] = {
            "ids": ",".join(coin_ids),
            "vs_currencies": "usd",
        }
        if self._api_key:
            params["x_cg_demo_api_key"] = self._api_key

        data = await get_json(self._http, f"{self._base_url}/api/v3/simple/price", params, label="CoinGecko")
        if not data:
            return {}

        prices: dict[str, Decimal] = {}
        for coin_id in coin_ids:
            usd = (data.get(coin_id) or {}).get("usd")
            if usd is None:
                logger.warning("CoinGecko has no USD price for %s", coin_id)
                continue
            prices[coin_id] = Decimal(str(usd))
        return prices

    async def get_sol_price(self) -> Decimal | None:
        prices = await self.get_current_prices([SOL_COINGECKO_ID])
        return prices.get(SOL_COINGECKO_ID)
