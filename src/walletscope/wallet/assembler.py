"""WalletAssembler: balances + token holdings + transaction history for one address."""

import asyncio
import logging
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation

from walletscope.domain.models.wallet import TokenHolding, WalletSnapshot
from walletscope.exceptions import ExternalServiceError
from walletscope.infra.blockchain.solana.rpc_client import SolanaRPCClient
from walletscope.infra.price.coingecko import CoinGeckoProvider
from walletscope.infra.price.geckoterminal import GeckoTerminalProvider
from walletscope.pipeline.collector import ResultSet
from walletscope.pipeline.service import TransactionPipeline

logger = logging.getLogger(__name__)

LAMPORTS_PER_SOL = Decimal(10) ** 9

# OHLCV row layout: [timestamp, open, high, low, close, volume]
OHLCV_CLOSE = 4


def lamports_to_sol(lamports: int) -> Decimal:
    return Decimal(lamports) / LAMPORTS_PER_SOL


class WalletAssembler:
    """Builds a WalletSnapshot.

    Balance lookups must succeed (ExternalServiceError propagates); prices,
    metadata and price history are best-effort and only logged when missing.
    """

    def __init__(
        self,
        rpc: SolanaRPCClient,
        pipeline: TransactionPipeline,
        coingecko: CoinGeckoProvider,
        geckoterminal: GeckoTerminalProvider,
        ohlcv_timeframe: str = "hour",
    ) -> None:
        self._rpc = rpc
        self._pipeline = pipeline
        self._coingecko = coingecko
        self._geckoterminal = geckoterminal
        self._ohlcv_timeframe = ohlcv_timeframe

    async def assemble(self, address: str, cancel: asyncio.Event | None = None) -> WalletSnapshot:
        logger.info("Scanning wallet %s", address)

        holdings = asyncio.create_task(self._holdings(address))
        history = asyncio.create_task(self._pipeline.fetch_transactions(address, cancel=cancel))
        try:
            (lamports, sol_price, tokens), result = await asyncio.gather(holdings, history)
        except BaseException:
            # the sibling must not outlive the request
            for task in (holdings, history):
                task.cancel()
            await asyncio.gather(holdings, history, return_exceptions=True)
            raise
        return self.build_snapshot(address, lamports, sol_price, tokens, result)

    def build_snapshot(
        self,
        address: str,
        lamports: int,
        sol_price: Decimal | None,
        tokens: list[TokenHolding],
        result: ResultSet,
    ) -> WalletSnapshot:
        sol_balance = lamports_to_sol(lamports)
        sol_value = sol_balance * sol_price if sol_price is not None else Decimal("0")
        wallet_value = sol_value + sum((t.value_usd for t in tokens), Decimal("0"))

        if result.abandoned:
            logger.warning("%d transactions abandoned for %s", len(result.abandoned), address)

        return WalletSnapshot(
            address=address,
            sol_balance=sol_balance,
            sol_price_usd=sol_price,
            sol_value_usd=sol_value,
            wallet_value_usd=wallet_value,
            tokens=tokens,
            transactions=result.ordered(),
            abandoned_count=len(result.abandoned),
            abandoned=sorted(result.abandoned.values(), key=lambda a: a.signature),
            pending=result.pending,
            complete=result.complete,
            last_updated=datetime.now(UTC),
        )

    async def _holdings(self, address: str) -> tuple[int, Decimal | None, list[TokenHolding]]:
        lamports = await self._rpc.get_balance(address)
        accounts = await self._rpc.get_token_accounts(address)
        sol_price = await self._coingecko.get_sol_price()
        if sol_price is None:
            logger.warning("No SOL price available, SOL value reported as 0")

        positions = [p for p in (_parse_token_account(a) for a in accounts) if p is not None]
        prices = await self._geckoterminal.get_token_prices([mint for mint, _, _ in positions])

        tokens = []
        for mint, amount, decimals in positions:
            tokens.append(await self._build_holding(mint, amount, decimals, prices.get(mint)))
        return lamports, sol_price, tokens

    async def _build_holding(
        self, mint: str, amount: Decimal, decimals: int, price: Decimal | None
    ) -> TokenHolding:
        metadata = await self._metadata(mint)
        pool = await self._geckoterminal.get_top_pool(mint)
        history: list[float] = []
        if pool is not None:
            rows = await self._geckoterminal.get_ohlcv(pool, self._ohlcv_timeframe)
            history = _close_prices(rows)

        if price is None:
            logger.warning("No price for token %s", mint)
        value = amount * price if price is not None else Decimal("0")

        logger.info("Found token %s (%s) amount=%s price=%s", metadata.get("name", ""), mint, amount, price)
        return TokenHolding(
            mint=mint,
            name=metadata.get("name", ""),
            symbol=metadata.get("symbol", ""),
            description=metadata.get("description", ""),
            image=metadata.get("image", ""),
            pool=pool,
            amount=amount,
            decimals=decimals,
            price_usd=price,
            value_usd=value,
            price_history=history,
        )

    async def _metadata(self, mint: str) -> dict[str, str]:
        try:
            asset = await self._rpc.get_asset(mint)
        except ExternalServiceError as exc:
            logger.warning("No metadata for %s: %s", mint, exc)
            return {}
        if not asset:
            return {}
        content = asset.get("content") or {}
        meta = content.get("metadata") or {}
        links = content.get("links") or {}
        return {
            "name": meta.get("name", "") or "",
            "symbol": meta.get("symbol", "") or "",
            "description": meta.get("description", "") or "",
            "image": links.get("image", "") or "",
        }


def _parse_token_account(account: dict) -> tuple[str, Decimal, int] | None:
    """(mint, ui amount, decimals) from a jsonParsed token account, None if unreadable."""
    info = (
        (((account.get("account") or {}).get("data") or {}).get("parsed") or {}).get("info") or {}
    )
    mint = info.get("mint")
    token_amount = info.get("tokenAmount") or {}
    if not mint:
        return None
    raw = token_amount.get("uiAmountString")
    if raw is None:
        raw = token_amount.get("uiAmount") or "0"
    try:
        amount = Decimal(str(raw))
    except InvalidOperation:
        logger.warning("Unreadable token amount %r for %s", raw, mint)
        return None
    return mint, amount, int(token_amount.get("decimals", 0) or 0)


def _close_prices(rows: list) -> list[float]:
    """Close prices from OHLCV rows, skipping short rows and null or non-numeric values."""
    closes: list[float] = []
    for row in rows:
        if not isinstance(row, (list, tuple)) or len(row) <= OHLCV_CLOSE:
            continue
        try:
            closes.append(float(row[OHLCV_CLOSE]))
        except (TypeError, ValueError):
            continue
    return closes
