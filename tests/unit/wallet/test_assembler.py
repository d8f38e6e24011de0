"""Tests for WalletAssembler: balances, token valuation and transaction history."""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from walletscope.domain.enums import AbandonReason
from walletscope.domain.models.transaction import Abandonment, TransactionRecord
from walletscope.exceptions import ExternalServiceError, SignatureListingError
from walletscope.infra.blockchain.solana.rpc_client import SolanaRPCClient
from walletscope.infra.price.coingecko import CoinGeckoProvider
from walletscope.infra.price.geckoterminal import GeckoTerminalProvider
from walletscope.pipeline.collector import ResultSet
from walletscope.pipeline.service import TransactionPipeline
from walletscope.wallet.assembler import WalletAssembler, _parse_token_account, lamports_to_sol

ADDRESS = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"
BONK = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"


def _token_account(mint: str, ui_amount: str, decimals: int = 5) -> dict:
    return {
        "pubkey": "TokenAcct111",
        "account": {"data": {"parsed": {"info": {
            "mint": mint,
            "owner": ADDRESS,
            "tokenAmount": {"amount": "0", "decimals": decimals, "uiAmountString": ui_amount},
        }}}},
    }


def _result(**kwargs) -> ResultSet:
    return ResultSet(address=ADDRESS, **kwargs)


@pytest.fixture()
def rpc():
    rpc = AsyncMock(spec=SolanaRPCClient)
    rpc.get_balance.return_value = 2_500_000_000
    rpc.get_token_accounts.return_value = [_token_account(BONK, "1000")]
    rpc.get_asset.return_value = {
        "content": {
            "metadata": {"name": "Bonk", "symbol": "BONK", "description": "dog coin"},
            "links": {"image": "https://img.test/bonk.png"},
        },
    }
    return rpc


@pytest.fixture()
def pipeline():
    pipeline = AsyncMock(spec=TransactionPipeline)
    pipeline.fetch_transactions.return_value = _result()
    return pipeline


@pytest.fixture()
def coingecko():
    provider = AsyncMock(spec=CoinGeckoProvider)
    provider.get_sol_price.return_value = Decimal("100")
    return provider


@pytest.fixture()
def geckoterminal():
    provider = AsyncMock(spec=GeckoTerminalProvider)
    provider.get_token_prices.return_value = {BONK: Decimal("0.00002")}
    provider.get_top_pool.return_value = "BonkPool"
    provider.get_ohlcv.return_value = [
        [1700003600, 1.0, 1.0, 1.0, 0.000021, 10.0],
        [1700000000, 1.0, 1.0, 1.0, 0.000019, 10.0],
    ]
    return provider


@pytest.fixture()
def assembler(rpc, pipeline, coingecko, geckoterminal):
    return WalletAssembler(rpc, pipeline, coingecko, geckoterminal, ohlcv_timeframe="day")


class TestAssemble:
    async def test_values_balance_and_tokens(self, assembler, geckoterminal):
        snapshot = await assembler.assemble(ADDRESS)

        assert snapshot.address == ADDRESS
        assert snapshot.sol_balance == Decimal("2.5")
        assert snapshot.sol_price_usd == Decimal("100")
        assert snapshot.sol_value_usd == Decimal("250")
        assert snapshot.wallet_value_usd == Decimal("250.02")

        [token] = snapshot.tokens
        assert token.mint == BONK
        assert token.name == "Bonk"
        assert token.symbol == "BONK"
        assert token.image == "https://img.test/bonk.png"
        assert token.pool == "BonkPool"
        assert token.amount == Decimal("1000")
        assert token.value_usd == Decimal("0.02")
        assert token.price_history == [0.000021, 0.000019]
        geckoterminal.get_ohlcv.assert_awaited_once_with("BonkPool", "day")

    async def test_transactions_newest_first_with_gaps(self, assembler, pipeline):
        pipeline.fetch_transactions.return_value = _result(
            transactions={
                "old": TransactionRecord(signature="old", slot=1, block_time=1000),
                "new": TransactionRecord(signature="new", slot=2, block_time=2000),
            },
            abandoned={
                "gone": Abandonment(signature="gone", reason=AbandonReason.PERMANENT, cause="not found", attempts=1),
            },
            pending=["late"],
            cancelled=True,
        )

        snapshot = await assembler.assemble(ADDRESS)

        assert [tx.signature for tx in snapshot.transactions] == ["new", "old"]
        assert snapshot.abandoned_count == 1
        assert snapshot.abandoned[0].signature == "gone"
        assert snapshot.pending == ["late"]
        assert not snapshot.complete

    async def test_cancel_event_forwarded(self, assembler, pipeline):
        cancel = asyncio.Event()
        await assembler.assemble(ADDRESS, cancel=cancel)
        pipeline.fetch_transactions.assert_awaited_once_with(ADDRESS, cancel=cancel)

    async def test_missing_prices_value_zero(self, assembler, coingecko, geckoterminal):
        coingecko.get_sol_price.return_value = None
        geckoterminal.get_token_prices.return_value = {}

        snapshot = await assembler.assemble(ADDRESS)

        assert snapshot.sol_price_usd is None
        assert snapshot.sol_value_usd == Decimal("0")
        assert snapshot.tokens[0].price_usd is None
        assert snapshot.wallet_value_usd == Decimal("0")

    async def test_missing_metadata_and_pool(self, assembler, rpc, geckoterminal):
        rpc.get_asset.side_effect = ExternalServiceError("method not found")
        geckoterminal.get_top_pool.return_value = None

        snapshot = await assembler.assemble(ADDRESS)

        token = snapshot.tokens[0]
        assert token.name == ""
        assert token.pool is None
        assert token.price_history == []
        geckoterminal.get_ohlcv.assert_not_awaited()

    async def test_balance_failure_propagates(self, assembler, rpc):
        rpc.get_balance.side_effect = ExternalServiceError("node down")
        with pytest.raises(ExternalServiceError):
            await assembler.assemble(ADDRESS)

    async def test_listing_failure_propagates(self, assembler, pipeline):
        pipeline.fetch_transactions.side_effect = SignatureListingError(ADDRESS, "Permanent: bad address")
        with pytest.raises(SignatureListingError):
            await assembler.assemble(ADDRESS)

    async def test_balance_failure_cancels_transaction_fetch(self, assembler, rpc, pipeline):
        state = {"started": False, "finished": False, "cancelled": False}

        async def slow_fetch(address, cancel=None):
            state["started"] = True
            try:
                await asyncio.sleep(0.3)
            except asyncio.CancelledError:
                state["cancelled"] = True
                raise
            state["finished"] = True
            return _result()

        pipeline.fetch_transactions.side_effect = slow_fetch
        rpc.get_balance.side_effect = ExternalServiceError("node down")

        with pytest.raises(ExternalServiceError):
            await assembler.assemble(ADDRESS)
        await asyncio.sleep(0.5)

        assert state == {"started": True, "finished": False, "cancelled": True}

    async def test_listing_failure_cancels_holdings(self, assembler, rpc, pipeline):
        state = {"finished": False}

        async def slow_accounts(address):
            await asyncio.sleep(0.3)
            state["finished"] = True
            return []

        rpc.get_token_accounts.side_effect = slow_accounts
        pipeline.fetch_transactions.side_effect = SignatureListingError(ADDRESS, "Transient: HTTP 503")

        with pytest.raises(SignatureListingError):
            await assembler.assemble(ADDRESS)
        await asyncio.sleep(0.5)

        assert not state["finished"]

    async def test_null_ohlcv_closes_skipped(self, assembler, geckoterminal):
        geckoterminal.get_ohlcv.return_value = [
            [1700007200, 1.0, 1.0, 1.0, None, 10.0],
            [1700003600, 1.0, 1.0, 1.0, "0.000021", 10.0],
            [1700000000, 1.0],
        ]

        snapshot = await assembler.assemble(ADDRESS)
        assert snapshot.tokens[0].price_history == [0.000021]


class TestHelpers:
    def test_lamports_to_sol(self):
        assert lamports_to_sol(1_000_000_000) == Decimal("1")
        assert lamports_to_sol(1) == Decimal("0.000000001")

    def test_parse_token_account(self):
        assert _parse_token_account(_token_account(BONK, "12.5", decimals=5)) == (BONK, Decimal("12.5"), 5)

    def test_parse_token_account_without_mint(self):
        assert _parse_token_account({"account": {"data": {"parsed": {"info": {}}}}}) is None

    def test_parse_token_account_falls_back_to_ui_amount(self):
        account = _token_account(BONK, "0")
        token_amount = account["account"]["data"]["parsed"]["info"]["tokenAmount"]
        del token_amount["uiAmountString"]
        token_amount["uiAmount"] = 3.25
        assert _parse_token_account(account)[1] == Decimal("3.25")
