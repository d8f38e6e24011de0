"""Integration tests for the wallet HTTP API with a stubbed assembler."""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from walletscope.api.deps import get_wallet_assembler
from walletscope.api.main import app
from walletscope.domain.enums import AbandonReason, TxStatus
from walletscope.domain.models.transaction import Abandonment, BalanceChange
from walletscope.domain.models.wallet import TokenHolding, WalletSnapshot
from walletscope.exceptions import ExternalServiceError, SignatureListingError
from walletscope.wallet.assembler import WalletAssembler


@pytest.fixture()
def assembler():
    return AsyncMock(spec=WalletAssembler)


@pytest.fixture()
async def client(assembler):
    app.dependency_overrides[get_wallet_assembler] = lambda: assembler
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def _snapshot(address: str, make_record) -> WalletSnapshot:
    record = make_record("sig1").model_copy(update={
        "fee": 5000,
        "status": TxStatus.FAILED,
        "balance_changes": [BalanceChange(account=address, pre=2_000_005_000, post=2_000_000_000)],
    })
    return WalletSnapshot(
        address=address,
        sol_balance=Decimal("2"),
        sol_price_usd=Decimal("100"),
        sol_value_usd=Decimal("200"),
        wallet_value_usd=Decimal("210"),
        tokens=[TokenHolding(mint="Mint1", name="Token", symbol="TKN", amount=Decimal("5"),
                             price_usd=Decimal("2"), value_usd=Decimal("10"), price_history=[2.0, 1.9])],
        transactions=[record],
        abandoned_count=1,
        abandoned=[Abandonment(signature="sig2", reason=AbandonReason.MAX_ATTEMPTS,
                               cause="max attempts exceeded", attempts=10)],
        pending=[],
        complete=True,
        last_updated=datetime(2026, 1, 1, tzinfo=UTC),
    )


class TestWalletsApi:
    async def test_health(self, client):
        resp = await client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    async def test_get_wallet(self, client, assembler, wallet_address, make_record):
        assembler.assemble.return_value = _snapshot(wallet_address, make_record)

        resp = await client.get(f"/api/wallets/{wallet_address}")

        assert resp.status_code == 200
        body = resp.json()
        assert body["address"] == wallet_address
        assert body["sol_balance"] == 2.0
        assert body["wallet_value"] == 210.0
        assert body["tokens"][0]["symbol"] == "TKN"
        assert body["tokens"][0]["price_history"] == [2.0, 1.9]
        assert body["transaction_count"] == 1
        tx = body["transactions"][0]
        assert tx["signature"] == "sig1"
        assert tx["status"] == "FAILED"
        assert tx["balance_changes"][0]["delta"] == -5000
        assert body["abandoned"] == [
            {"signature": "sig2", "reason": "MAX_ATTEMPTS", "cause": "max attempts exceeded", "attempts": 10},
        ]
        assert body["complete"] is True
        assembler.assemble.assert_awaited_once_with(wallet_address)

    async def test_invalid_address(self, client, assembler):
        resp = await client.get("/api/wallets/not-a-valid-address!")
        assert resp.status_code == 422
        assembler.assemble.assert_not_awaited()

    async def test_listing_failure_is_bad_gateway(self, client, assembler, wallet_address):
        assembler.assemble.side_effect = SignatureListingError(wallet_address, "Transient: HTTP 503")

        resp = await client.get(f"/api/wallets/{wallet_address}")

        assert resp.status_code == 502
        assert wallet_address in resp.json()["detail"]

    async def test_balance_failure_is_bad_gateway(self, client, assembler, wallet_address):
        assembler.assemble.side_effect = ExternalServiceError("Solana RPC error (getBalance): boom")

        resp = await client.get(f"/api/wallets/{wallet_address}")
        assert resp.status_code == 502
