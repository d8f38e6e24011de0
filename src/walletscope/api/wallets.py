import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from walletscope.api.deps import get_wallet_assembler
from walletscope.api.schemas.wallets import (
    AbandonedResponse,
    TokenResponse,
    TransactionResponse,
    WalletSnapshotResponse,
    is_valid_address,
)
from walletscope.domain.models.wallet import WalletSnapshot
from walletscope.exceptions import ExternalServiceError
from walletscope.wallet.assembler import WalletAssembler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/wallets", tags=["wallets"])

AssemblerDep = Annotated[WalletAssembler, Depends(get_wallet_assembler)]


def _to_response(snapshot: WalletSnapshot) -> WalletSnapshotResponse:
    return WalletSnapshotResponse(
        address=snapshot.address,
        sol_balance=snapshot.sol_balance,
        sol_price=snapshot.sol_price_usd,
        sol_value=snapshot.sol_value_usd,
        wallet_value=snapshot.wallet_value_usd,
        tokens=[
            TokenResponse(
                mint=t.mint,
                name=t.name,
                symbol=t.symbol,
                description=t.description,
                image=t.image,
                pool=t.pool,
                amount=t.amount,
                price=t.price_usd,
                value=t.value_usd,
                price_history=t.price_history,
            )
            for t in snapshot.tokens
        ],
        transactions=[TransactionResponse.model_validate(tx) for tx in snapshot.transactions],
        transaction_count=len(snapshot.transactions),
        abandoned_count=snapshot.abandoned_count,
        abandoned=[AbandonedResponse.model_validate(a) for a in snapshot.abandoned],
        pending=snapshot.pending,
        complete=snapshot.complete,
        last_updated=snapshot.last_updated,
    )


@router.get("/{address}", response_model=WalletSnapshotResponse)
async def get_wallet(address: str, assembler: AssemblerDep) -> WalletSnapshotResponse:
    """Balances, token holdings and full transaction history for a Solana address."""
    if not is_valid_address(address):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=f"Invalid Solana address: {address}")

    try:
        snapshot = await assembler.assemble(address)
    except ExternalServiceError as exc:
        logger.warning("Wallet scan failed for %s: %s", address, exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc

    return _to_response(snapshot)
