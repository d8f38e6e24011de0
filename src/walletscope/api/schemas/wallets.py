import re
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from walletscope.domain.enums import AbandonReason, TxStatus

# base58 alphabet, 32-byte public keys encode to 32..44 characters
_ADDRESS_RE = re.compile(r"^[1-9A-HJ-NP-Za-km-z]{32,44}$")


def is_valid_address(address: str) -> bool:
    return bool(_ADDRESS_RE.match(address))


class BalanceChangeResponse(BaseModel):
    account: str
    pre: int
    post: int
    delta: int

    model_config = {"from_attributes": True}


class TokenBalanceChangeResponse(BaseModel):
    account: str
    mint: str
    owner: Optional[str] = None
    decimals: int
    pre_amount: int
    post_amount: int
    delta: int

    model_config = {"from_attributes": True}


class InstructionResponse(BaseModel):
    program_id: str
    accounts: list[int]
    data: str

    model_config = {"from_attributes": True}


class TransactionResponse(BaseModel):
    signature: str
    slot: int
    block_time: Optional[int] = None
    fee: int
    status: TxStatus
    error: Optional[Any] = None
    signatures: list[str]
    balance_changes: list[BalanceChangeResponse]
    token_balance_changes: list[TokenBalanceChangeResponse]
    instructions: list[InstructionResponse]

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    mint: str
    name: str
    symbol: str
    description: str
    image: str
    pool: Optional[str] = None
    amount: float
    price: Optional[float] = None
    value: float
    price_history: list[float]

    model_config = {"from_attributes": True}


class AbandonedResponse(BaseModel):
    signature: str
    reason: AbandonReason
    cause: str
    attempts: int

    model_config = {"from_attributes": True}


class WalletSnapshotResponse(BaseModel):
    address: str
    sol_balance: float
    sol_price: Optional[float] = None
    sol_value: float
    wallet_value: float
    tokens: list[TokenResponse]
    transactions: list[TransactionResponse]
    transaction_count: int
    abandoned_count: int
    abandoned: list[AbandonedResponse]
    pending: list[str]
    complete: bool
    last_updated: datetime
