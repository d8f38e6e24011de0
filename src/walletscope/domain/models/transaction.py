"""Domain types for Solana signatures and parsed transactions."""

from datetime import UTC, datetime

from pydantic import BaseModel

from walletscope.domain.enums import AbandonReason, TxStatus


class SignatureInfo(BaseModel):
    """One entry of a getSignaturesForAddress listing."""

    signature: str
    slot: int = 0
    block_time: int | None = None  # Unix seconds
    err: dict | str | None = None
    memo: str | None = None


class BalanceChange(BaseModel):
    """Native SOL balance delta of one account, in lamports."""

    account: str
    pre: int
    post: int

    @property
    def delta(self) -> int:
        return self.post - self.pre


class TokenBalanceChange(BaseModel):
    """SPL token balance delta of one token account (raw units)."""

    account_index: int
    account: str
    mint: str
    owner: str | None = None
    decimals: int = 0
    pre_amount: int = 0
    post_amount: int = 0

    @property
    def delta(self) -> int:
        return self.post_amount - self.pre_amount


class InstructionRecord(BaseModel):
    """A top-level instruction of the transaction message."""

    program_id: str
    accounts: list[int] = []
    data: str = ""
    stack_height: int | None = None


class TransactionRecord(BaseModel):
    """Immutable parsed getTransaction result."""

    signature: str
    slot: int
    block_time: int | None = None
    fee: int = 0  # lamports
    status: TxStatus = TxStatus.SUCCESS
    error: dict | str | None = None
    signatures: list[str] = []
    account_keys: list[str] = []
    balance_changes: list[BalanceChange] = []
    token_balance_changes: list[TokenBalanceChange] = []
    instructions: list[InstructionRecord] = []
    log_messages: list[str] = []
    compute_units_consumed: int | None = None
    version: str | int | None = None

    model_config = {"frozen": True}

    @property
    def timestamp(self) -> datetime | None:
        if self.block_time is None:
            return None
        return datetime.fromtimestamp(self.block_time, UTC)

    def balance_change_for(self, address: str) -> int:
        """Net lamport change of `address` in this transaction (0 if not touched)."""
        return sum(c.delta for c in self.balance_changes if c.account == address)


class Abandonment(BaseModel):
    """A signature the fetch pipeline gave up on, and why."""

    signature: str
    reason: AbandonReason
    cause: str
    attempts: int

    model_config = {"frozen": True}
