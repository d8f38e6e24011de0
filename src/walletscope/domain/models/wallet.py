"""Wallet snapshot returned to API clients."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from walletscope.domain.models.transaction import Abandonment, TransactionRecord


class TokenHolding(BaseModel):
    """One SPL token position with its current valuation."""

    mint: str
    name: str = ""
    symbol: str = ""
    description: str = ""
    image: str = ""
    pool: str | None = None
    amount: Decimal  # UI amount (already divided by 10^decimals)
    decimals: int = 0
    price_usd: Decimal | None = None
    value_usd: Decimal = Decimal("0")
    price_history: list[float] = []  # close prices, newest first


class WalletSnapshot(BaseModel):
    """Aggregate view of one address: balances, holdings and transaction history.

    `abandoned` and `pending` make gaps in `transactions` explicit.
    """

    address: str
    sol_balance: Decimal
    sol_price_usd: Decimal | None = None
    sol_value_usd: Decimal = Decimal("0")
    wallet_value_usd: Decimal = Decimal("0")
    tokens: list[TokenHolding] = []
    transactions: list[TransactionRecord] = []
    abandoned_count: int = 0
    abandoned: list[Abandonment] = []
    pending: list[str] = []
    complete: bool = True
    last_updated: datetime
